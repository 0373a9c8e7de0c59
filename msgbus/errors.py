"""总线诊断使用的异常类型，按误用类别划分。"""

from __future__ import annotations

from typing import Any, Optional


class BusError(Exception):
    """所有总线诊断异常的基类，记录出错的主题与类别。"""

    kind = "bus_error"

    def __init__(self, message: str, *, topic: Any = None) -> None:
        super().__init__(message)
        self.topic = topic


class InvalidTopicError(BusError):
    """主题为空、缺失或不是字符串。"""

    kind = "invalid_topic"


class InvalidCallbackError(BusError):
    """订阅时传入的回调缺失或不可调用。"""

    kind = "invalid_callback"


class DuplicateSubscriptionError(BusError):
    """在不允许重复时，同一回调重复订阅同一主题。"""

    kind = "duplicate_subscription"


class SubscriberFaultError(BusError):
    """订阅者在投递过程中抛出异常。"""

    kind = "subscriber_fault"

    def __init__(
        self,
        message: str,
        *,
        topic: Any = None,
        subscriber: Any = None,
        original: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, topic=topic)
        self.subscriber = subscriber
        self.original = original
        self.__cause__ = original


class SchedulerError(RuntimeError):
    """延迟执行设施不可用，例如当前没有运行中的事件循环。"""


__all__ = [
    "BusError",
    "InvalidTopicError",
    "InvalidCallbackError",
    "DuplicateSubscriptionError",
    "SubscriberFaultError",
    "SchedulerError",
]
