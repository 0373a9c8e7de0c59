"""进程内发布/订阅总线，提供订阅、退订、延迟发布与同步发布入口。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from .config import BusConfig
from .diagnostics import DiagnosticChannel, DiagnosticListener, DiagnosticSubscription
from .errors import (
    BusError,
    DuplicateSubscriptionError,
    InvalidCallbackError,
    InvalidTopicError,
    SchedulerError,
    SubscriberFaultError,
)
from .listeners import render_listener, same_listener
from .scheduling import AsyncioScheduler, Scheduler
from .topics import is_valid_topic

LOG = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]


@dataclass
class Subscription:
    """封装订阅句柄，便于在退出时解除监听。"""

    topic: str
    listener: Listener
    _bus: "Bus"

    def unsubscribe(self) -> bool:
        """从总线取消当前监听器。"""

        return self._bus.unsubscribe(self.topic, self.listener)


class Bus:
    """发布/订阅总线。

    订阅者以 ``(topic, payload)`` 的形式被调用，同一主题内按订阅顺序投递。
    误用与订阅者异常不会同步抛给调用方：调试模式下以诊断异常的形式
    排入调度器，在之后的轮次中上报；非调试模式下静默忽略。
    """

    VERSION = "0.3"

    def __init__(
        self,
        config: Optional[BusConfig] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        diagnostics: Optional[DiagnosticChannel] = None,
    ) -> None:
        self.config = config if config is not None else BusConfig()
        self.scheduler: Scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticChannel()
        self._messages: Dict[str, List[Listener]] = {}

    def subscribe(self, topic: str, callback: Listener) -> Optional[Subscription]:
        """订阅指定主题，返回可供释放的句柄；被拒绝时返回 None。"""

        if not is_valid_topic(topic):
            self._diagnose(
                InvalidTopicError(
                    f"Cannot subscribe to empty/undefined topic for callback [{callback!r}]", topic=topic
                )
            )
            return None
        if callback is None or not callable(callback):
            self._diagnose(
                InvalidCallbackError(f"Cannot subscribe undefined callback for topic [{topic}]", topic=topic)
            )
            return None

        subscribers = self._messages.setdefault(topic, [])
        if not self.config.allow_duplicates and _contains(subscribers, callback):
            self._diagnose(
                DuplicateSubscriptionError(f"Cannot subscribe duplicate callback for topic [{topic}]", topic=topic)
            )
            return None

        subscribers.append(callback)
        LOG.debug("Subscribed %s to %s", render_listener(callback), topic)
        return Subscription(topic=topic, listener=callback, _bus=self)

    def unsubscribe(self, topic: str, callback: Listener) -> bool:
        """移除第一个匹配的回调；主题未知或回调不存在时返回 False。"""

        if not is_valid_topic(topic):
            return False
        subscribers = self._messages.get(topic)
        if subscribers is None:
            return False
        for index, existing in enumerate(subscribers):
            if same_listener(existing, callback):
                del subscribers[index]
                LOG.debug("Unsubscribed %s from %s", render_listener(callback), topic)
                return True
        return False

    def publish(self, topic: str, payload: Any = None) -> Optional[bool]:
        """延迟发布：把投递排入调度器后立即返回，True 仅表示该主题存在订阅列表。"""

        return self._publish(topic, payload, sync=False)

    def publish_sync(self, topic: str, payload: Any = None) -> Optional[bool]:
        """同步发布：在返回前依次调用所有订阅者，订阅者内再次发布会产生递归。"""

        return self._publish(topic, payload, sync=True)

    def get_subscribers_for_message(self, topic: str) -> Optional[List[Listener]]:
        """返回主题的实时订阅列表，仅供查看，未注册时返回 None。"""

        if not is_valid_topic(topic):
            return None
        return self._messages.get(topic)

    def on_diagnostic(self, listener: DiagnosticListener) -> DiagnosticSubscription:
        """注册诊断监听器，监听器以 ``diagnostic=<BusError>`` 被调用。"""

        return self.diagnostics.subscribe(listener)

    def has_listeners(self, topic: str) -> bool:
        """检测是否存在监听者，便于调试或延迟初始化。"""

        return bool(self.get_subscribers_for_message(topic))

    def listener_count(self, topic: str) -> int:
        """返回当前已记录的监听器数量，用于监控订阅情况。"""

        return len(self.get_subscribers_for_message(topic) or ())

    def list_listeners(self, topic: str | None = None) -> Dict[str, List[str]]:
        """按主题列出监听器名称，辅助排查事件流转。"""

        if topic is not None and not is_valid_topic(topic):
            return {}
        topic_names = [topic] if topic else sorted(self._messages.keys())
        snapshot: Dict[str, List[str]] = {}
        for name in topic_names:
            listeners = self._messages.get(name, [])
            snapshot[name] = [render_listener(listener) for listener in listeners]
        return snapshot

    def topics_snapshot(self) -> Dict[str, int]:
        """展示已知主题的监听器数量概览。"""

        return {topic: len(listeners) for topic, listeners in sorted(self._messages.items())}

    def _publish(self, topic: str, payload: Any, *, sync: bool) -> Optional[bool]:
        if not is_valid_topic(topic):
            self._diagnose(
                InvalidTopicError(f"Cannot publish empty/undefined topic [{payload!r}]", topic=topic)
            )
            return None
        if topic not in self._messages:
            return False
        if sync:
            self._deliver(topic, payload)
        else:
            self.scheduler.schedule(partial(self._deliver, topic, payload))
        return True

    def _deliver(self, topic: str, payload: Any) -> None:
        """投递开始时对订阅列表做快照，单个订阅者的异常不会中断循环。"""

        for subscriber in list(self._messages.get(topic, ())):
            try:
                subscriber(topic, payload)
            except Exception as exc:
                LOG.debug("Subscriber %s failed on %s: %s", render_listener(subscriber), topic, exc)
                self._diagnose(
                    SubscriberFaultError(
                        f"Subscriber failed for topic [{topic}] - Internal Error = {{{exc}}}",
                        topic=topic,
                        subscriber=subscriber,
                        original=exc,
                    )
                )

    def _diagnose(self, error: BusError) -> None:
        """调试模式下把诊断排入调度器，保证调用方无法同步捕获。"""

        if not self.config.debug_mode:
            return
        try:
            self.scheduler.schedule(partial(self.diagnostics.report, error))
        except SchedulerError:
            LOG.warning("Could not defer bus diagnostic [%s]: %s", error.kind, error, exc_info=True)


def _contains(subscribers: List[Listener], callback: Listener) -> bool:
    return any(same_listener(existing, callback) for existing in subscribers)


__all__ = ["Bus", "Listener", "Subscription"]
