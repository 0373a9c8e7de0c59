"""诊断通道：基于独立的 pypubsub 发布器，向宿主投递总线误用与订阅者故障。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List

from pubsub.core import Publisher

from .errors import BusError
from .listeners import same_listener
from .topics import Topics

LOG = logging.getLogger(__name__)

DiagnosticListener = Callable[..., None]


def _diagnostic_prototype(diagnostic: BusError) -> None:
    """诊断主题的消息格式：监听器只接收一个 diagnostic 参数。"""


def _log_listener_failure(listener_id: str, topic_obj: Any) -> None:
    """pypubsub 的监听器异常处理器，记录后继续通知其余监听器。"""

    LOG.error("Diagnostic listener %s failed on topic %s", listener_id, topic_obj.getName(), exc_info=True)


@dataclass
class DiagnosticSubscription:
    """封装诊断监听句柄，便于在退出时解除监听。"""

    listener: DiagnosticListener
    _channel: "DiagnosticChannel"

    def unsubscribe(self) -> bool:
        return self._channel.unsubscribe(self.listener)


class DiagnosticChannel:
    """对 pypubsub 的轻量封装，每个通道持有私有的 Publisher，不共享全局状态。"""

    def __init__(self) -> None:
        self._publisher = Publisher()
        self._publisher.setListenerExcHandler(_log_listener_failure)
        self._publisher.getTopicMgr().getOrCreateTopic(Topics.DIAGNOSTIC, _diagnostic_prototype)
        # pypubsub 只保存弱引用，这里保留强引用以支持 lambda 等临时回调
        self._listeners: List[DiagnosticListener] = []

    def subscribe(self, listener: DiagnosticListener) -> DiagnosticSubscription:
        """注册诊断监听器，返回可供释放的句柄。"""

        self._publisher.subscribe(listener, Topics.DIAGNOSTIC)
        if not any(same_listener(existing, listener) for existing in self._listeners):
            self._listeners.append(listener)
        return DiagnosticSubscription(listener=listener, _channel=self)

    def unsubscribe(self, listener: DiagnosticListener) -> bool:
        """取消诊断监听，未注册过的监听器返回 False。"""

        for index, existing in enumerate(self._listeners):
            if same_listener(existing, listener):
                del self._listeners[index]
                self._publisher.unsubscribe(listener, Topics.DIAGNOSTIC)
                return True
        return False

    def has_listeners(self) -> bool:
        return bool(self._listeners)

    def report(self, error: BusError) -> None:
        """投递一条诊断；没有任何监听器时直接抛出，交由宿主的延迟执行设施处理。"""

        LOG.debug("Bus diagnostic [%s] topic=%r: %s", error.kind, error.topic, error)
        if not self._listeners:
            raise error
        self._publisher.sendMessage(Topics.DIAGNOSTIC, diagnostic=error)


__all__ = ["DiagnosticChannel", "DiagnosticSubscription", "DiagnosticListener"]
