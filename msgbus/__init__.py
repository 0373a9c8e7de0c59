"""进程内发布/订阅总线：对外导出总线、配置、调度器与诊断类型。"""

from __future__ import annotations

from .bus import Bus, Listener, Subscription
from .config import BusConfig
from .diagnostics import DiagnosticChannel, DiagnosticSubscription
from .errors import (
    BusError,
    DuplicateSubscriptionError,
    InvalidCallbackError,
    InvalidTopicError,
    SchedulerError,
    SubscriberFaultError,
)
from .scheduling import AsyncioScheduler, QueueScheduler, Scheduler
from .topics import Topics, is_valid_topic

__version__ = Bus.VERSION

__all__ = [
    "Bus",
    "BusConfig",
    "Listener",
    "Subscription",
    "DiagnosticChannel",
    "DiagnosticSubscription",
    "BusError",
    "InvalidTopicError",
    "InvalidCallbackError",
    "DuplicateSubscriptionError",
    "SubscriberFaultError",
    "SchedulerError",
    "Scheduler",
    "AsyncioScheduler",
    "QueueScheduler",
    "Topics",
    "is_valid_topic",
]
