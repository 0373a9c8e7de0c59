"""延迟执行设施：异步发布与诊断上报都通过它排队到之后的轮次执行。"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, Optional, Protocol

from .errors import SchedulerError

LOG = logging.getLogger(__name__)

Task = Callable[[], None]


class Scheduler(Protocol):
    """总线依赖的最小接口：任务在当前执行路径结束后按 FIFO 顺序运行。"""

    def schedule(self, task: Task) -> None:
        ...


class AsyncioScheduler:
    """基于 asyncio ``call_soon`` 的调度器，适合运行在事件循环中的宿主。"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def schedule(self, task: Task) -> None:
        """把任务排入事件循环，未显式指定循环时使用当前运行中的循环。"""
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise SchedulerError(
                    "No running event loop; pass a loop to AsyncioScheduler or use QueueScheduler"
                ) from exc
        loop.call_soon(task)


class QueueScheduler:
    """手动驱动的 FIFO 队列，由宿主主循环或测试调用 ``run_pending`` 执行。"""

    def __init__(self) -> None:
        self._tasks: Deque[Task] = deque()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, task: Task) -> None:
        self._tasks.append(task)

    def run_pending(self) -> int:
        """依次执行队列中的任务，执行期间新加入的任务也会在本轮运行。

        任务抛出的异常会直接向调用方传播，出错的任务已先出队。
        """
        count = 0
        while self._tasks:
            task = self._tasks.popleft()
            count += 1
            task()
        if count:
            LOG.debug("Ran %d deferred task(s)", count)
        return count

    def clear(self) -> None:
        """丢弃尚未执行的任务。"""
        self._tasks.clear()


__all__ = ["Scheduler", "AsyncioScheduler", "QueueScheduler", "Task"]
