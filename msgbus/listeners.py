"""监听器的比较与展示工具，总线与诊断通道共用。"""

from __future__ import annotations

import inspect
from typing import Any


def same_listener(existing: Any, candidate: Any) -> bool:
    """按身份比较监听器；绑定方法每次取值都会新建对象，改为比较其实例与函数。"""

    if existing is candidate:
        return True
    return inspect.ismethod(existing) and inspect.ismethod(candidate) and existing == candidate


def render_listener(listener: Any) -> str:
    """将监听器转为可读名称。"""

    if inspect.ismethod(listener):
        self_obj = listener.__self__
        cls_name = type(self_obj).__name__
        func_name = listener.__func__.__name__
        return f"{cls_name}.{func_name}"
    if inspect.isfunction(listener):
        return listener.__qualname__
    return repr(listener)


__all__ = ["same_listener", "render_listener"]
