"""主题名称的校验规则与内部使用的主题常量。"""

from __future__ import annotations

from typing import Any


class Topics:
    """总线内部使用的主题名称，避免魔法字符串散落各处。"""

    DIAGNOSTIC = "diagnostic"


def is_valid_topic(value: Any) -> bool:
    """主题必须是非空字符串。"""

    return isinstance(value, str) and value != ""


__all__ = ["Topics", "is_valid_topic"]
