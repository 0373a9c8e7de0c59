"""总线配置的加载与合并工具。"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

LOG = logging.getLogger(__name__)

# 兼容历史上的驼峰写法
_KEY_ALIASES = {
    "debugMode": "debug_mode",
    "allowDuplicates": "allow_duplicates",
}


@dataclass(frozen=True)
class BusConfig:
    """总线的进程级配置，构造后不再变化。"""

    debug_mode: bool = False
    allow_duplicates: bool = False

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any] | None) -> "BusConfig":
        """从普通字典构造配置对象，缺失字段使用默认值。"""
        if not payload:
            return cls()
        return cls().merged(payload)

    @classmethod
    def from_file(cls, file_path: Path) -> "BusConfig":
        """读取 JSON 配置文件并解析为 BusConfig 对象。"""
        file_path = Path(file_path).resolve()
        with file_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"配置文件顶层必须是 JSON 对象: {file_path}")
        return cls.from_dict(data)

    def merged(self, overrides: Mapping[str, Any] | None) -> "BusConfig":
        """在当前配置基础上应用增量覆盖，返回新的配置对象。"""
        if not overrides:
            return self
        normalized = _normalize_keys(overrides)
        changes: dict[str, bool] = {}
        if "debug_mode" in normalized:
            changes["debug_mode"] = _to_bool(normalized["debug_mode"])
        if "allow_duplicates" in normalized:
            changes["allow_duplicates"] = _to_bool(normalized["allow_duplicates"])
        return replace(self, **changes)

    def as_dict(self) -> dict[str, bool]:
        return {"debug_mode": self.debug_mode, "allow_duplicates": self.allow_duplicates}


def _normalize_keys(payload: Mapping[str, Any]) -> dict[str, Any]:
    """把驼峰键名映射为下划线写法，并提示未知键。"""

    normalized: dict[str, Any] = {}
    for key, value in payload.items():
        name = _KEY_ALIASES.get(key, key)
        if name not in ("debug_mode", "allow_duplicates"):
            LOG.warning("Ignoring unknown bus config key: %s", key)
            continue
        normalized[name] = value
    return normalized


def _to_bool(value: Any) -> bool:
    """宽松地解析布尔值，兼容 "true"/"0" 等字符串写法。"""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


__all__ = ["BusConfig"]
