"""应用运行期的通用辅助工具：日志初始化、配置载入与示例处理器。"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Tuple

from .config import BusConfig
from .errors import BusError

LOG = logging.getLogger(__name__)


def setup_basic_logging(level: int = logging.INFO, fmt: Optional[str] = None) -> None:
    """配置项目默认的日志输出格式与等级。"""

    format_string = fmt or "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=format_string)


def default_config_path(app_root: Optional[Path] = None) -> Path:
    """返回总线配置文件的默认路径。"""

    base = app_root or Path(__file__).resolve().parents[1]
    return base / "msgbus" / "config.json"


def load_config(config_path: Optional[Path] = None) -> Tuple[BusConfig, Path]:
    """读取总线配置文件，若不存在或解析失败则返回默认配置。"""

    path = Path(config_path or default_config_path()).resolve()
    config_dir = path.parent
    if path.exists():
        try:
            return BusConfig.from_file(path), config_dir
        except (OSError, ValueError, json.JSONDecodeError) as exc:
            LOG.error("读取总线配置失败: %s", exc, exc_info=True)
    else:
        LOG.debug("Bus config %s not found; using defaults", path)
    return BusConfig(), config_dir


def make_diagnostic_logger(logger_name: str = "msgbus.diagnostic"):
    """生成诊断事件的日志处理器。"""

    log = logging.getLogger(logger_name)

    def _handler(diagnostic: BusError) -> None:
        log.warning("kind=%s topic=%r detail=%s", diagnostic.kind, diagnostic.topic, diagnostic)

    return _handler


def make_message_logger(logger_name: str = "msgbus.message"):
    """生成打印收到消息的订阅者。"""

    log = logging.getLogger(logger_name)

    def _handler(topic: str, payload: Any = None) -> None:
        log.info("topic=%s payload=%s", topic, payload)

    return _handler
