"""命令行示例：订阅一个主题并发布若干条消息，便于手动验证总线行为。"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .bus import Bus
from .config import BusConfig
from .runtime import load_config, make_diagnostic_logger, make_message_logger, setup_basic_logging
from .scheduling import AsyncioScheduler, QueueScheduler

LOG = logging.getLogger("msgbus.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="msgbus", description="In-process publish/subscribe demo")
    parser.add_argument("topic", help="topic to subscribe and publish on")
    parser.add_argument("payload", nargs="*", help="payloads to publish, one message each")
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")
    parser.add_argument("--debug", action="store_true", help="enable debug_mode diagnostics")
    parser.add_argument("--allow-duplicates", action="store_true", help="allow duplicate subscriptions")
    parser.add_argument("--sync", action="store_true", help="publish synchronously")
    parser.add_argument("--log-level", default="INFO", help="logging level name")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """解析参数、构造总线并发布消息，全部发布成功时返回 0。"""

    args = build_parser().parse_args(argv)
    setup_basic_logging(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    config, _ = load_config(args.config)
    overrides = {}
    if args.debug:
        overrides["debug_mode"] = True
    if args.allow_duplicates:
        overrides["allow_duplicates"] = True
    config = config.merged(overrides)
    LOG.info("Starting bus v%s with %s", Bus.VERSION, config.as_dict())

    if args.sync:
        scheduler = QueueScheduler()
        results = _run(Bus(config, scheduler=scheduler), args.topic, args.payload, sync=True)
        scheduler.run_pending()
    else:
        results = asyncio.run(_run_async(config, args.topic, args.payload))
    LOG.info("Published %d message(s) on %s", len(results), args.topic)
    return 0 if all(results) else 1


async def _run_async(config: BusConfig, topic: str, payloads: Sequence[str]) -> List[bool]:
    bus = Bus(config, scheduler=AsyncioScheduler(asyncio.get_running_loop()))
    results = _run(bus, topic, payloads, sync=False)
    # 第一轮执行投递，第二轮执行投递中产生的诊断
    for _ in range(2):
        await asyncio.sleep(0)
    return results


def _run(bus: Bus, topic: str, payloads: Sequence[str], *, sync: bool) -> List[bool]:
    bus.on_diagnostic(make_diagnostic_logger())
    message_logger = make_message_logger()
    subscription = bus.subscribe(topic, message_logger)
    if subscription is None:
        LOG.warning("Subscription to %r was rejected", topic)
    publish = bus.publish_sync if sync else bus.publish
    return [bool(publish(topic, payload)) for payload in payloads]
