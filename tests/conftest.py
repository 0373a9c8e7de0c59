"""Shared fixtures for msgbus tests."""

import logging
from typing import List

import pytest

from msgbus import Bus, BusConfig, BusError, QueueScheduler

logging.getLogger("msgbus").setLevel(logging.DEBUG)


@pytest.fixture
def scheduler() -> QueueScheduler:
    return QueueScheduler()


@pytest.fixture
def bus(scheduler: QueueScheduler) -> Bus:
    return Bus(scheduler=scheduler)


@pytest.fixture
def debug_bus(scheduler: QueueScheduler) -> Bus:
    return Bus(BusConfig(debug_mode=True), scheduler=scheduler)


@pytest.fixture
def diagnostics(debug_bus: Bus) -> List[BusError]:
    """Collect every diagnostic the debug bus reports."""
    received: List[BusError] = []

    def _collect(diagnostic: BusError) -> None:
        received.append(diagnostic)

    debug_bus.on_diagnostic(_collect)
    return received
