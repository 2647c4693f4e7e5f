"""Shared fixtures: fake controllers and instant sleeps."""

from __future__ import annotations

import pytest

from app.services.export import ExportPipeline
from app.services.notifier import BestEffortNotifier
from app.services.reconciliation import ReconciliationEngine
from app.services.retry import RetryExecutor, RetryPolicy
from app.services.settle import FixedDelaySettle
from app.state.registry import DeviceRegistry

from tests.fakes import SleepRecorder


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def registry() -> DeviceRegistry:
    return DeviceRegistry()


@pytest.fixture
def retry(sleep: SleepRecorder) -> RetryExecutor:
    return RetryExecutor(RetryPolicy(max_retries=5, initial_delay_s=0.05, retry_delay_s=0.1), sleep=sleep)


@pytest.fixture
def notifier() -> BestEffortNotifier:
    return BestEffortNotifier()


@pytest.fixture
def engine(
    registry: DeviceRegistry,
    retry: RetryExecutor,
    sleep: SleepRecorder,
    notifier: BestEffortNotifier,
) -> ReconciliationEngine:
    return ReconciliationEngine(
        registry,
        retry=retry,
        settle=FixedDelaySettle(0.25, sleep=sleep),
        notifier=notifier,
    )


@pytest.fixture
def exporter(registry: DeviceRegistry, retry: RetryExecutor, sleep: SleepRecorder) -> ExportPipeline:
    return ExportPipeline(registry, retry=retry, settle=FixedDelaySettle(0.25, sleep=sleep))
