# app/services/settle.py

"""
Espera o controller terminar o refresh da lista de programs.

O reload é assíncrono e o controller não avisa quando acabou,
então o padrão é um delay fixo (heurística: pode falhar com device lento).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Protocol, Sequence

from app.core.config import Settings
from app.services.retry import Sleep
from app.state.registry import DeviceController

log = logging.getLogger("orchestrator.settle")


class SettleStrategy(Protocol):
    async def wait(self, controllers: Sequence[DeviceController]) -> None: ...


class FixedDelaySettle:
    def __init__(self, delay_s: float = 0.25, sleep: Sleep = asyncio.sleep) -> None:
        self.delay_s = delay_s
        self._sleep = sleep

    async def wait(self, controllers: Sequence[DeviceController]) -> None:
        await self._sleep(self.delay_s)


class PollUntilStableSettle:
    """
    Lê as listas de programs até ficarem iguais por `stable_polls`
    leituras seguidas, ou até estourar `timeout_s` (aí segue mesmo assim).
    """

    def __init__(
        self,
        interval_s: float = 0.1,
        timeout_s: float = 2.0,
        stable_polls: int = 2,
        sleep: Sleep = asyncio.sleep,
        clock=time.monotonic,
    ) -> None:
        self.interval_s = interval_s
        self.timeout_s = timeout_s
        self.stable_polls = max(1, stable_polls)
        self._sleep = sleep
        self._clock = clock

    @staticmethod
    def _fingerprint(controllers: Sequence[DeviceController]) -> List[list]:
        return [c.props.program_ids() for c in controllers]

    async def wait(self, controllers: Sequence[DeviceController]) -> None:
        deadline = self._clock() + self.timeout_s
        last = self._fingerprint(controllers)
        stable = 0

        while stable < self.stable_polls:
            if self._clock() >= deadline:
                log.warning(
                    "settle_timeout",
                    extra={"timeout_s": self.timeout_s, "devices": len(controllers)},
                )
                return
            await self._sleep(self.interval_s)
            current = self._fingerprint(controllers)
            stable = stable + 1 if current == last else 0
            last = current


def build_settle_strategy(settings: Settings, sleep: Sleep = asyncio.sleep) -> SettleStrategy:
    if settings.settle_strategy == "poll":
        return PollUntilStableSettle(
            interval_s=settings.settle_poll_interval_s,
            timeout_s=settings.settle_timeout_s,
            stable_polls=settings.settle_stable_polls,
            sleep=sleep,
        )
    return FixedDelaySettle(settings.settle_delay_s, sleep=sleep)
