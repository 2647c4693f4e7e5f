# app/services/retry.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from app.core.config import Settings

log = logging.getLogger("orchestrator.retry")

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 5
    initial_delay_s: float = 0.05
    retry_delay_s: float = 0.1

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.retry_max_retries,
            initial_delay_s=settings.retry_initial_delay_s,
            retry_delay_s=settings.retry_delay_s,
        )


class RetryExecutor:
    """
    Retry com limite e delays fixos.

    - Espera `initial_delay_s` antes de TODA tentativa (inclusive a primeira)
    - Em falha, espera `retry_delay_s` se ainda houver tentativa
    - Total de tentativas = 1 + max_retries
    - Esgotou: relança o ÚLTIMO erro
    """

    def __init__(self, policy: Optional[RetryPolicy] = None, sleep: Sleep = asyncio.sleep) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: Optional[int] = None,
        initial_delay_s: Optional[float] = None,
        retry_delay_s: Optional[float] = None,
    ) -> T:
        retries = self.policy.max_retries if max_retries is None else max_retries
        initial = self.policy.initial_delay_s if initial_delay_s is None else initial_delay_s
        backoff = self.policy.retry_delay_s if retry_delay_s is None else retry_delay_s

        attempts = 1 + max(0, retries)
        attempt = 0

        while True:
            attempt += 1
            await self._sleep(initial)
            try:
                return await operation()
            except Exception as e:
                log.debug(
                    "retry_attempt_failed",
                    extra={"attempt": attempt, "attempts": attempts, "err": repr(e)},
                )
                if attempt >= attempts:
                    # esgotou: o último erro é o que sobe
                    log.warning("retry_exhausted", extra={"attempts": attempts, "err": repr(e)})
                    raise
            await self._sleep(backoff)
