# app/services/notifier.py

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Set

log = logging.getLogger("orchestrator.notifier")


class BestEffortNotifier:
    """
    Efeitos colaterais "fire-and-forget" (ex: reload depois do clone).

    - Roda em background, quem chamou não espera
    - Falha vai pro log e morre aqui: NUNCA chega em quem chamou
    - Guarda referência das tasks até terminarem
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, label: str, factory: Callable[[], Awaitable[object]]) -> asyncio.Task:
        task = asyncio.create_task(self._run(label, factory))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, label: str, factory: Callable[[], Awaitable[object]]) -> None:
        try:
            await factory()
        except Exception as e:
            log.warning("notify_failed", extra={"label": label, "err": repr(e)})

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
