# app/services/reconciliation.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from app.core.errors import DeviceOperationFailed, InvalidRequest, SourceNotFound
from app.models.device import ProgramId
from app.services.notifier import BestEffortNotifier
from app.services.retry import RetryExecutor
from app.services.settle import FixedDelaySettle, SettleStrategy
from app.state.registry import DeviceController, DeviceRegistry

log = logging.getLogger("orchestrator.reconcile")

T = TypeVar("T")


# =========================
# OPERATION (por chamada)
# =========================

@dataclass
class SyncOperation:
    source_id: str
    destination_ids: List[str]
    source_keys: List[ProgramId] = field(default_factory=list)
    keys_to_remove: Dict[str, List[ProgramId]] = field(default_factory=dict)
    copied: List[ProgramId] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


async def call_device(
    retry: RetryExecutor,
    device_id: str,
    operation: str,
    fn: Callable[[], Awaitable[T]],
    program_id: Optional[ProgramId] = None,
) -> T:
    """
    Chamada de rede via retry; esgotou -> DeviceOperationFailed.
    """
    try:
        return await retry.execute(fn)
    except Exception as e:
        log.error(
            "device_operation_failed",
            extra={"deviceId": device_id, "op": operation, "programId": program_id, "err": repr(e)},
        )
        raise DeviceOperationFailed(device_id, operation, program_id) from e


async def gather_all(aws: Sequence[Awaitable[Any]]) -> List[Any]:
    """
    Espera TODOS terminarem e só depois relança a primeira falha
    (nada fica rodando solto depois que a operação aborta).
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


def _normalize_ids(ids: Sequence[Any]) -> List[str]:
    out: List[str] = []
    for raw in ids:
        key = str(raw)
        if key not in out:
            out.append(key)
    return out


# =========================
# ENGINE
# =========================

class ReconciliationEngine:
    """
    Deixa o conjunto de programs de cada destino igual ao da origem.

    Fases:
    1. reload (origem + destinos) e settle
    2. delete dos extras: destinos em paralelo, cada destino sequencial
    3. barreira
    4. copy: um program id por vez, push em paralelo para os destinos
    5. reload dos destinos (best-effort)

    Falha no meio NÃO desfaz o que já foi aplicado.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        retry: Optional[RetryExecutor] = None,
        settle: Optional[SettleStrategy] = None,
        notifier: Optional[BestEffortNotifier] = None,
    ) -> None:
        self.registry = registry
        self.retry = retry or RetryExecutor()
        self.settle = settle or FixedDelaySettle()
        self.notifier = notifier or BestEffortNotifier()

    async def reconcile(self, source_id: Any, destination_ids: Any) -> SyncOperation:
        if source_id is None or source_id == "" or destination_ids is None:
            raise InvalidRequest("missing from or to")
        if not isinstance(destination_ids, (list, tuple)):
            raise InvalidRequest("to must be a list of device ids")

        op = SyncOperation(source_id=str(source_id), destination_ids=_normalize_ids(destination_ids))

        source = self.registry.controller(op.source_id)
        if source is None:
            raise SourceNotFound(op.source_id)

        destinations: List[Tuple[str, DeviceController]] = []
        for dest_id in op.destination_ids:
            controller = self.registry.controller(dest_id)
            if controller is None:
                log.debug("destination_unresolvable", extra={"deviceId": dest_id})
                op.skipped.append(dest_id)
                continue
            destinations.append((dest_id, controller))

        log.info(
            "reconcile_started",
            extra={"source": op.source_id, "destinations": [d for d, _ in destinations]},
        )

        # não trabalhar em cima de snapshot velho
        await gather_all([
            call_device(self.retry, device_id, "reload", controller.reload)
            for device_id, controller in [(op.source_id, source), *destinations]
        ])
        await self.settle.wait([source, *(c for _, c in destinations)])

        op.source_keys = source.props.program_ids()

        await gather_all([
            self._delete_extras(op, dest_id, controller)
            for dest_id, controller in destinations
        ])

        for program_id in op.source_keys:
            data = await call_device(
                self.retry,
                op.source_id,
                "get_program_binary",
                lambda pid=program_id: source.get_program_binary(pid),
                program_id,
            )
            await gather_all([
                call_device(
                    self.retry,
                    dest_id,
                    "put_program_binary",
                    lambda c=controller, pid=program_id: c.put_program_binary(pid, data),
                    program_id,
                )
                for dest_id, controller in destinations
            ])
            op.copied.append(program_id)

        for dest_id, controller in destinations:
            self.notifier.spawn(f"reload:{dest_id}", controller.reload)

        log.info(
            "reconcile_completed",
            extra={"source": op.source_id, "programs": len(op.copied)},
        )
        return op

    async def _delete_extras(self, op: SyncOperation, dest_id: str, controller: DeviceController) -> None:
        dest_keys = controller.props.program_ids()
        keys_to_remove = [k for k in dest_keys if k not in op.source_keys]
        op.keys_to_remove[dest_id] = keys_to_remove

        log.info(
            "reconcile_diff",
            extra={"deviceId": dest_id, "destKeys": dest_keys, "keysToRemove": keys_to_remove},
        )

        # um por vez para não afogar o controller
        for program_id in keys_to_remove:
            await call_device(
                self.retry,
                dest_id,
                "delete_program",
                lambda pid=program_id: controller.delete_program(pid),
                program_id,
            )
