# app/state/registry.py

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from app.core.errors import TargetUnresolvable
from app.models.device import DeviceProps, ProgramId

log = logging.getLogger("devices.registry")


@runtime_checkable
class DeviceController(Protocol):
    """
    Handle de um controller vivo. A implementação (protocolo de rede)
    é de quem faz o discovery.
    """

    @property
    def props(self) -> DeviceProps: ...

    async def reload(self) -> None: ...

    async def get_program_binary(self, program_id: ProgramId, extension: str = "") -> bytes: ...

    async def put_program_binary(self, program_id: ProgramId, data: bytes) -> None: ...

    async def delete_program(self, program_id: ProgramId) -> None: ...

    async def set_command(self, command: Dict[str, Any]) -> None: ...


@dataclass
class DeviceEntry:
    id: str
    address: str
    controller: Optional[DeviceController] = None
    last_seen: float = field(default_factory=lambda: time.time() * 1000)

    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "address": self.address,
            "lastSeen": self.last_seen,
        }
        if self.controller is not None:
            data.update(self.controller.props.model_dump())
        return data


class DeviceRegistry:
    """
    Mapa device id -> entrada viva.

    - Injetado nos serviços (não é global)
    - Só o discovery escreve (upsert/remove)
    - O core só lê
    """

    def __init__(self) -> None:
        self._entries: Dict[str, DeviceEntry] = {}

    # =========================
    # DISCOVERY (escrita)
    # =========================

    def upsert(
        self,
        device_id: object,
        address: str,
        controller: Optional[DeviceController],
        last_seen: Optional[float] = None,
    ) -> DeviceEntry:
        key = str(device_id)
        entry = DeviceEntry(id=key, address=address, controller=controller)
        if last_seen is not None:
            entry.last_seen = last_seen
        self._entries[key] = entry
        return entry

    def remove(self, device_id: object) -> None:
        self._entries.pop(str(device_id), None)

    # =========================
    # LEITURA
    # =========================

    def ids(self) -> List[str]:
        return list(self._entries)

    def get(self, device_id: object) -> Optional[DeviceEntry]:
        return self._entries.get(str(device_id))

    def controller(self, device_id: object) -> Optional[DeviceController]:
        entry = self.get(device_id)
        return entry.controller if entry else None

    def require_controller(self, device_id: object) -> DeviceController:
        controller = self.controller(device_id)
        if controller is None:
            raise TargetUnresolvable(str(device_id))
        return controller

    def list_devices(self) -> List[Dict[str, Any]]:
        return [entry.snapshot() for entry in list(self._entries.values())]

    # =========================
    # BROADCAST
    # =========================

    async def reload_all(self) -> int:
        """
        Pede reload para todos os controllers. Falhas individuais só vão pro log.
        """
        targets = [
            (entry.id, entry.controller)
            for entry in list(self._entries.values())
            if entry.controller is not None
        ]
        results = await asyncio.gather(
            *(controller.reload() for _, controller in targets),
            return_exceptions=True,
        )
        for (device_id, _), result in zip(targets, results):
            if isinstance(result, Exception):
                log.warning(
                    "device_reload_failed",
                    extra={"deviceId": device_id, "err": str(result)},
                )
        return len(targets)
