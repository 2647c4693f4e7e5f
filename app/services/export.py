# app/services/export.py

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from app.core.errors import InvalidRequest, SourceNotFound
from app.services.reconciliation import call_device
from app.services.retry import RetryExecutor
from app.services.settle import FixedDelaySettle, SettleStrategy
from app.state.registry import DeviceRegistry

log = logging.getLogger("orchestrator.export")

ExportFile = Tuple[str, bytes]


class ExportPipeline:
    """
    Baixa todos os programs de UM controller, estritamente em sequência.

    Cada program vira `(id, data)`; os controls viram `(id + suffix, data)`
    só quando não vierem vazios. Qualquer falha aborta tudo.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        retry: Optional[RetryExecutor] = None,
        settle: Optional[SettleStrategy] = None,
        controls_suffix: str = ".c",
    ) -> None:
        self.registry = registry
        self.retry = retry or RetryExecutor()
        self.settle = settle or FixedDelaySettle()
        self.controls_suffix = controls_suffix

    async def export_all(self, source_id: Any) -> List[ExportFile]:
        if source_id is None or str(source_id) == "":
            raise InvalidRequest("missing sourceId")

        device_id = str(source_id)
        source = self.registry.controller(device_id)
        if source is None:
            raise SourceNotFound(device_id)

        await call_device(self.retry, device_id, "reload", source.reload)
        await self.settle.wait([source])

        program_ids = source.props.program_ids()
        log.info("export_started", extra={"deviceId": device_id, "programs": len(program_ids)})

        files: List[ExportFile] = []
        for program_id in program_ids:
            data = await call_device(
                self.retry,
                device_id,
                "get_program_binary",
                lambda pid=program_id: source.get_program_binary(pid),
                program_id,
            )
            files.append((str(program_id), data))

            controls = await call_device(
                self.retry,
                device_id,
                "get_program_binary",
                lambda pid=program_id: source.get_program_binary(pid, self.controls_suffix),
                program_id,
            )
            if controls:
                files.append((f"{program_id}{self.controls_suffix}", controls))

        log.info("export_completed", extra={"deviceId": device_id, "files": len(files)})
        return files
