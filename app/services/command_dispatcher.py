# app/services/command_dispatcher.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from app.core.errors import InvalidRequest, MetadataLookupFailed, TargetUnresolvable
from app.models.wicket import WICKET_METADATA, WicketMetadata, lookup_wicket_metadata
from app.services.notifier import BestEffortNotifier
from app.state.registry import DeviceController, DeviceRegistry

log = logging.getLogger("orchestrator.command")

PROGRAM_NAME_KEY = "programName"


@dataclass
class DispatchReport:
    dispatched: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    augmented: List[str] = field(default_factory=list)


def augment_command(command: Mapping[str, Any], meta: WicketMetadata) -> Dict[str, Any]:
    """
    Cópia do comando com `setVars` ganhando myLoc / myStartingPixel /
    myPlayOrderLocs. O comando original não é tocado.

    `setVars` que não é um mapping é substituído pelas vars do wicket.
    """
    out = dict(command)
    current = command.get("setVars")
    set_vars = dict(current) if isinstance(current, Mapping) else {}
    set_vars.update(meta.as_vars())
    out["setVars"] = set_vars
    return out


class CommandDispatcher:
    """
    Fan-out de comando para vários controllers.

    O envio é fire-and-forget por device: `dispatch` retorna assim que
    todos os envios foram disparados, falha individual só vai pro log.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        notifier: Optional[BestEffortNotifier] = None,
        metadata: Mapping[str, WicketMetadata] = WICKET_METADATA,
    ) -> None:
        self.registry = registry
        self.notifier = notifier or BestEffortNotifier()
        self.metadata = metadata

    async def dispatch(self, ids: Any, command: Any) -> DispatchReport:
        if not ids or not isinstance(ids, (list, tuple)):
            raise InvalidRequest("missing ids or command")
        if not command or not isinstance(command, Mapping):
            raise InvalidRequest("missing ids or command")

        report = DispatchReport()

        for raw_id in ids:
            device_id = str(raw_id)
            try:
                controller = self.registry.require_controller(device_id)
            except TargetUnresolvable:
                report.skipped.append(device_id)
                continue

            payload = self._command_for(device_id, controller, command)
            if payload is not command:
                report.augmented.append(device_id)

            self.notifier.spawn(
                f"set_command:{device_id}",
                lambda c=controller, p=payload: c.set_command(p),
            )
            report.dispatched.append(device_id)

        log.info(
            "command_dispatched",
            extra={"dispatched": report.dispatched, "skipped": report.skipped},
        )
        return report

    def _command_for(
        self,
        device_id: str,
        controller: DeviceController,
        command: Mapping[str, Any],
    ) -> Mapping[str, Any]:
        if PROGRAM_NAME_KEY not in command:
            return command

        device_name: Optional[str] = controller.props.name
        try:
            meta = lookup_wicket_metadata(device_name, self.metadata)
        except MetadataLookupFailed:
            log.warning("wicket_metadata_missing", extra={"deviceId": device_id, "deviceName": device_name})
            return command

        payload = augment_command(command, meta)
        log.debug("command_augmented", extra={"deviceId": device_id, "command": payload})
        return payload
