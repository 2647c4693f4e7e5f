# app/api/routes_programs.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.api.deps import get_exporter, get_reconciler, get_registry, to_http
from app.core.errors import OrchestrationError
from app.models.device import CloneRequest
from app.services.archive import archive_name, build_zip, content_disposition
from app.services.export import ExportPipeline
from app.services.reconciliation import ReconciliationEngine
from app.state.registry import DeviceRegistry

log = logging.getLogger("api.programs")

router = APIRouter(tags=["programs"])


# =====================================================
# CLONE: deixa os destinos iguais à origem
# =====================================================
@router.post("/clonePrograms")
async def clone_programs(
    body: CloneRequest,
    reconciler: ReconciliationEngine = Depends(get_reconciler),
):
    log.info("clone_programs", extra={"from": body.source, "to": body.to})
    try:
        op = await reconciler.reconcile(body.source, body.to)
    except OrchestrationError as e:
        if e.status_code >= 500:
            log.exception("clone_programs_failed")
        raise to_http(e)
    return {"ok": True, "copied": len(op.copied), "skipped": op.skipped}


# =====================================================
# DUMP: zip com o binário de todos os programs
# =====================================================
@router.get("/controllers/{sourceId}/dump")
async def dump_programs(
    sourceId: str,
    exporter: ExportPipeline = Depends(get_exporter),
    registry: DeviceRegistry = Depends(get_registry),
):
    try:
        files = await exporter.export_all(sourceId)
    except OrchestrationError as e:
        if e.status_code >= 500:
            log.exception("dump_programs_failed", extra={"deviceId": sourceId})
        raise to_http(e)

    # só chega aqui se TODOS os binários vieram
    controller = registry.controller(sourceId)
    filename = archive_name(sourceId, controller.props if controller else None)
    return Response(
        content=build_zip(files),
        media_type="application/zip",
        headers={"Content-Disposition": content_disposition(filename)},
    )
