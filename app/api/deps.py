from __future__ import annotations

from fastapi import HTTPException, Request

from app.core.errors import OrchestrationError
from app.services.command_dispatcher import CommandDispatcher
from app.services.export import ExportPipeline
from app.services.reconciliation import ReconciliationEngine
from app.state.registry import DeviceRegistry


# =========================
# REGISTRY
# =========================

def get_registry(request: Request) -> DeviceRegistry:
    return request.app.state.registry


# =========================
# ORCHESTRATORS
# =========================

def get_dispatcher(request: Request) -> CommandDispatcher:
    return request.app.state.dispatcher


def get_reconciler(request: Request) -> ReconciliationEngine:
    return request.app.state.reconciler


def get_exporter(request: Request) -> ExportPipeline:
    return request.app.state.exporter


# =========================
# ERRORS
# =========================

def to_http(err: OrchestrationError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=err.message)
