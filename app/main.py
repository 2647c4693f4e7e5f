from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, settings as default_settings
from app.core.logging import setup_logging

from app.state.registry import DeviceRegistry

from app.services.command_dispatcher import CommandDispatcher
from app.services.export import ExportPipeline
from app.services.notifier import BestEffortNotifier
from app.services.reconciliation import ReconciliationEngine
from app.services.retry import RetryExecutor, RetryPolicy
from app.services.settle import build_settle_strategy

from app.api.routes_command import router as command_router
from app.api.routes_devices import router as devices_router
from app.api.routes_programs import router as programs_router

log = logging.getLogger("app")


def wire_services(app: FastAPI, registry: DeviceRegistry, settings: Settings) -> None:
    retry = RetryExecutor(RetryPolicy.from_settings(settings))
    settle = build_settle_strategy(settings)
    notifier = BestEffortNotifier()

    app.state.settings = settings
    app.state.registry = registry
    app.state.notifier = notifier
    app.state.dispatcher = CommandDispatcher(registry, notifier=notifier)
    app.state.reconciler = ReconciliationEngine(registry, retry=retry, settle=settle, notifier=notifier)
    app.state.exporter = ExportPipeline(
        registry,
        retry=retry,
        settle=settle,
        controls_suffix=settings.controls_suffix,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    log.info("app_starting", extra={"env": settings.app_env})

    try:
        yield
    finally:
        # reloads pendentes do clone
        try:
            await app.state.notifier.drain()
        except Exception:
            log.exception("error_draining_notifier")
        log.info("app_stopped")


def create_app(
    registry: Optional[DeviceRegistry] = None,
    settings: Settings = default_settings,
) -> FastAPI:
    """
    O registry é injetado: o discovery (externo) recebe a mesma instância
    e faz upsert/remove dos controllers.
    """
    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    wire_services(app, registry if registry is not None else DeviceRegistry(), settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(devices_router)
    app.include_router(command_router)
    app.include_router(programs_router)

    @app.get("/health")
    def health():
        return {
            "ok": True,
            "app": settings.app_name,
            "env": settings.app_env,
            "devices": len(app.state.registry.ids()),
        }

    return app


app = create_app()
