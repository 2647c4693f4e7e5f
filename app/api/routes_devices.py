from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_registry
from app.state.registry import DeviceRegistry

router = APIRouter(tags=["devices"])


@router.get("/discover")
async def discover(registry: DeviceRegistry = Depends(get_registry)):
    return registry.list_devices()


@router.post("/reload")
async def reload_all(registry: DeviceRegistry = Depends(get_registry)):
    count = await registry.reload_all()
    return {"ok": True, "devices": count}
