# app/api/routes_command.py
from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_dispatcher, to_http
from app.core.errors import InvalidRequest
from app.models.device import CommandRequest
from app.services.command_dispatcher import CommandDispatcher

router = APIRouter(tags=["command"])


@router.post("/command")
async def post_command(
    body: CommandRequest,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    try:
        await dispatcher.dispatch(body.ids, body.command)
    except InvalidRequest as e:
        raise to_http(e)
    return {"ok": True}


# =====================================================
# GET /command?ids=1,2&command={"programName": "..."}
# =====================================================
@router.get("/command")
async def get_command(
    ids: Optional[str] = None,
    command: Optional[str] = None,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    if not ids or not command:
        raise HTTPException(status_code=400, detail="missing ids or command")

    try:
        parsed = json.loads(command)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail=f"unable to parse json: {command}")

    try:
        await dispatcher.dispatch(ids.split(","), parsed)
    except InvalidRequest as e:
        raise to_http(e)
    return {"ok": True}
