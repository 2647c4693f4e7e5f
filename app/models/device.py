from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ProgramId = Union[str, int]


class ProgramInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: ProgramId
    name: Optional[str] = None


class DeviceProps(BaseModel):
    """
    Snapshot das propriedades reportadas pelo controller.
    Campos desconhecidos (ver, brightness, ...) são preservados.
    """

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    programList: List[ProgramInfo] = Field(default_factory=list)

    def program_ids(self) -> List[ProgramId]:
        return [p.id for p in self.programList]


class CommandRequest(BaseModel):
    ids: Optional[List[ProgramId]] = None
    command: Optional[Dict[str, Any]] = None


class CloneRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: Optional[ProgramId] = Field(default=None, alias="from")
    to: Optional[List[ProgramId]] = None
