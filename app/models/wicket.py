# app/models/wicket.py
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from app.core.errors import MetadataLookupFailed


class WicketMetadata(BaseModel):
    """
    `loc` e `startingPixel` são a posição numa fita 1D virtual, contando
    cada wicket só na primeira vez que é visitado.
    `playOrderLocs` é a ordem real (0-based) das visitas num jogo completo;
    um wicket pode ser visitado mais de uma vez.
    """

    model_config = ConfigDict(frozen=True)

    loc: int
    startingPixel: int
    playOrderLocs: Tuple[int, ...]

    def as_vars(self) -> dict:
        return {
            "myLoc": self.loc,
            "myStartingPixel": self.startingPixel,
            "myPlayOrderLocs": list(self.playOrderLocs),
        }


def _w(loc: int, starting_pixel: int, *play_order: int) -> WicketMetadata:
    return WicketMetadata(loc=loc, startingPixel=starting_pixel, playOrderLocs=play_order)


WICKET_METADATA: Mapping[str, WicketMetadata] = MappingProxyType({
    "Croquetia1": _w(0, 0, 0, 15),
    "Croquetia3": _w(1, 18, 1, 14),
    "Croquetia4": _w(2, 56, 2, 13),
    "Croquetia5": _w(3, 94, 3),
    "Croquetia6": _w(4, 132, 4, 12),
    "Croquetia7": _w(5, 170, 5),
    "Croquetia8": _w(6, 208, 6, 10),
    "Croquetia9": _w(7, 246, 7, 9),
    "Croquetia2": _w(8, 284, 8),
    "Croquetia10": _w(9, 302, 11),
    "Croquetia11": _w(10, 340, 13),
})


def lookup_wicket_metadata(
    device_name: Optional[str],
    table: Mapping[str, WicketMetadata] = WICKET_METADATA,
) -> WicketMetadata:
    meta = table.get(device_name) if device_name else None
    if meta is None:
        raise MetadataLookupFailed(device_name)
    return meta
