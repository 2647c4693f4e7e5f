from __future__ import annotations

import io
import zipfile
from typing import Iterable, Optional, Tuple
from urllib.parse import quote

from app.models.device import DeviceProps


def archive_name(source_id: str, props: Optional[DeviceProps]) -> str:
    root = (props.name if props else None) or f"Pixelblaze_{source_id}"
    return f"{root}.zip"


def content_disposition(filename: str) -> str:
    """
    Header de download. Nome fora de ASCII (ou com aspas) vai em
    `filename*` (RFC 5987) com um fallback ASCII em `filename`.
    """
    quoted = quote(filename, safe="")
    if quoted == filename:
        return f'attachment; filename="{filename}"'

    fallback = (
        filename.encode("ascii", "replace").decode("ascii")
        .replace("\\", "_")
        .replace('"', "_")
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quoted}"


def build_zip(files: Iterable[Tuple[str, bytes]]) -> bytes:
    """
    Empacota os arquivos num zip em memória, com os nomes exatamente como vieram.
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in files:
            zf.writestr(name, data)
    return buf.getvalue()
