"""Página estática del tracker servida en la raíz."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from tracker.core.config import Settings, get_settings

router = APIRouter(tags=["pages"])

MIME_TYPES = {
    ".html": "text/html",
    ".js": "text/javascript",
    ".css": "text/css",
}


def get_mime_type(path: Path) -> str:
    """Tipo MIME según la extensión; `text/plain` para lo desconocido."""
    return MIME_TYPES.get(path.suffix.lower(), "text/plain")


@router.api_route("/", methods=["GET", "HEAD"], include_in_schema=False)
@router.api_route("/index.html", methods=["GET", "HEAD"], include_in_schema=False)
def index(settings: Settings = Depends(get_settings)):
    path = settings.index_path
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return FileResponse(path=path, media_type=get_mime_type(path))
