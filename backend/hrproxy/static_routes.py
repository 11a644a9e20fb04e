"""Same-origin front-end: the entry document, its aliases and a client-side-routing fallback."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from .config import Settings

INDEX_DOCUMENT = "index.html"
RESERVED_PREFIXES = frozenset({"api", "health"})


def _index_response(static_dir: Path) -> FileResponse:
    index = static_dir / INDEX_DOCUMENT
    if not index.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{INDEX_DOCUMENT} not found")
    return FileResponse(index, media_type="text/html")


def resolve_static_file(static_dir: Path, relative: str) -> Optional[Path]:
    """Return the file under ``static_dir`` named by ``relative``; None if absent or outside it."""
    root = static_dir.resolve()
    candidate = (root / relative).resolve()
    if root not in candidate.parents or not candidate.is_file():
        return None
    return candidate


def is_reserved(path: str) -> bool:
    return path.strip("/").split("/", 1)[0] in RESERVED_PREFIXES


def has_extension(path: str) -> bool:
    return "." in path.rstrip("/").rsplit("/", 1)[-1]


def build_static_router(settings: Settings) -> APIRouter:
    """Routes for ``/``, every configured alias and the catch-all fallback.

    Include this router after the API routers so the fallback never shadows them.
    """
    router = APIRouter(tags=["static"])
    static_dir = settings.static_dir

    async def serve_index() -> FileResponse:
        return _index_response(static_dir)

    router.add_api_route("/", serve_index, methods=["GET"], include_in_schema=False)
    for alias in settings.static_aliases:
        path = "/" + alias.strip("/")
        if path != "/":
            router.add_api_route(path, serve_index, methods=["GET"], include_in_schema=False)

    @router.get("/{full_path:path}", include_in_schema=False)
    async def spa_fallback(full_path: str) -> FileResponse:
        if is_reserved(full_path):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
        if has_extension(full_path):
            target = resolve_static_file(static_dir, full_path)
            if target is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
            return FileResponse(target)
        return _index_response(static_dir)

    return router


__all__ = ["build_static_router", "has_extension", "is_reserved", "resolve_static_file"]
