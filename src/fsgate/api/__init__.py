"""HTTP surface for fsgate.

create_app() wires the file routes and action routes onto one FastAPI app
and maps the error taxonomy onto status codes.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fsgate import __version__
from fsgate.core.config import ConfigResolver
from fsgate.core.errors import FsGateError, NotFoundError, UnsupportedFormatError, ValidationError
from fsgate.core.logging import get_logger
from fsgate.file_io import FileService
from fsgate.file_io.ops import AlreadyExistsError

from .actions import mount_actions
from .fs import mount_fs

log = get_logger(__name__)


def _status_for(exc: FsGateError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (UnsupportedFormatError, ValidationError)):
        return 400
    if isinstance(exc, AlreadyExistsError):
        return 409
    return 500


def _ascii_detail(text: str) -> str:
    return (text or "").encode("ascii", "backslashreplace").decode("ascii")


def create_app(
    resolver: ConfigResolver | None = None, *, file_service: FileService | None = None
) -> FastAPI:
    app = FastAPI(title="fsgate", version=__version__)
    app.state.config_resolver = resolver or ConfigResolver()
    if file_service is not None:
        app.state.file_service = file_service

    @app.exception_handler(FsGateError)
    async def _fsgate_error(request: Request, exc: FsGateError) -> JSONResponse:
        status = _status_for(exc)
        if status >= 500:
            log.error(f"{request.method} {request.url.path}: {exc.message}")
        body = {"success": False, "error": _ascii_detail(exc.message)}
        if exc.suggestion:
            body["suggestion"] = _ascii_detail(exc.suggestion)
        return JSONResponse(status_code=status, content=body)

    @app.exception_handler(FileNotFoundError)
    async def _file_not_found(request: Request, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"success": False, "error": "not found"})

    @app.exception_handler(OSError)
    async def _os_error(request: Request, exc: OSError) -> JSONResponse:
        log.error(f"{request.method} {request.url.path}: {type(exc).__name__}: {exc}")
        return JSONResponse(
            status_code=500, content={"success": False, "error": _ascii_detail(str(exc))}
        )

    @app.get("/health")
    def health() -> dict[str, bool]:
        return {"ok": True}

    mount_actions(app)
    mount_fs(app)
    return app


__all__ = ["create_app"]
