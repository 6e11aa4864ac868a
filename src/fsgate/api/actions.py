from __future__ import annotations

from fastapi import FastAPI, Request, Response
from pydantic import BaseModel

from fsgate.core.errors import ValidationError

from .deps import get_file_service, join_rel, norm_rel_path


class CompressRequest(BaseModel):
    file: str
    format: str


class DecompressRequest(BaseModel):
    file: str
    format: str
    target: str | None = None


class MoveRequest(BaseModel):
    dir: str | None = None
    file: str
    target: str


class ChmodRequest(BaseModel):
    file: str
    mode: int | str


def _parse_mode(mode: int | str) -> int:
    if isinstance(mode, int):
        return mode
    try:
        return int(mode, 8)
    except ValueError:
        raise ValidationError(
            f"Invalid mode: {mode!r}", "Use an octal string such as '644'"
        ) from None


def mount_actions(app: FastAPI) -> None:
    """Archive and file-manipulation actions; all answer 204 on success."""

    @app.post("/compress")
    async def compress(request: Request, body: CompressRequest) -> Response:
        fs = get_file_service(request)
        archive_rel = await fs.create_archive(norm_rel_path(body.file), body.format)
        return Response(status_code=204, headers={"Location": f"/fs/{archive_rel}"})

    @app.post("/decompress")
    async def decompress(request: Request, body: DecompressRequest) -> Response:
        fs = get_file_service(request)
        await fs.extract_archive(norm_rel_path(body.file), body.format, norm_rel_path(body.target))
        return Response(status_code=204)

    @app.post("/rename")
    def rename(request: Request, body: MoveRequest) -> Response:
        fs = get_file_service(request)
        fs.rename(join_rel(body.dir, body.file), join_rel(body.dir, body.target))
        return Response(status_code=204)

    @app.post("/copy")
    def copy(request: Request, body: MoveRequest) -> Response:
        fs = get_file_service(request)
        fs.copy(join_rel(body.dir, body.file), join_rel(body.dir, body.target))
        return Response(status_code=204)

    @app.post("/chmod")
    def chmod(request: Request, body: ChmodRequest) -> Response:
        fs = get_file_service(request)
        fs.chmod(norm_rel_path(body.file), _parse_mode(body.mode))
        return Response(status_code=204)
