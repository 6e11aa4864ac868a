from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import StreamingResponse

from fsgate.file_io import FileStat

from .deps import get_file_service, norm_rel_path

_CHUNK = 1024 * 1024


def file_info(st: FileStat) -> dict[str, Any]:
    return {
        "type": st.type.value,
        "file": st.rel_path,
        "name": st.name,
        "size": st.size,
        "mode": st.mode,
        "uid": st.uid,
        "gid": st.gid,
        "atime": st.atime,
        "mtime": st.mtime,
        "ctime": st.ctime,
    }


def mount_fs(app: FastAPI) -> None:
    """Plain file endpoints under /fs.

    GET returns JSON metadata (or a listing for directories); raw content
    is returned instead when the client asks for application/octet-stream.
    """

    @app.get("/fs", response_model=None)
    @app.get("/fs/{path:path}", response_model=None)
    def fs_get(request: Request, path: str = ".") -> dict[str, Any] | StreamingResponse:
        fs = get_file_service(request)
        rel = norm_rel_path(path)
        st = fs.stat(rel)

        if not st.is_dir:
            if request.headers.get("accept") == "application/octet-stream":

                def _iter() -> Iterator[bytes]:
                    with fs.open_read(rel) as f:
                        while True:
                            chunk = f.read(_CHUNK)
                            if not chunk:
                                break
                            yield chunk

                return StreamingResponse(_iter(), media_type="application/octet-stream")
            return {"success": True, "file": file_info(st)}

        entries = fs.list_dir(rel)
        return {"success": True, "files": [file_info(e) for e in entries]}

    @app.put("/fs/{path:path}")
    async def fs_put(request: Request, path: str) -> Response:
        fs = get_file_service(request)
        data = await request.body()
        fs.write_bytes(norm_rel_path(path), data, overwrite=True)
        return Response(status_code=204)

    @app.delete("/fs/{path:path}")
    def fs_delete(request: Request, path: str) -> Response:
        fs = get_file_service(request)
        fs.delete_file(norm_rel_path(path))
        return Response(status_code=204)

    @app.post("/fs/{path:path}")
    def fs_mkdir(request: Request, path: str) -> Response:
        fs = get_file_service(request)
        fs.mkdir(norm_rel_path(path), parents=True, exist_ok=True)
        return Response(status_code=204)
