from __future__ import annotations

from fastapi import Request

from fsgate.core.config import ConfigResolver
from fsgate.file_io import FileService


def get_resolver(request: Request) -> ConfigResolver:
    resolver = getattr(request.app.state, "config_resolver", None)
    if isinstance(resolver, ConfigResolver):
        return resolver
    return ConfigResolver()


def get_file_service(request: Request) -> FileService:
    fs = getattr(request.app.state, "file_service", None)
    if isinstance(fs, FileService):
        return fs
    fs = FileService.from_resolver(get_resolver(request))
    request.app.state.file_service = fs
    return fs


def norm_rel_path(p: str | None) -> str:
    # Clients send "/" for the root; leading slashes are not absolute here.
    p = (p or "").strip()
    if not p:
        return "."
    return p.lstrip("/") or "."


def join_rel(base: str | None, name: str) -> str:
    base = norm_rel_path(base)
    name = norm_rel_path(name)
    if base == ".":
        return name
    return f"{base.rstrip('/')}/{name}"
