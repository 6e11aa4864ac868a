"""fsgate command line.

    python -m fsgate pack ROOT --format zip
    python -m fsgate unpack ARCHIVE --target DIR
    python -m fsgate serve --port 9000
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from fsgate import __version__
from fsgate.core.config import ALLOWED_LOGGING_LEVELS, ConfigResolver
from fsgate.core.diagnostics import install_jsonl_sink
from fsgate.core.errors import FsGateError
from fsgate.core.logging import VerbosityLevel, configure_from_resolver, get_logger, get_verbosity
from fsgate.file_io.archives import ArchiveOptions, create_archive, detect_format, extract_archive

log = get_logger("fsgate.cli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="fsgate", description="Archive and file service")
    ap.add_argument("--version", action="version", version=f"fsgate {__version__}")
    ap.add_argument(
        "--verbosity",
        choices=sorted(ALLOWED_LOGGING_LEVELS),
        default=None,
        help="Log verbosity (default: logging.level from config)",
    )
    ap.add_argument("--config", type=Path, default=None, help="User config YAML path")
    sub = ap.add_subparsers(dest="command", required=True)

    pack = sub.add_parser("pack", help="Create ROOT.tar.gz or ROOT.zip next to ROOT")
    pack.add_argument("root", type=Path)
    pack.add_argument("--format", default="tar.gz", help="tar.gz or zip")
    pack.add_argument(
        "--archive-root",
        type=Path,
        default=None,
        help="Directory entry names are relative to (default: parent of ROOT)",
    )

    unpack = sub.add_parser("unpack", help="Extract an archive into a directory")
    unpack.add_argument("archive", type=Path)
    unpack.add_argument("--format", default=None, help="tar.gz or zip (default: detect)")
    unpack.add_argument("--target", type=Path, default=Path("."))

    serve = sub.add_parser("serve", help="Run the HTTP file service")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--root-dir", type=Path, default=None)
    return ap


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if args.verbosity:
        out["logging"] = {"level": args.verbosity}
    if args.command == "serve":
        web: dict[str, Any] = {}
        if args.host:
            web["host"] = args.host
        if args.port:
            web["port"] = args.port
        if web:
            out["web"] = web
        if args.root_dir:
            out["file_io"] = {"root_dir": str(args.root_dir)}
    return out


async def _pack(args: argparse.Namespace, options: ArchiveOptions) -> None:
    dest = await create_archive(
        args.root, args.format, archive_root=args.archive_root, options=options
    )
    print(dest)


async def _unpack(args: argparse.Namespace, options: ArchiveOptions) -> None:
    fmt = args.format or detect_format(args.archive)
    await extract_archive(args.archive, fmt, args.target, options=options)


def _serve(resolver: ConfigResolver) -> None:
    import uvicorn

    from fsgate.api import create_app

    host, _src = resolver.resolve("web.host")
    port = resolver.resolve_int("web.port", 9000)
    verbosity = get_verbosity()
    log_level = (
        "critical"
        if verbosity == VerbosityLevel.QUIET
        else "error"
        if verbosity == VerbosityLevel.NORMAL
        else "info"
        if verbosity == VerbosityLevel.VERBOSE
        else "debug"
    )
    log.info(f"Listening on {host}:{port}")
    uvicorn.run(
        create_app(resolver),
        host=str(host),
        port=port,
        log_level=log_level,
        access_log=verbosity >= VerbosityLevel.VERBOSE,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    resolver = ConfigResolver(cli_args=_cli_overrides(args), user_config_path=args.config)

    try:
        configure_from_resolver(resolver)
        install_jsonl_sink(resolver=resolver)
        options = ArchiveOptions.from_resolver(resolver)

        if args.command == "pack":
            asyncio.run(_pack(args, options))
        elif args.command == "unpack":
            asyncio.run(_unpack(args, options))
        else:
            _serve(resolver)
    except FsGateError as e:
        log.error(str(e))
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
