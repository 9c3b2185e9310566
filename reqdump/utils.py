from __future__ import annotations

from pathlib import Path

DUMP_SUFFIX = ".http"


def dump_filename(prefix: str, number: int) -> str:
    return f"{prefix}{number:04d}{DUMP_SUFFIX}"


def dump_path(dump_dir: Path, prefix: str, number: int) -> Path:
    return dump_dir / dump_filename(prefix, number)


def canonical_header_key(name: str) -> str:
    # "x-forwarded-for" -> "X-Forwarded-For"
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def join_host_port(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
