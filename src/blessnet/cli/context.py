"""Process state captured once per blessnet invocation."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from blessnet.cli.config import blessnet_home
from blessnet.cli.descriptor import DESCRIPTOR_FILENAME

RUNTIME_NAME = "bls-runtime"
AUTH_TOKEN_FILENAME = "auth_token"


def runtime_binary_name(platform: str | None = None) -> str:
    platform = platform or sys.platform
    return f"{RUNTIME_NAME}.exe" if platform == "win32" else RUNTIME_NAME


def runtime_binary_path(home: Path, platform: str | None = None) -> Path:
    return home / "bin" / runtime_binary_name(platform)


def auth_token_path(home: Path) -> Path:
    return home / AUTH_TOKEN_FILENAME


@dataclass(frozen=True)
class InvocationContext:
    argv: tuple[str, ...]
    cwd: Path
    home: Path
    descriptor_path: Path
    runtime_path: Path
    auth_token_path: Path
    has_descriptor: bool
    has_runtime: bool
    is_logged_in: bool


def probe_environment(
    argv: Sequence[str],
    *,
    cwd: str | Path | None = None,
    home: str | Path | None = None,
) -> InvocationContext:
    working_dir = Path(cwd) if cwd is not None else Path.cwd()
    home_dir = Path(home) if home is not None else blessnet_home()
    descriptor_path = working_dir / DESCRIPTOR_FILENAME
    runtime_path = runtime_binary_path(home_dir)
    token_path = auth_token_path(home_dir)
    return InvocationContext(
        argv=tuple(argv),
        cwd=working_dir,
        home=home_dir,
        descriptor_path=descriptor_path,
        runtime_path=runtime_path,
        auth_token_path=token_path,
        has_descriptor=descriptor_path.is_file(),
        has_runtime=runtime_path.is_file(),
        is_logged_in=token_path.is_file(),
    )
