"""Stored account token for bless.network."""

from __future__ import annotations

import os
from pathlib import Path

from blessnet.cli.context import auth_token_path


class AccountError(ValueError):
    """Raised when the stored account token cannot be read or written."""


def save_auth_token(home: Path, token: str) -> Path:
    value = token.strip()
    if not value:
        raise AccountError("account token must not be empty")
    path = auth_token_path(home)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(value + "\n", encoding="utf-8")
    if os.name == "posix":
        path.chmod(0o600)
    return path


def load_auth_token(home: Path) -> str | None:
    path = auth_token_path(home)
    if not path.is_file():
        return None
    try:
        value = path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise AccountError(f"failed to read account token: {path}") from exc
    return value or None


def clear_auth_token(home: Path) -> bool:
    path = auth_token_path(home)
    if not path.exists():
        return False
    path.unlink()
    return True
