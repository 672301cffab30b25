"""Configuration helpers for the blessnet CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

HOME_ENV_VAR = "BLESSNET_HOME"
REGISTRY_BASE_ENV_VAR = "BLESSNET_REGISTRY_BASE"
RUNTIME_RELEASE_URL_ENV_VAR = "BLESSNET_RUNTIME_RELEASE_URL"

DEFAULT_REGISTRY_BASE = "https://api.bless.network"
DEFAULT_RUNTIME_RELEASE_URL = (
    "https://api.github.com/repos/blessnetwork/bls-runtime/releases/latest"
)
DEFAULT_DOCS_URL = "https://docs.bless.network"
DEFAULT_LOGIN_URL = "https://bless.network/login?cli=1"


def blessnet_home() -> Path:
    override = os.getenv(HOME_ENV_VAR)
    if override and override.strip():
        return Path(override.strip()).expanduser()
    return Path.home() / ".blessnet"


@dataclass(frozen=True)
class CLIConfig:
    registry_base: str = DEFAULT_REGISTRY_BASE
    runtime_release_url: str = DEFAULT_RUNTIME_RELEASE_URL
    docs_url: str = DEFAULT_DOCS_URL
    login_url: str = DEFAULT_LOGIN_URL


class ConfigError(ValueError):
    """Raised when CLI config is invalid."""


def load_toml(path: Path, *, error_cls: type[ValueError] = ConfigError) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise error_cls(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise error_cls("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise error_cls(f"invalid TOML in {path}: {exc}") from exc


def _non_empty(source: dict[str, Any], key: str, default: str) -> str:
    value = str(source.get(key, default)).strip()
    if not value:
        raise ConfigError(f"{key} must not be empty")
    return value


def load_cli_config(path: str | Path | None = None) -> CLIConfig:
    config_path = Path(path) if path else blessnet_home() / "config.toml"
    if not config_path.exists():
        source: dict[str, Any] = {}
    else:
        parsed = load_toml(config_path)
        section = parsed.get("cli")
        if isinstance(section, dict):
            source = section
        elif section is None:
            source = parsed
        else:
            raise ConfigError("[cli] must be a table")

    registry_base = _non_empty(source, "registry_base", DEFAULT_REGISTRY_BASE)
    env_registry_base = os.getenv(REGISTRY_BASE_ENV_VAR)
    if env_registry_base and env_registry_base.strip():
        registry_base = env_registry_base.strip()
    if not registry_base.startswith(("http://", "https://")):
        raise ConfigError("registry_base must be an http(s) URL")

    runtime_release_url = _non_empty(source, "runtime_release_url", DEFAULT_RUNTIME_RELEASE_URL)
    env_release_url = os.getenv(RUNTIME_RELEASE_URL_ENV_VAR)
    if env_release_url and env_release_url.strip():
        runtime_release_url = env_release_url.strip()

    return CLIConfig(
        registry_base=registry_base,
        runtime_release_url=runtime_release_url,
        docs_url=_non_empty(source, "docs_url", DEFAULT_DOCS_URL),
        login_url=_non_empty(source, "login_url", DEFAULT_LOGIN_URL),
    )
