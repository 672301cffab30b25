from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

DESCRIPTOR = """\
name = "hello-bless"
version = "1.0.0"
type = "text"
content_type = "html"

[build]
dir = "build"
entry = "hello-bless_debug.wasm"
command = "npm run build:debug"

[build_release]
dir = "build"
entry = "hello-bless.wasm"
command = "npm run build:release"
"""


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    home = tmp_path / "home" / ".blessnet"
    project = tmp_path / "hello-bless"
    project.mkdir(parents=True)
    monkeypatch.setenv("BLESSNET_HOME", str(home))
    monkeypatch.delenv("BLESSNET_REGISTRY_BASE", raising=False)
    monkeypatch.delenv("BLESSNET_RUNTIME_RELEASE_URL", raising=False)
    monkeypatch.chdir(project)

    def install_runtime() -> Path:
        runtime = home / "bin" / "bls-runtime"
        runtime.parent.mkdir(parents=True, exist_ok=True)
        runtime.write_text("#!/bin/sh\n", encoding="utf-8")
        return runtime

    def write_descriptor(extra: str = "", directory: Path | None = None) -> Path:
        path = (directory or project) / "bls.toml"
        path.write_text(DESCRIPTOR + extra, encoding="utf-8")
        return path

    def login(token: str = "tok-123") -> Path:
        path = home / "auth_token"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(token + "\n", encoding="utf-8")
        return path

    return SimpleNamespace(
        home=home,
        project=project,
        install_runtime=install_runtime,
        write_descriptor=write_descriptor,
        login=login,
    )
