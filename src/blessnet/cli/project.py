"""Project scaffolding and local build/preview tooling."""

from __future__ import annotations

import json
import re
import shlex
import subprocess
from pathlib import Path

from blessnet.cli.descriptor import (
    DESCRIPTOR_FILENAME,
    ProjectDescriptor,
    default_descriptor_table,
    descriptor_from_table,
    save_project_descriptor,
)

_PROJECT_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$")

INDEX_JS = """\
console.log("Hello, BLESS network!");
"""

GITIGNORE = """\
node_modules/
build/
"""


class ProjectError(ValueError):
    """Raised when a project cannot be scaffolded, built or previewed."""


def normalize_project_name(raw: str) -> str:
    name = re.sub(r"[^a-z0-9_-]+", "-", raw.strip().lower()).strip("-_")
    if not _PROJECT_NAME_RE.match(name):
        raise ProjectError(f"invalid project name: {raw!r}")
    return name


def _package_json(descriptor: ProjectDescriptor) -> str:
    debug = descriptor.build_settings()
    release = descriptor.build_settings(release=True)
    payload = {
        "name": descriptor.name,
        "version": descriptor.version,
        "private": True,
        "scripts": {
            "build:debug": f"mkdir -p build && javy build src/index.js -o build/{debug['entry']}",
            "build:release": (
                f"mkdir -p build && javy build src/index.js -o build/{release['entry']}"
            ),
        },
    }
    return json.dumps(payload, indent=2) + "\n"


def scaffold_project(target_dir: Path, name: str) -> tuple[ProjectDescriptor, list[Path]]:
    if (target_dir / DESCRIPTOR_FILENAME).exists():
        raise ProjectError(f"{DESCRIPTOR_FILENAME} already exists in {target_dir}")
    target_dir.mkdir(parents=True, exist_ok=True)

    descriptor = descriptor_from_table(default_descriptor_table(name))
    written = [save_project_descriptor(target_dir, descriptor)]

    extra_files = {
        target_dir / "package.json": _package_json(descriptor),
        target_dir / "src" / "index.js": INDEX_JS,
        target_dir / ".gitignore": GITIGNORE,
    }
    for path, content in extra_files.items():
        if path.exists():
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        written.append(path)
    return descriptor, written


def artifact_path(project_dir: Path, descriptor: ProjectDescriptor, *, release: bool = False) -> Path:
    settings = descriptor.build_settings(release=release)
    entry = settings.get("entry")
    if not isinstance(entry, str) or not entry.strip():
        section = "build_release" if release else "build"
        raise ProjectError(f"[{section}] entry is not set in {DESCRIPTOR_FILENAME}")
    return project_dir / str(settings.get("dir", "build")) / entry.strip()


def run_build(project_dir: Path, descriptor: ProjectDescriptor, *, release: bool = False) -> int:
    settings = descriptor.build_settings(release=release)
    command = settings.get("command")
    if not isinstance(command, str) or not command.strip():
        section = "build_release" if release else "build"
        raise ProjectError(f"[{section}] command is not set in {DESCRIPTOR_FILENAME}")
    try:
        completed = subprocess.run(shlex.split(command), cwd=project_dir, check=False)
    except FileNotFoundError as exc:
        raise ProjectError(f"build command not found: {command}") from exc
    return completed.returncode


def run_preview(runtime_path: Path, artifact: Path) -> int:
    if not artifact.is_file():
        raise ProjectError(f"build artifact not found: {artifact} (run `blessnet options build`)")
    try:
        completed = subprocess.run([str(runtime_path), str(artifact)], check=False)
    except FileNotFoundError as exc:
        raise ProjectError(f"runtime not found: {runtime_path}") from exc
    return completed.returncode
