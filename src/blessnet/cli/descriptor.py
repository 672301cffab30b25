"""Project descriptor (bls.toml) loading and persistence."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from blessnet.cli.config import load_toml

DESCRIPTOR_FILENAME = "bls.toml"
DEFAULT_PROJECT_VERSION = "1.0.0"
DEFAULT_PROJECT_TYPE = "text"
DEFAULT_CONTENT_TYPE = "html"


class DescriptorError(ValueError):
    """Raised when a project descriptor is missing or malformed."""


@dataclass(frozen=True)
class Deployment:
    cid: str
    created: Any = None
    host: str | None = None

    def to_table(self) -> dict[str, Any]:
        table: dict[str, Any] = {"cid": self.cid}
        if self.created is not None:
            table["created"] = self.created
        if self.host:
            table["host"] = self.host
        return table


@dataclass(frozen=True)
class ProjectDescriptor:
    name: str
    version: str
    type: str
    deployments: tuple[Deployment, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def content_type(self) -> str | None:
        value = self.raw.get("content_type")
        return str(value) if value is not None else None

    def build_settings(self, *, release: bool = False) -> dict[str, Any]:
        section = self.raw.get("build_release" if release else "build")
        return dict(section) if isinstance(section, dict) else {}

    def to_table(self) -> dict[str, Any]:
        table = copy.deepcopy(self.raw)
        table["name"] = self.name
        table["version"] = self.version
        table["type"] = self.type
        table["deployments"] = [deployment.to_table() for deployment in self.deployments]
        return table


def default_descriptor_table(name: str) -> dict[str, Any]:
    return {
        "name": name,
        "version": DEFAULT_PROJECT_VERSION,
        "type": DEFAULT_PROJECT_TYPE,
        "content_type": DEFAULT_CONTENT_TYPE,
        "build": {
            "dir": "build",
            "entry": f"{name}_debug.wasm",
            "command": "npm run build:debug",
        },
        "build_release": {
            "dir": "build",
            "entry": f"{name}.wasm",
            "command": "npm run build:release",
        },
        "deployment": {
            "permission": "public",
            "nodes": 4,
        },
        "deployments": [],
    }


def _parse_deployments(value: Any) -> tuple[Deployment, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise DescriptorError("deployments must be an array of tables")
    deployments: list[Deployment] = []
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise DescriptorError(f"deployments[{index}] must be a table")
        cid = item.get("cid")
        if not isinstance(cid, str) or not cid.strip():
            raise DescriptorError(f"deployments[{index}].cid must be a non-empty string")
        host = item.get("host")
        deployments.append(
            Deployment(
                cid=cid.strip(),
                created=item.get("created"),
                host=str(host).strip() or None if host is not None else None,
            )
        )
    return tuple(deployments)


def descriptor_from_table(table: dict[str, Any]) -> ProjectDescriptor:
    return ProjectDescriptor(
        name=str(table.get("name", "")),
        version=str(table.get("version", "")),
        type=str(table.get("type", "")),
        deployments=_parse_deployments(table.get("deployments")),
        raw=copy.deepcopy(table),
    )


def load_project_descriptor(
    directory: str | Path,
    filename: str = DESCRIPTOR_FILENAME,
) -> ProjectDescriptor:
    path = Path(directory) / filename
    if not path.exists():
        raise DescriptorError(f"project descriptor not found: {path}")
    return descriptor_from_table(load_toml(path, error_cls=DescriptorError))


def save_project_descriptor(
    directory: str | Path,
    descriptor: ProjectDescriptor,
    filename: str = DESCRIPTOR_FILENAME,
) -> Path:
    path = Path(directory) / filename
    path.write_text(tomli_w.dumps(descriptor.to_table()), encoding="utf-8")
    return path
