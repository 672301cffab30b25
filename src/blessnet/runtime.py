"""Download and install the platform-specific bls-runtime binary.

The runtime is published as GitHub release assets named
``bls-runtime-<os>-<arch>.tar.gz`` (``.zip`` on Windows). Installation picks
the asset for the current platform from the latest release, extracts only the
runtime executable and places it under ``<home>/bin``.
"""

from __future__ import annotations

import io
import os
import platform
import tarfile
import zipfile
from pathlib import Path
from typing import Any

from blessnet.cli.context import runtime_binary_name, runtime_binary_path
from blessnet.client import build_session
from blessnet.errors import BlessnetError, RuntimeInstallError

_OS_TAGS = {"linux": "linux", "darwin": "macos", "windows": "windows"}
_ARCH_TAGS = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
}


def platform_asset_tag(system: str | None = None, machine: str | None = None) -> str:
    system_name = (system or platform.system()).lower()
    machine_name = (machine or platform.machine()).lower()
    os_tag = _OS_TAGS.get(system_name)
    arch_tag = _ARCH_TAGS.get(machine_name)
    if os_tag is None or arch_tag is None:
        raise RuntimeInstallError(f"unsupported platform: {system_name}/{machine_name}")
    return f"{os_tag}-{arch_tag}"


def select_release_asset(release: dict[str, Any], tag: str) -> dict[str, Any]:
    assets = release.get("assets")
    if not isinstance(assets, list):
        raise RuntimeInstallError("release metadata has no assets")
    for asset in assets:
        if not isinstance(asset, dict):
            continue
        name = str(asset.get("name", ""))
        if not name.startswith("bls-runtime") or tag not in name:
            continue
        if name.endswith((".tar.gz", ".tgz", ".zip")) and asset.get("browser_download_url"):
            return asset
    names = ", ".join(str(a.get("name", "?")) for a in assets if isinstance(a, dict))
    raise RuntimeInstallError(f"no bls-runtime asset for {tag} (available: {names or 'none'})")


def _extract_binary(archive_name: str, data: bytes, binary_name: str) -> bytes:
    try:
        if archive_name.endswith(".zip"):
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                for member in archive.namelist():
                    if Path(member).name == binary_name:
                        return archive.read(member)
        else:
            with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
                for member in archive.getmembers():
                    if member.isfile() and Path(member.name).name == binary_name:
                        extracted = archive.extractfile(member)
                        if extracted is not None:
                            return extracted.read()
    except (tarfile.TarError, zipfile.BadZipFile, OSError) as exc:
        raise RuntimeInstallError(f"invalid runtime archive {archive_name}: {exc}") from exc
    raise RuntimeInstallError(f"{binary_name} not found in {archive_name}")


def _get(session, url: str, *, timeout: float):
    try:
        response = session.get(url, timeout=timeout, allow_redirects=True)
    except Exception as exc:
        raise RuntimeInstallError(f"request failed for {url}: {exc}") from exc
    if response.status_code != 200:
        raise RuntimeInstallError(f"{url} returned HTTP {response.status_code}")
    return response


def fetch_and_install_runtime(
    *,
    home: str | Path,
    release_url: str,
    session=None,
    timeout: float = 60.0,
) -> Path:
    home_dir = Path(home)
    if session is None:
        try:
            session = build_session()
        except BlessnetError as exc:
            raise RuntimeInstallError(str(exc)) from exc

    tag = platform_asset_tag()
    try:
        release = _get(session, release_url, timeout=timeout).json()
    except ValueError as exc:
        raise RuntimeInstallError("release metadata is not valid JSON") from exc
    if not isinstance(release, dict):
        raise RuntimeInstallError("release metadata has an unexpected shape")

    asset = select_release_asset(release, tag)
    archive = _get(session, str(asset["browser_download_url"]), timeout=timeout)
    binary = _extract_binary(str(asset["name"]), archive.content, runtime_binary_name())

    target = runtime_binary_path(home_dir)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(binary)
        if os.name == "posix":
            target.chmod(0o755)
    except OSError as exc:
        raise RuntimeInstallError(f"failed to write {target}: {exc}") from exc
    return target
