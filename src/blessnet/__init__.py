"""blessnet public surface."""

from blessnet.client import RegistryClient
from blessnet.errors import (
    BlessnetError,
    RegistryRequestError,
    RegistryUnavailableError,
    RuntimeInstallError,
)
from blessnet.runtime import fetch_and_install_runtime, platform_asset_tag, select_release_asset

__all__ = [
    "BlessnetError",
    "RegistryClient",
    "RegistryRequestError",
    "RegistryUnavailableError",
    "RuntimeInstallError",
    "fetch_and_install_runtime",
    "platform_asset_tag",
    "select_release_asset",
]
