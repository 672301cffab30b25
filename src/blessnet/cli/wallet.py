"""Local wallet keypairs for the blessnet CLI.

Wallet address format:
- bls:<32-char-lowercase-base32-prefix>
where the prefix is derived from sha256(public_key_bytes).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import os
import re
from dataclasses import dataclass
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

DEFAULT_WALLET_NAME = "default"
_WALLET_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,63}$")


class WalletError(ValueError):
    """Raised when wallet material is invalid or cannot be loaded."""


def derive_wallet_address(public_key_bytes: bytes) -> str:
    digest = hashlib.sha256(public_key_bytes).digest()
    encoded = base64.b32encode(digest).decode("ascii").rstrip("=").lower()
    return f"bls:{encoded[:32]}"


@dataclass(frozen=True)
class LocalWallet:
    name: str
    private_key_bytes: bytes
    public_key_bytes: bytes

    @property
    def private_key_b64(self) -> str:
        return base64.b64encode(self.private_key_bytes).decode("ascii")

    @property
    def public_key_b64(self) -> str:
        return base64.b64encode(self.public_key_bytes).decode("ascii")

    @property
    def address(self) -> str:
        return derive_wallet_address(self.public_key_bytes)


def wallets_dir(home: Path) -> Path:
    return home / "wallets"


def wallet_path(home: Path, name: str) -> Path:
    if not _WALLET_NAME_RE.match(name):
        raise WalletError(f"invalid wallet name: {name!r}")
    return wallets_dir(home) / f"{name}.json"


def _chmod_owner_only(path: Path) -> None:
    if os.name != "posix":
        return
    path.chmod(0o600)


def _raw_key(record: dict, field: str, path: Path) -> bytes:
    value = record.get(field)
    if not isinstance(value, str):
        raise WalletError(f"{path.name}: {field} is missing")
    try:
        key = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise WalletError(f"{path.name}: {field} is not valid base64") from exc
    if len(key) != 32:
        raise WalletError(f"{path.name}: {field} must decode to 32 bytes")
    return key


def _load_wallet(path: Path) -> LocalWallet:
    try:
        record = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise WalletError(f"unreadable wallet file: {path}") from exc
    if not isinstance(record, dict):
        raise WalletError(f"{path.name}: wallet file must hold a JSON object")

    wallet = LocalWallet(
        name=path.stem,
        private_key_bytes=_raw_key(record, "private_key_b64", path),
        public_key_bytes=_raw_key(record, "public_key_b64", path),
    )
    signer = Ed25519PrivateKey.from_private_bytes(wallet.private_key_bytes)
    if signer.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw) != wallet.public_key_bytes:
        raise WalletError(f"{path.name}: public key does not match the private key")
    recorded_address = record.get("address")
    if recorded_address is not None and recorded_address != wallet.address:
        raise WalletError(f"{path.name}: address does not match the public key")

    _chmod_owner_only(path)
    return wallet


def create_wallet(home: Path, name: str = DEFAULT_WALLET_NAME) -> tuple[LocalWallet, Path]:
    path = wallet_path(home, name)
    if path.exists():
        raise WalletError(f"wallet already exists: {name}")
    path.parent.mkdir(parents=True, exist_ok=True)

    private = Ed25519PrivateKey.generate()
    private_key_bytes = private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    public_key_bytes = private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    wallet = LocalWallet(
        name=name,
        private_key_bytes=private_key_bytes,
        public_key_bytes=public_key_bytes,
    )

    serialized = {
        "address": wallet.address,
        "private_key_b64": wallet.private_key_b64,
        "public_key_b64": wallet.public_key_b64,
    }
    path.write_text(json.dumps(serialized, indent=2) + "\n", encoding="utf-8")
    _chmod_owner_only(path)
    return wallet, path


def load_wallet(home: Path, name: str = DEFAULT_WALLET_NAME) -> tuple[LocalWallet, Path]:
    path = wallet_path(home, name)
    if not path.exists():
        raise WalletError(f"wallet not found: {name} (run `blessnet options wallet create`)")
    return _load_wallet(path), path


def list_wallets(home: Path) -> list[LocalWallet]:
    root = wallets_dir(home)
    if not root.is_dir():
        return []
    return [_load_wallet(path) for path in sorted(root.glob("*.json"))]
