"""Deployment receipt persistence for the blessnet CLI."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

_CID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


class ReceiptError(ValueError):
    """Raised when a deployment receipt cannot be persisted."""


def is_safe_cid(cid: str) -> bool:
    return bool(_CID_RE.match(cid)) and ".." not in cid


def save_deploy_receipt(*, home: Path, cid: str, payload: dict[str, Any]) -> Path:
    if not is_safe_cid(cid):
        raise ReceiptError(f"refusing to write a receipt for cid {cid!r}")
    root = home / "deployments"
    root.mkdir(parents=True, exist_ok=True)

    receipt_path = root / f"{cid}.json"
    try:
        receipt_path.write_text(
            json.dumps(payload, sort_keys=True, indent=2, default=str) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:  # pragma: no cover
        raise ReceiptError(f"failed to write deployment receipt: {receipt_path}") from exc
    return receipt_path
