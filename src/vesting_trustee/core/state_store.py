"""
Vesting Trustee - Persistent State Storage

Saves and loads the reserve token and trustee state as one JSON document:
- Atomic writes (temp file + rename)
- Checksum verification on load
- Conservation invariant re-checked on load
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from typing import Any, Callable, Dict, Tuple

from .contracts.erc20 import ERC20Token
from .contracts.vesting_trustee import VestingTrustee
from .exceptions import StateIntegrityError

logger = logging.getLogger(__name__)

STATE_VERSION = "1.0"


def _checksum(state: Dict[str, Any]) -> str:
    payload = json.dumps(state, indent=2, sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def save_state(path: str, trustee: VestingTrustee) -> str:
    """
    Write the trustee and its reserve token to ``path``.

    Returns:
        The checksum of the saved state
    """
    state = {
        "token": trustee.token.to_dict(),
        "trustee": trustee.to_dict(),
    }
    checksum = _checksum(state)
    package = {
        "metadata": {
            "timestamp": time.time(),
            "checksum": checksum,
            "version": STATE_VERSION,
            "grants": len(trustee.registry),
        },
        "state": state,
    }

    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    # Atomic write: write to temp file, then rename
    temp_file = path + ".tmp"
    with open(temp_file, "w") as f:
        json.dump(package, f, indent=2, sort_keys=True)
        f.flush()
        os.fsync(f.fileno())
    os.replace(temp_file, path)

    logger.info(
        "Trustee state saved",
        extra={"event": "state.saved", "path": path, "checksum": checksum[:8]},
    )
    return checksum


def load_state(
    path: str,
    time_provider: Callable[[], int] | None = None,
) -> Tuple[ERC20Token, VestingTrustee]:
    """
    Read a state document written by save_state().

    Raises:
        FileNotFoundError: If ``path`` does not exist
        StateIntegrityError: If the document is corrupt or violates the reserve invariant
    """
    try:
        with open(path, "r") as f:
            package = json.load(f)
    except json.JSONDecodeError as exc:
        raise StateIntegrityError(f"State file {path} is not valid JSON: {exc}") from exc

    state = package.get("state")
    if not isinstance(state, dict) or "token" not in state or "trustee" not in state:
        raise StateIntegrityError(f"State file {path} is missing token or trustee state")

    expected = package.get("metadata", {}).get("checksum")
    if expected and _checksum(state) != expected:
        raise StateIntegrityError(
            f"Checksum mismatch for {path}",
            details={"expected": expected},
        )

    token = ERC20Token.from_dict(state["token"])
    trustee = VestingTrustee.from_dict(state["trustee"], token, time_provider=time_provider)
    logger.info(
        "Trustee state loaded",
        extra={"event": "state.loaded", "path": path, "grants": len(trustee.registry)},
    )
    return token, trustee
