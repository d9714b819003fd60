"""
Single-owner access control.
"""

from __future__ import annotations

import logging

from ..constants import ZERO_ADDRESS
from ..exceptions import InvalidOwnerError, NotOwnerError

logger = logging.getLogger(__name__)


class Ownable:
    """Holds one owner address and gates privileged calls on it."""

    def __init__(self, owner: str) -> None:
        owner_norm = (owner or "").lower()
        if not owner_norm or owner_norm == ZERO_ADDRESS:
            raise InvalidOwnerError("Owner cannot be the zero address")
        self.owner = owner_norm

    def is_owner(self, caller: str) -> bool:
        return (caller or "").lower() == self.owner

    def require_owner(self, caller: str) -> None:
        """
        Raises:
            NotOwnerError: If caller is not the owner
        """
        if not self.is_owner(caller):
            raise NotOwnerError(
                f"Caller {caller} is not the owner",
                details={"caller": caller, "owner": self.owner},
            )

    def _set_owner(self, caller: str, new_owner: str) -> None:
        self.require_owner(caller)
        new_owner_norm = (new_owner or "").lower()
        if not new_owner_norm or new_owner_norm == ZERO_ADDRESS:
            raise InvalidOwnerError("New owner cannot be the zero address")
        previous, self.owner = self.owner, new_owner_norm
        logger.info(
            "Ownership transferred",
            extra={"event": "ownable.transferred", "from": previous[:10], "to": new_owner_norm[:10]},
        )
