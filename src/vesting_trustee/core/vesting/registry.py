"""
Grant registry.

Keyed store of one Grant per beneficiary plus the aggregate amount still
reserved for live grants. The registry is the only component that mutates
Grant records; every mutation adjusts ``total_reserved`` by the same amount
so that ``total_reserved == sum(g.value - g.transferred)`` over live grants.

A beneficiary slot is exhausted the moment a grant is inserted and stays
exhausted after revocation.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterator, Tuple

from ..exceptions import DuplicateGrantError, NoSuchGrantError, StateIntegrityError
from .grant import Grant

logger = logging.getLogger(__name__)


class GrantRegistry:
    def __init__(self) -> None:
        self._grants: dict[str, Grant] = {}
        self._exhausted: set[str] = set()
        self.total_reserved: int = 0

    def __contains__(self, holder: str) -> bool:
        return holder in self._grants

    def __len__(self) -> int:
        return len(self._grants)

    def items(self) -> Iterator[Tuple[str, Grant]]:
        """Iterate over live grants as ``(holder, copy)`` pairs."""
        for holder, grant in self._grants.items():
            yield holder, replace(grant)

    def get(self, holder: str) -> Grant | None:
        """Return a copy of the live grant for ``holder``, if any."""
        grant = self._grants.get(holder)
        return replace(grant) if grant is not None else None

    def has_held_grant(self, holder: str) -> bool:
        return holder in self._exhausted

    # ==================== Mutations ====================

    def insert(self, holder: str, grant: Grant) -> None:
        """
        Record a new grant and reserve its full value.

        Raises:
            DuplicateGrantError: If the holder has ever held a grant
        """
        if holder in self._exhausted:
            raise DuplicateGrantError(
                f"Beneficiary {holder} has already been granted tokens",
                details={"holder": holder},
            )
        self._grants[holder] = replace(grant, transferred=0)
        self._exhausted.add(holder)
        self.total_reserved += grant.value

    def record_transfer(self, holder: str, amount: int) -> Grant:
        """Advance a grant's paid-out progress and release the same amount."""
        grant = self._require(holder)
        if amount < 0 or grant.transferred + amount > grant.value:
            raise StateIntegrityError(
                f"Cannot record transfer of {amount} for {holder}",
                details={"holder": holder, "amount": amount, "transferred": grant.transferred},
            )
        grant.transferred += amount
        self.total_reserved -= amount
        return replace(grant)

    def remove(self, holder: str) -> Grant:
        """
        Delete a live grant and release whatever it had not paid out.

        Returns:
            The removed grant
        """
        grant = self._require(holder)
        del self._grants[holder]
        self.total_reserved -= grant.remaining
        return grant

    def _require(self, holder: str) -> Grant:
        grant = self._grants.get(holder)
        if grant is None:
            raise NoSuchGrantError(f"No grant for {holder}", details={"holder": holder})
        return grant

    # ==================== Snapshots ====================

    def snapshot(self) -> Dict[str, Any]:
        """Capture the registry state for rollback."""
        return {
            "grants": {holder: replace(grant) for holder, grant in self._grants.items()},
            "exhausted": set(self._exhausted),
            "total_reserved": self.total_reserved,
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """Reinstate a state captured by snapshot()."""
        self._grants = {holder: replace(grant) for holder, grant in snapshot["grants"].items()}
        self._exhausted = set(snapshot["exhausted"])
        self.total_reserved = snapshot["total_reserved"]
        logger.debug(
            "Grant registry restored from snapshot",
            extra={"event": "registry.restored", "grants": len(self._grants)},
        )

    def check_invariant(self) -> None:
        """
        Verify that the aggregate matches the live grants.

        Raises:
            StateIntegrityError: If total_reserved drifted from the grant records
        """
        expected = sum(grant.remaining for grant in self._grants.values())
        if expected != self.total_reserved:
            raise StateIntegrityError(
                f"Reserved total {self.total_reserved} does not match live grants ({expected})",
                details={"total_reserved": self.total_reserved, "expected": expected},
            )

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grants": {holder: grant.to_dict() for holder, grant in self._grants.items()},
            "exhausted": sorted(self._exhausted),
            "total_reserved": self.total_reserved,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GrantRegistry":
        registry = cls()
        registry._grants = {
            holder: Grant.from_dict(grant) for holder, grant in data.get("grants", {}).items()
        }
        registry._exhausted = set(data.get("exhausted", [])) | set(registry._grants)
        registry.total_reserved = int(data.get("total_reserved", 0))
        registry.check_invariant()
        return registry
