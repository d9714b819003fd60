"""
Vesting Trustee Contract.

Holds a reserve of tokens and releases them to beneficiaries over time:
- Grants: one per beneficiary, created by the owner from the pre-funded
  reserve or by any holder who deposits the tokens with grant instructions
- Unlock: pays out whatever has vested since the last payout
- Batch unlock: unlocks many beneficiaries in one call
- Revoke: deletes a revokable grant and refunds its unpaid remainder to the owner
- Rescue: withdraws unreserved reserve tokens or any other token sent by mistake

Every public call is atomic: if it raises, the trustee and the tokens it
touched are restored to their state before the call.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Iterator

from ..constants import ZERO_ADDRESS, ErrorCode
from ..exceptions import (
    DuplicateGrantError,
    InsufficientBalanceError,
    InsufficientReserveError,
    InsufficientSurplusError,
    InvalidBeneficiaryError,
    InvalidTokenError,
    NoSuchGrantError,
    NotRevokableError,
    StateIntegrityError,
    UnknownTokenError,
)
from ..vesting.calculator import ready_amount, vested_amount
from ..vesting.grant import Grant, validate_schedule
from ..vesting.registry import GrantRegistry
from .grant_payload import decode_grant_payload
from .ownable import Ownable

if TYPE_CHECKING:
    from .erc20 import ERC20Token

logger = logging.getLogger(__name__)


class FundingSource(Enum):
    """Where the tokens backing a new grant came from."""

    RESERVE = "reserve"  # owner grant drawn from the pre-funded reserve
    DEPOSIT = "deposit"  # self-funded grant deposited with transfer_and_call


class UnlockStatus(Enum):
    UNLOCKED = "unlocked"
    NOTHING_READY = "nothing_ready"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class UnlockResult:
    """Outcome of unlocking a single beneficiary."""

    holder: str
    status: UnlockStatus
    amount: int = 0


@dataclass
class TrusteeEvent:
    """Represents a trustee event (NewGrant, GrantRevoked, TokensUnlocked, Error)."""

    event_type: str
    args: Dict[str, Any]
    timestamp: float = field(default_factory=time.time)


class VestingTrustee(Ownable):
    """
    Token grant vesting ledger.

    ``total_reserved`` always equals the unpaid remainder of all live grants
    and never exceeds the trustee's balance of the reserve token.
    """

    def __init__(
        self,
        token: "ERC20Token",
        owner: str,
        address: str = "",
        time_provider: Callable[[], int] | None = None,
    ) -> None:
        if token is None:
            raise InvalidTokenError("Trustee requires a reserve token")
        super().__init__(owner)

        self.token = token
        if not address:
            addr_input = f"trustee{token.address}{self.owner}{time.time()}".encode()
            address = f"0x{hashlib.sha3_256(addr_input).digest()[-20:].hex()}"
        self.address = address.lower()

        self.registry = GrantRegistry()
        self.events: list[TrusteeEvent] = []
        self._time_provider = time_provider or (lambda: int(time.time()))
        self._lock = threading.RLock()

        token.register_receiver(self)
        logger.info(
            "VestingTrustee initialized",
            extra={
                "event": "trustee.initialized",
                "address": self.address[:10],
                "token": token.symbol,
                "owner": self.owner[:10],
                "deterministic_time": time_provider is not None,
            },
        )

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    @contextmanager
    def _atomic(self, *tokens: "ERC20Token") -> Iterator[None]:
        """Run a call so that any exception leaves no state change behind."""
        with self._lock:
            touched = {id(t): t for t in (self.token, *tokens)}.values()
            token_snapshots = [(t, t.snapshot()) for t in touched]
            registry_snapshot = self.registry.snapshot()
            owner = self.owner
            event_count = len(self.events)
            try:
                yield
            except Exception:
                for token, snapshot in token_snapshots:
                    token.restore(snapshot)
                self.registry.restore(registry_snapshot)
                self.owner = owner
                del self.events[event_count:]
                raise

    # ==================== View Functions ====================

    @property
    def total_reserved(self) -> int:
        """Tokens held back for the unpaid remainder of all live grants."""
        return self.registry.total_reserved

    def get_grant(self, holder: str) -> Grant | None:
        """Return a copy of ``holder``'s live grant, or None."""
        return self.registry.get(holder.lower())

    def vested_tokens(self, holder: str, at_time: int) -> int:
        """Amount of ``holder``'s grant vested at ``at_time`` (0 without a live grant)."""
        grant = self.registry.get(holder.lower())
        if grant is None:
            return 0
        return vested_amount(grant, at_time)

    def ready_tokens(self, holder: str) -> int:
        """Amount ``holder`` could unlock right now (0 without a live grant)."""
        grant = self.registry.get(holder.lower())
        if grant is None:
            return 0
        return ready_amount(grant, self._current_time())

    def available_surplus(self) -> int:
        """Reserve tokens held by the trustee beyond what live grants need."""
        return self.token.balance_of(self.address) - self.registry.total_reserved

    # ==================== Grant Admission ====================

    def grant(
        self,
        caller: str,
        to: str,
        value: int,
        start: int,
        cliff: int,
        end: int,
        installment_length: int,
        revokable: bool = False,
    ) -> Grant:
        """
        Grant tokens from the pre-funded reserve (owner only).

        Args:
            caller: Address calling grant (must be owner)
            to: Beneficiary
            value: Total amount to vest
            start: Vesting start timestamp
            cliff: Timestamp before which nothing vests
            end: Timestamp at which everything has vested
            installment_length: Vesting granularity in seconds
            revokable: Whether the owner may revoke the grant later

        Returns:
            The created grant

        Raises:
            NotOwnerError: If caller is not the owner
            VestingError: If the grant parameters are invalid
        """
        with self._atomic():
            self.require_owner(caller)
            return self._create_grant(
                to, value, start, cliff, end, installment_length, revokable,
                funder=caller.lower(),
                source=FundingSource.RESERVE,
            )

    def token_fallback(self, token_address: str, sender: str, value: int, data: bytes) -> None:
        """
        Create a self-funded grant from a deposit.

        Called by the reserve token from ``transfer_and_call`` after ``value``
        tokens have been moved from ``sender`` to the trustee. ``data`` holds
        the beneficiary and schedule. Anyone may fund a grant this way.

        Raises:
            UnknownTokenError: If the notification is not from the reserve token,
                or no matching transfer_and_call is delivering ``value`` from ``sender``
            InvalidPayloadError: If ``data`` does not decode as grant instructions
            VestingError: If the grant parameters are invalid
        """
        with self._atomic():
            if (token_address or "").lower() != self.token.address:
                raise UnknownTokenError(
                    f"Deposits are only accepted from {self.token.address}",
                    details={"token": token_address},
                )
            if not self.token.is_delivering(self.address, sender, value):
                raise UnknownTokenError(
                    "Deposit notification does not match a transfer in progress",
                    details={"sender": sender, "value": value},
                )
            payload = decode_grant_payload(data)
            self._create_grant(
                payload.to,
                value,
                payload.start,
                payload.cliff,
                payload.end,
                payload.installment_length,
                payload.revokable,
                funder=sender.lower(),
                source=FundingSource.DEPOSIT,
            )

    def _create_grant(
        self,
        to: str,
        value: int,
        start: int,
        cliff: int,
        end: int,
        installment_length: int,
        revokable: bool,
        *,
        funder: str,
        source: FundingSource,
    ) -> Grant:
        to_norm = (to or "").lower()
        if not to_norm or to_norm == ZERO_ADDRESS or to_norm == self.address:
            raise InvalidBeneficiaryError(
                f"Cannot grant to {to!r}",
                details={"to": to},
            )

        validate_schedule(value, start, cliff, end, installment_length)

        # Checked before the reserve so a repeat grant reports the duplicate
        if self.registry.has_held_grant(to_norm):
            raise DuplicateGrantError(
                f"Beneficiary {to_norm} has already been granted tokens",
                details={"to": to_norm},
            )

        available = self.available_surplus()
        if available < value:
            raise InsufficientReserveError(
                f"Insufficient unreserved balance ({available} < {value})",
                details={"available": available, "value": value},
            )

        grant = Grant(
            value=value,
            start=start,
            cliff=cliff,
            end=end,
            installment_length=installment_length,
            transferred=0,
            revokable=bool(revokable),
        )
        self.registry.insert(to_norm, grant)
        self._emit("NewGrant", _from=funder, _to=to_norm, _value=value)

        logger.info(
            "Grant created",
            extra={
                "event": "trustee.grant",
                "source": source.value,
                "funder": funder[:10],
                "to": to_norm[:10],
                "value": value,
                "start": start,
                "cliff": cliff,
                "end": end,
                "installment_length": installment_length,
                "revokable": bool(revokable),
                "total_reserved": self.registry.total_reserved,
            },
        )
        return self.registry.get(to_norm)

    # ==================== Unlocking ====================

    def unlock(self, holder: str) -> UnlockResult:
        """
        Transfer everything vested but not yet paid to ``holder``.

        A missing or revoked grant is not an error: an ``Error`` event with
        code INVALID_VALUE is emitted and NOT_FOUND is returned.
        """
        with self._atomic():
            return self._unlock(holder.lower())

    def batch_unlock(self, holders: Iterable[str]) -> list[UnlockResult]:
        """
        Unlock each holder in turn within one atomic call.

        A missing grant or an empty payout for one holder does not stop the
        others. Results are returned in input order.
        """
        with self._atomic():
            results = [self._unlock(holder.lower()) for holder in holders]

        logger.info(
            "Batch unlock processed",
            extra={
                "event": "trustee.batch_unlock",
                "holders": len(results),
                "unlocked": sum(1 for r in results if r.status is UnlockStatus.UNLOCKED),
                "amount": sum(r.amount for r in results),
            },
        )
        return results

    def _unlock(self, holder: str) -> UnlockResult:
        grant = self.registry.get(holder)
        if grant is None:
            self._emit("Error", error=int(ErrorCode.INVALID_VALUE), holder=holder)
            logger.warning(
                "Unlock requested without a live grant",
                extra={"event": "trustee.unlock_missing", "holder": holder[:10]},
            )
            return UnlockResult(holder, UnlockStatus.NOT_FOUND)

        ready = ready_amount(grant, self._current_time())
        if ready == 0:
            return UnlockResult(holder, UnlockStatus.NOTHING_READY)

        self.registry.record_transfer(holder, ready)
        self.token.transfer(self.address, holder, ready)
        self._emit("TokensUnlocked", _to=holder, _value=ready)

        logger.info(
            "Tokens unlocked",
            extra={
                "event": "trustee.unlock",
                "holder": holder[:10],
                "amount": ready,
                "transferred": grant.transferred + ready,
                "value": grant.value,
            },
        )
        return UnlockResult(holder, UnlockStatus.UNLOCKED, ready)

    # ==================== Revocation ====================

    def revoke(self, caller: str, holder: str) -> int:
        """
        Revoke a grant and refund its unpaid remainder to the owner (owner only).

        Anything vested but not yet unlocked is refunded too; the beneficiary
        keeps only what was already transferred. The beneficiary can never
        be granted again.

        Returns:
            The refunded amount

        Raises:
            NotOwnerError: If caller is not the owner
            NoSuchGrantError: If ``holder`` has no live grant
            NotRevokableError: If the grant was created non-revokable
        """
        holder_norm = holder.lower()
        with self._atomic():
            self.require_owner(caller)

            grant = self.registry.get(holder_norm)
            if grant is None:
                raise NoSuchGrantError(
                    f"No grant for {holder_norm}",
                    details={"holder": holder_norm},
                )
            if not grant.revokable:
                raise NotRevokableError(
                    f"Grant for {holder_norm} is not revokable",
                    details={"holder": holder_norm},
                )

            refund = self.registry.remove(holder_norm).remaining
            if refund > 0:
                self.token.transfer(self.address, self.owner, refund)
            self._emit("GrantRevoked", _holder=holder_norm, _refund=refund)

        logger.info(
            "Grant revoked",
            extra={
                "event": "trustee.revoke",
                "holder": holder_norm[:10],
                "refund": refund,
                "paid_out": grant.transferred,
                "total_reserved": self.registry.total_reserved,
            },
        )
        return refund

    # ==================== Rescue ====================

    def withdraw_other(self, caller: str, asset: "ERC20Token", amount: int) -> bool:
        """
        Withdraw tokens held by the trustee to the owner (owner only).

        For the reserve token only the unreserved surplus can be withdrawn.
        Any other token can be withdrawn up to the trustee's full balance.

        Raises:
            NotOwnerError: If caller is not the owner
            InsufficientSurplusError: If ``amount`` exceeds the reserve surplus
            InsufficientBalanceError: If ``amount`` exceeds the foreign balance
        """
        with self._atomic(asset):
            self.require_owner(caller)

            if asset.address == self.token.address:
                surplus = self.available_surplus()
                if amount > surplus:
                    raise InsufficientSurplusError(
                        f"Cannot withdraw {amount}; only {surplus} is unreserved",
                        details={"amount": amount, "surplus": surplus},
                    )
            else:
                balance = asset.balance_of(self.address)
                if amount > balance:
                    raise InsufficientBalanceError(
                        f"Cannot withdraw {amount} {asset.symbol}; trustee holds {balance}",
                        details={"amount": amount, "balance": balance, "token": asset.address},
                    )

            asset.transfer(self.address, self.owner, amount)

        logger.info(
            "Tokens withdrawn",
            extra={
                "event": "trustee.withdraw",
                "token": asset.symbol,
                "amount": amount,
                "reserve": asset.address == self.token.address,
            },
        )
        return True

    # ==================== Admin Functions ====================

    def transfer_ownership(self, caller: str, new_owner: str) -> bool:
        """Transfer ownership (owner only)."""
        with self._atomic():
            self._set_owner(caller, new_owner)
        return True

    # ==================== Helpers ====================

    def _emit(self, event_type: str, **args: Any) -> None:
        self.events.append(TrusteeEvent(event_type=event_type, args=args))

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize trustee state to dictionary."""
        return {
            "address": self.address,
            "owner": self.owner,
            "token": self.token.address,
            "registry": self.registry.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        token: "ERC20Token",
        time_provider: Callable[[], int] | None = None,
    ) -> "VestingTrustee":
        """
        Deserialize trustee state.

        Raises:
            UnknownTokenError: If ``token`` is not the token the state was saved with
            StateIntegrityError: If the saved aggregate does not match the saved grants
        """
        if data.get("token", token.address).lower() != token.address:
            raise UnknownTokenError(
                f"State belongs to token {data['token']}, not {token.address}",
                details={"token": data.get("token")},
            )
        trustee = cls(token, owner=data["owner"], address=data["address"], time_provider=time_provider)
        trustee.registry = GrantRegistry.from_dict(data.get("registry", {}))
        if trustee.available_surplus() < 0:
            raise StateIntegrityError(
                f"Reserved total {trustee.total_reserved} exceeds the trustee balance",
                details={"total_reserved": trustee.total_reserved, "balance": token.balance_of(trustee.address)},
            )
        return trustee
