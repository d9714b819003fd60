"""
ERC20 Reserve Token Implementation.

In-memory fungible token ledger used as the vesting trustee's reserve:
- Balances, transfers and owner-only minting
- A global transfers-enabled switch (owner may always move tokens)
- transferAndCall (ERC677 style) for deposit-with-instructions
- Events (Transfer, TransferAndCall)
- Snapshots for call atomicity and dict serialization

Security features:
- uint256 bounds on every amount
- Zero address checks on recipients
- Balance underflow prevention
- Receiver hooks only honoured while the matching deposit is in flight
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Protocol, Tuple

from ..constants import UINT256_MAX, ZERO_ADDRESS
from ..exceptions import (
    InsufficientTokenBalanceError,
    InvalidAddressError,
    InvalidAmountError,
    NotATokenReceiverError,
    TokenNotOwnerError,
    TransfersDisabledError,
)

logger = logging.getLogger(__name__)


class TokenReceiver(Protocol):
    """Contract that can be notified by transfer_and_call."""

    address: str

    def token_fallback(self, token_address: str, sender: str, value: int, data: bytes) -> None:
        ...


@dataclass
class TokenEvent:
    """Represents a token event."""

    event_type: str  # "Transfer" or "TransferAndCall"
    from_address: str
    to_address: str
    value: int
    data: bytes = b""
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    ERC20 token backing the vesting trustee.

    Transfers start disabled; until the owner enables them only the owner
    may move tokens. Minting is owner-only and unaffected by the switch.
    """

    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0
    address: str = ""
    owner: str = ""

    balances: dict[str, int] = field(default_factory=dict)
    transfers_enabled: bool = False

    # Contracts notified by transfer_and_call, keyed by address
    receivers: dict[str, TokenReceiver] = field(default_factory=dict, repr=False)

    events: list[TokenEvent] = field(default_factory=list)

    # (receiver, sender, value) of the transfer_and_call currently notifying its receiver
    _deposit_in_flight: Tuple[str, str, int] | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.address:
            addr_input = f"{self.name}{self.symbol}{time.time()}".encode()
            self.address = f"0x{hashlib.sha3_256(addr_input).digest()[-20:].hex()}"
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner)

    def balance_of(self, account: str) -> int:
        return self.balances.get(self._normalize(account), 0)

    def is_delivering(self, receiver: str, sender: str, value: int) -> bool:
        """
        Whether a transfer_and_call of ``value`` from ``sender`` to ``receiver``
        has moved its tokens and is now notifying the receiver.

        Receivers call this from ``token_fallback`` to reject notifications
        that were not produced by an actual deposit.
        """
        return self._deposit_in_flight == (
            self._normalize(receiver),
            self._normalize(sender),
            value,
        )

    # ==================== Transfers ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Raises:
            TransfersDisabledError: If transfers are disabled and sender is not the owner
            InvalidAddressError: If recipient is the zero address
            InvalidAmountError: If amount is not a uint256
            InsufficientTokenBalanceError: If sender holds less than amount
        """
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        self._require_transferable(sender_norm)
        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        from_balance = self.balances.get(sender_norm, 0)
        if from_balance < amount:
            raise InsufficientTokenBalanceError(
                f"ERC20: transfer amount exceeds balance ({amount} > {from_balance})",
                details={"from": sender_norm, "balance": from_balance, "amount": amount},
            )
        self.balances[sender_norm] = from_balance - amount
        self.balances[recipient_norm] = self.balances.get(recipient_norm, 0) + amount
        self._emit("Transfer", sender_norm, recipient_norm, amount)

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            }
        )
        return True

    def transfer_and_call(self, sender: str, to: str, value: int, data: bytes) -> bool:
        """
        Transfer tokens to a contract and notify it in the same call.

        The receiver registered for ``to`` gets ``token_fallback`` with the
        sender, the value and the attached data. If the receiver raises, the
        transfer is undone and the error propagates.

        Raises:
            NotATokenReceiverError: If no receiver is registered for ``to``
        """
        sender_norm = self._normalize(sender)
        to_norm = self._normalize(to)

        receiver = self.receivers.get(to_norm)
        if receiver is None:
            raise NotATokenReceiverError(
                f"ERC20: {to_norm} cannot receive transferAndCall",
                details={"to": to_norm},
            )

        snapshot = self.snapshot()
        outer_deposit = self._deposit_in_flight
        try:
            self.transfer(sender_norm, to_norm, value)
            self._emit("TransferAndCall", sender_norm, to_norm, value, data=bytes(data))
            self._deposit_in_flight = (to_norm, sender_norm, value)
            receiver.token_fallback(self.address, sender_norm, value, bytes(data))
        except Exception:
            self.restore(snapshot)
            raise
        finally:
            self._deposit_in_flight = outer_deposit

        logger.info(
            "ERC20 transferAndCall",
            extra={
                "event": "erc20.transfer_and_call",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": to_norm[:10],
                "amount": value,
                "data_bytes": len(data),
            }
        )
        return True

    def register_receiver(self, receiver: TokenReceiver) -> None:
        """Make a contract reachable through transfer_and_call."""
        self.receivers[self._normalize(receiver.address)] = receiver

    # ==================== Admin Functions ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Mint new tokens (owner only).

        Raises:
            TokenNotOwnerError: If the minter is not the owner
        """
        self._require_owner(minter)

        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        if self.total_supply + amount > UINT256_MAX:
            raise InvalidAmountError("ERC20: mint would overflow total supply")

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self._emit("Transfer", ZERO_ADDRESS, to_norm, amount)

        logger.info(
            "ERC20 mint",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    def enable_transfers(self, caller: str) -> bool:
        """Allow every holder to move tokens (owner only, irreversible)."""
        self._require_owner(caller)
        self.transfers_enabled = True
        logger.info(
            "ERC20 transfers enabled",
            extra={"event": "erc20.transfers_enabled", "token": self.symbol},
        )
        return True

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        return (address or "").lower()

    def _validate_address(self, address: str, field: str) -> None:
        if address == ZERO_ADDRESS or not address:
            raise InvalidAddressError(f"ERC20: {field} is zero address")

    def _validate_amount(self, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmountError(f"ERC20: amount must be an integer (got {type(amount).__name__})")
        if amount < 0:
            raise InvalidAmountError("ERC20: amount cannot be negative")
        if amount > UINT256_MAX:
            raise InvalidAmountError("ERC20: amount exceeds uint256")

    def _require_owner(self, caller: str) -> None:
        if self._normalize(caller) != self.owner:
            raise TokenNotOwnerError("ERC20: caller is not owner")

    def _require_transferable(self, sender_norm: str) -> None:
        """Require transfers are enabled, unless the owner is moving tokens."""
        if not self.transfers_enabled and sender_norm != self.owner:
            raise TransfersDisabledError(
                f"ERC20: {self.symbol} transfers are not enabled yet",
                details={"sender": sender_norm},
            )

    def _emit(self, event_type: str, from_addr: str, to_addr: str, amount: int, data: bytes = b"") -> None:
        self.events.append(
            TokenEvent(
                event_type=event_type,
                from_address=from_addr,
                to_address=to_addr,
                value=amount,
                data=data,
            )
        )

    # ==================== Snapshots ====================

    def snapshot(self) -> Dict[str, Any]:
        """Capture mutable state so a failed call can be rolled back."""
        return {
            "total_supply": self.total_supply,
            "owner": self.owner,
            "balances": dict(self.balances),
            "transfers_enabled": self.transfers_enabled,
            "event_count": len(self.events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """Reinstate a state captured by snapshot()."""
        self.total_supply = snapshot["total_supply"]
        self.owner = snapshot["owner"]
        self.balances = dict(snapshot["balances"])
        self.transfers_enabled = snapshot["transfers_enabled"]
        del self.events[snapshot["event_count"]:]

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "transfers_enabled": self.transfers_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ERC20Token":
        token = cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=int(data.get("total_supply", 0)),
            address=data.get("address", ""),
            owner=data.get("owner", ""),
            transfers_enabled=data.get("transfers_enabled", False),
        )
        token.balances = {k: int(v) for k, v in data.get("balances", {}).items()}
        return token
