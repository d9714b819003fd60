"""
Contract exception hierarchy for the vesting trustee.

Provides typed exceptions for token and trustee operations so callers can
distinguish precondition failures precisely. Every exception aborts the call
that raised it; the contract restores the state it held before the call.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class ContractError(Exception):
    """Base exception for all contract errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried with corrected input
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Token Errors ====================


class TokenError(ContractError):
    """Raised when a reserve token operation fails."""
    pass


class InvalidAddressError(TokenError):
    """Raised when an address is empty or the zero address."""
    pass


class InvalidAmountError(TokenError):
    """Raised when an amount is negative or exceeds uint256."""
    pass


class InsufficientTokenBalanceError(TokenError):
    """Raised when an account holds fewer tokens than a transfer requires."""
    pass


class TransfersDisabledError(TokenError):
    """Raised when a non-owner moves tokens before transfers are enabled."""
    pass


class NotATokenReceiverError(TokenError):
    """Raised when transfer_and_call targets an address with no receiver."""
    pass


class TokenNotOwnerError(TokenError):
    """Raised when a token admin function is called by a non-owner."""
    pass


# ==================== Vesting Errors ====================


class VestingError(ContractError):
    """Raised when a trustee precondition is violated."""
    pass


class InvalidBeneficiaryError(VestingError):
    """Raised when granting to the zero address or to the trustee itself."""
    pass


class InvalidValueError(VestingError):
    """Raised when a grant value is not positive."""
    pass


class InvalidScheduleError(VestingError):
    """Raised when the cliff falls outside [start, end]."""
    pass


class InvalidInstallmentError(VestingError):
    """Raised when the installment length is not in (0, end - start]."""
    pass


class DuplicateGrantError(VestingError):
    """Raised when a beneficiary has already held a grant."""
    pass


class InsufficientReserveError(VestingError):
    """Raised when unreserved trustee balance cannot back a new grant."""
    pass


class NotOwnerError(VestingError):
    """Raised when an owner-only operation is called by someone else."""
    pass


class NoSuchGrantError(VestingError):
    """Raised when revoking a beneficiary with no live grant."""
    pass


class NotRevokableError(VestingError):
    """Raised when revoking a grant created as non-revokable."""
    pass


class InsufficientSurplusError(VestingError):
    """Raised when withdrawing more reserve tokens than are unreserved."""
    pass


class InsufficientBalanceError(VestingError):
    """Raised when withdrawing more of a foreign token than the trustee holds."""
    pass


class InvalidPayloadError(VestingError):
    """Raised when grant instructions attached to a deposit cannot be decoded."""
    pass


class UnknownTokenError(VestingError):
    """Raised when a deposit notification comes from a token other than the reserve."""
    pass


class InvalidOwnerError(VestingError):
    """Raised when the owner would be set to an empty or zero address."""
    pass


class InvalidTokenError(VestingError):
    """Raised when the trustee is constructed without a reserve token."""
    pass


class StateIntegrityError(VestingError):
    """Raised when persisted state violates the reserve bookkeeping invariant."""
    pass
