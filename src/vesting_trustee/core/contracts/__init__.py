"""
Vesting Trustee Contracts.

This module provides:
- ERC20: Reserve token with transfers-enabled switch and transferAndCall
- Ownable: Single-owner access control
- Grant payload: Encoding of grant instructions attached to deposits
- VestingTrustee: Grant admission, unlocking, revocation and rescue
"""

from .erc20 import ERC20Token, TokenEvent
from .grant_payload import (
    GRANT_SELECTOR,
    GrantPayload,
    decode_grant_payload,
    encode_grant_payload,
)
from .ownable import Ownable
from .vesting_trustee import (
    FundingSource,
    TrusteeEvent,
    UnlockResult,
    UnlockStatus,
    VestingTrustee,
)

__all__ = [
    # Tokens
    "ERC20Token",
    "TokenEvent",
    # Access control
    "Ownable",
    # Grant payloads
    "GRANT_SELECTOR",
    "GrantPayload",
    "encode_grant_payload",
    "decode_grant_payload",
    # Trustee
    "VestingTrustee",
    "TrusteeEvent",
    "UnlockResult",
    "UnlockStatus",
    "FundingSource",
]
