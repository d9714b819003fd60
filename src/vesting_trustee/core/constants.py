"""
Vesting Trustee Constants

Time units, address sentinels and the error codes reported by the trustee
through its ``Error`` event.
"""

from __future__ import annotations

from enum import IntEnum

# ==================== TIME UNITS (seconds) ====================

MINUTE = 60
HOUR = 60 * MINUTE  # 3,600
DAY = 24 * HOUR  # 86,400
WEEK = 7 * DAY  # 604,800
YEAR = 365 * DAY  # 31,536,000
MONTH = YEAR // 12  # 2,628,000

# ==================== ADDRESSES ====================

ZERO_ADDRESS = "0x" + "0" * 40

# ==================== ARITHMETIC ====================

UINT256_MAX = 2**256 - 1


class ErrorCode(IntEnum):
    """Codes carried by the trustee ``Error`` event."""

    OK = 1
    INVALID_VALUE = 10001
    INVALID_VESTED = 10002
    INVALID_TRANSFERABLE = 10003
