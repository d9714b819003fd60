"""
Vesting schedules.

- Grant: per-beneficiary schedule and progress record
- Calculator: vested/ready amounts at a point in time
- Registry: keyed grant store with the reserved-balance aggregate
"""

from .calculator import installment_schedule, ready_amount, vested_amount
from .grant import Grant, validate_schedule
from .registry import GrantRegistry

__all__ = [
    "Grant",
    "GrantRegistry",
    "validate_schedule",
    "vested_amount",
    "ready_amount",
    "installment_schedule",
]
