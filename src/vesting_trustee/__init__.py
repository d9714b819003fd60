"""
Vesting Trustee - Token Grant Vesting Ledger

Releases a fungible token balance to beneficiaries gradually over time under
a cliff-plus-installment schedule, with owner revocation and rescue of
mistaken deposits.

Main Components:
- Vesting: Grant records, the vesting calculator and the grant registry
- Contracts: The trustee contract, the reserve token and ownership
- CLI: Schedule tabulation, payload encoding and state inspection

See README.md for usage and DESIGN.md for design decisions.
"""

__version__ = "0.1.0"
__author__ = "Vesting Trustee Development Team"

__all__ = []
