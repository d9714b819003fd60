"""Core ledger, contract and configuration modules."""
