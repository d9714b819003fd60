"""Command line interface for the vesting trustee."""

from .main import cli, main

__all__ = ["cli", "main"]
