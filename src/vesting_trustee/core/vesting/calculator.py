"""
Vesting calculator.

Maps a grant and a timestamp to the amount vested at that time. Vesting
advances in whole installments counted from ``start``; nothing vests before
the cliff and everything vests at ``end``. All division truncates, so the
amount released before ``end`` may trail the exact linear fraction by at
most one token; the remainder clears at ``end``.
"""

from __future__ import annotations

from typing import Iterator, Tuple

from .grant import Grant


def vested_amount(grant: Grant, at_time: int) -> int:
    """
    Calculate the amount of a grant vested at ``at_time``.

    Args:
        grant: Grant to evaluate
        at_time: Unix timestamp

    Returns:
        Vested amount, between 0 and ``grant.value``
    """
    if at_time < grant.cliff:
        return 0

    if at_time >= grant.end:
        return grant.value

    # Truncate elapsed time to the last completed installment
    installments_elapsed = (at_time - grant.start) // grant.installment_length
    vested_span = installments_elapsed * grant.installment_length

    return grant.value * vested_span // grant.span


def ready_amount(grant: Grant, now: int) -> int:
    """Vested amount at ``now`` that has not been transferred yet."""
    return vested_amount(grant, now) - grant.transferred


def installment_schedule(grant: Grant, step: int | None = None) -> Iterator[Tuple[int, int]]:
    """
    Yield ``(timestamp, vested)`` pairs from ``start`` through ``end``.

    ``step`` defaults to the installment length. The cliff and the end are
    always included so the first non-zero release and the final release
    show up regardless of the step.
    """
    step = step or grant.installment_length
    if step <= 0:
        raise ValueError("step must be positive")

    points = set(range(grant.start, grant.end, step))
    points.update((grant.cliff, grant.end))
    for timestamp in sorted(points):
        yield timestamp, vested_amount(grant, timestamp)
