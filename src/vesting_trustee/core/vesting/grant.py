"""
Grant record for a single beneficiary's vesting schedule and progress.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict

from ..exceptions import (
    InvalidInstallmentError,
    InvalidScheduleError,
    InvalidValueError,
)


@dataclass
class Grant:
    """
    One beneficiary's vesting schedule.

    ``value``, ``start``, ``cliff``, ``end``, ``installment_length`` and
    ``revokable`` are fixed at creation. ``transferred`` is the cumulative
    amount already paid out and only ever grows.

    The dataclass itself is mutable. ``GrantRegistry`` keeps its own copy on
    insert and only hands out copies, so changing a ``Grant`` obtained from
    it never alters the stored schedule; ``transferred`` moves only through
    ``GrantRegistry.record_transfer``.
    """

    value: int
    start: int
    cliff: int
    end: int
    installment_length: int
    transferred: int = 0
    revokable: bool = False

    @property
    def remaining(self) -> int:
        """Amount still held for this grant (issued minus paid out)."""
        return self.value - self.transferred

    @property
    def span(self) -> int:
        return self.end - self.start

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Grant":
        return cls(
            value=int(data["value"]),
            start=int(data["start"]),
            cliff=int(data["cliff"]),
            end=int(data["end"]),
            installment_length=int(data["installment_length"]),
            transferred=int(data.get("transferred", 0)),
            revokable=bool(data.get("revokable", False)),
        )


def validate_schedule(
    value: int,
    start: int,
    cliff: int,
    end: int,
    installment_length: int,
) -> None:
    """
    Validate grant parameters.

    Raises:
        InvalidValueError: If value is not positive
        InvalidScheduleError: If the cliff is before the start or after the end
        InvalidInstallmentError: If the installment length is not in (0, end - start]
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidValueError(
            f"Grant value must be an integer (got {type(value).__name__})",
            details={"value": value},
        )
    if any(isinstance(t, bool) or not isinstance(t, int) for t in (start, cliff, end, installment_length)):
        raise InvalidScheduleError(
            "Time parameters must be integers (Unix timestamps/durations)",
            details={"start": start, "cliff": cliff, "end": end, "installment_length": installment_length},
        )
    if value <= 0:
        raise InvalidValueError(
            f"Grant value must be positive (got {value})",
            details={"value": value},
        )
    if cliff < start or cliff > end:
        raise InvalidScheduleError(
            f"Cliff must lie within [start, end] (start={start}, cliff={cliff}, end={end})",
            details={"start": start, "cliff": cliff, "end": end},
        )
    if installment_length <= 0 or installment_length > end - start:
        raise InvalidInstallmentError(
            f"Installment length must be in (0, {end - start}] (got {installment_length})",
            details={"installment_length": installment_length, "span": end - start},
        )
