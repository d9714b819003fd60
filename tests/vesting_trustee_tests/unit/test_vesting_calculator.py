"""
Unit tests for the vesting calculator.
"""

import pytest

from vesting_trustee.core.constants import DAY, MONTH, YEAR
from vesting_trustee.core.vesting import Grant, installment_schedule, ready_amount, vested_amount


def make_grant(value, cliff, end, installment_length, start=0, transferred=0):
    return Grant(
        value=value,
        start=start,
        cliff=cliff,
        end=end,
        installment_length=installment_length,
        transferred=transferred,
    )


def test_monthly_cliff_with_per_second_installments():
    grant = make_grant(1000, cliff=MONTH, end=YEAR, installment_length=1)

    assert vested_amount(grant, 0) == 0
    assert vested_amount(grant, MONTH - 5) == 0
    assert vested_amount(grant, MONTH) == 83
    assert vested_amount(grant, 2 * MONTH) == 166
    assert vested_amount(grant, YEAR // 2) == 500
    assert vested_amount(grant, YEAR) == 1000
    assert vested_amount(grant, YEAR + DAY) == 1000


def test_four_year_linear_vesting():
    grant = make_grant(1_000_000, cliff=0, end=4 * YEAR, installment_length=1)

    assert vested_amount(grant, 0) == 0
    assert vested_amount(grant, YEAR) == 250_000
    assert vested_amount(grant, 2 * YEAR) == 500_000
    assert vested_amount(grant, 4 * YEAR) == 1_000_000
    assert vested_amount(grant, 5 * YEAR) == 1_000_000


def test_single_installment_releases_everything_at_end():
    grant = make_grant(5000, cliff=0, end=YEAR, installment_length=YEAR)

    assert vested_amount(grant, 0) == 0
    assert vested_amount(grant, YEAR // 2) == 0
    assert vested_amount(grant, YEAR - 1) == 0
    assert vested_amount(grant, YEAR) == 5000


@pytest.mark.parametrize(
    "offset, expected",
    [
        (0, 0),
        (MONTH, 208),
        (MONTH + DAY, 208),
        (MONTH + 10 * DAY, 208),
        (2 * MONTH, 416),
        (YEAR // 2, 1250),
        (YEAR // 2 + 10 * DAY, 1250),
        (YEAR, 2500),
        (2 * YEAR, 5000),
        (3 * YEAR, 7500),
        (4 * YEAR, 10000),
        (4 * YEAR + MONTH, 10000),
    ],
)
def test_monthly_installments_hold_between_boundaries(offset, expected):
    grant = make_grant(10000, cliff=0, end=4 * YEAR, installment_length=MONTH)
    assert vested_amount(grant, offset) == expected


@pytest.mark.parametrize(
    "offset, expected",
    [
        (YEAR // 2, 0),
        (YEAR, 2500),
        (YEAR + MONTH, 2500),
        (YEAR + 2 * MONTH, 2500),
        (YEAR + 3 * MONTH, 3125),
        (3 * YEAR + 2 * MONTH, 7500),
        (3 * YEAR + 3 * MONTH, 8125),
        (4 * YEAR, 10000),
    ],
)
def test_year_cliff_with_quarterly_installments(offset, expected):
    grant = make_grant(10000, cliff=YEAR, end=4 * YEAR, installment_length=3 * MONTH)
    assert vested_amount(grant, offset) == expected


def test_cliff_releases_accumulated_installments_at_once():
    grant = make_grant(10000, cliff=YEAR, end=4 * YEAR, installment_length=1)

    assert vested_amount(grant, YEAR - 1) == 0
    assert vested_amount(grant, YEAR) == 2500


def test_schedule_relative_to_nonzero_start():
    start = 1_700_000_000
    grant = make_grant(1000, start=start, cliff=start + MONTH, end=start + YEAR, installment_length=1)

    assert vested_amount(grant, start - 1) == 0
    assert vested_amount(grant, start + MONTH) == 83
    assert vested_amount(grant, start + YEAR) == 1000


def test_division_truncates_before_end():
    # 7 tokens over 3 equal installments never divide evenly
    grant = make_grant(7, cliff=0, end=3, installment_length=1)

    assert [vested_amount(grant, t) for t in range(4)] == [0, 2, 4, 7]


def test_ready_amount_subtracts_transferred():
    grant = make_grant(1000, cliff=MONTH, end=YEAR, installment_length=1, transferred=83)

    assert ready_amount(grant, MONTH) == 0
    assert ready_amount(grant, 2 * MONTH) == 83
    assert ready_amount(grant, YEAR) == 917


def test_installment_schedule_includes_cliff_and_end():
    grant = make_grant(1000, cliff=MONTH + 1, end=YEAR, installment_length=MONTH)

    rows = list(installment_schedule(grant))
    timestamps = [t for t, _ in rows]

    assert timestamps[0] == 0
    assert MONTH + 1 in timestamps
    assert timestamps[-1] == YEAR
    assert rows[-1][1] == 1000
    assert timestamps == sorted(timestamps)


def test_installment_schedule_rejects_non_positive_step():
    grant = make_grant(1000, cliff=0, end=YEAR, installment_length=MONTH)
    with pytest.raises(ValueError):
        list(installment_schedule(grant, step=-1))
