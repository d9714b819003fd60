"""
Test configuration and fixtures
"""
import sys
from pathlib import Path

import pytest

# Add src to Python path so tests run without an editable install
project_root = Path(__file__).resolve().parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from vesting_trustee.core.contracts.erc20 import ERC20Token  # noqa: E402
from vesting_trustee.core.contracts.vesting_trustee import VestingTrustee  # noqa: E402

NOW = 1_700_000_000
INITIAL_TOKENS = 2 * 10**12

OWNER = "0x" + "a0" * 20
TOKEN_ADDRESS = "0x" + "c1" * 20
TRUSTEE_ADDRESS = "0x" + "7e" * 20
ACCOUNTS = [OWNER] + ["0x" + f"{i:02x}" * 20 for i in range(1, 10)]


class ManualClock:
    def __init__(self, start_time: int):
        self.current_time = start_time

    def now(self) -> int:
        return self.current_time

    def advance(self, seconds: int):
        self.current_time += seconds

    def set(self, timestamp: int):
        self.current_time = timestamp


@pytest.fixture
def accounts():
    """Ten distinct addresses; accounts[0] owns the token and the trustee"""
    return list(ACCOUNTS)


@pytest.fixture
def owner():
    return OWNER


@pytest.fixture
def clock():
    return ManualClock(start_time=NOW)


@pytest.fixture
def token():
    """Reserve token with the whole initial supply held by the owner"""
    tok = ERC20Token(name="Colu Local Network", symbol="CLN", owner=OWNER, address=TOKEN_ADDRESS)
    tok.mint(OWNER, OWNER, INITIAL_TOKENS)
    return tok


@pytest.fixture
def trustee(token, clock):
    return VestingTrustee(token, owner=OWNER, address=TRUSTEE_ADDRESS, time_provider=clock.now)


@pytest.fixture
def make_funded_trustee(token, trustee):
    """Fund the trustee from the owner and enable token transfers"""

    def _fund(balance: int, enable_transfers: bool = True) -> VestingTrustee:
        token.transfer(OWNER, trustee.address, balance)
        if enable_transfers:
            token.enable_transfers(OWNER)
        return trustee

    return _fund
