"""
conftest.py - Shared pytest fixtures for token ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Storage (plain and recording)
- Ledgers (empty, funded)
- Hosts (open and mint-gated)
"""

import pytest

from tokenledger import MemoryStorage, Host, allow_accounts

from tests.fake_storage import RecordingStorage
from tests.token_helpers import make_token


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def recording_storage():
    return RecordingStorage()


@pytest.fixture
def token(storage):
    """Empty FUNC ledger (supply 0)."""
    return make_token(storage=storage)


@pytest.fixture
def funded_token(storage):
    """FUNC ledger with 1000 minted to alice."""
    return make_token(initial_supply=1000, initial_holder="alice", storage=storage)


@pytest.fixture
def host():
    """Deployed host with alice holding 1000 FUNC, no authorization policy."""
    h = Host(MemoryStorage(), verbose=False)
    h.deploy("FUN COIN", "FUNC", 18, initial_supply=1000, initial_holder="alice")
    return h


@pytest.fixture
def gated_host():
    """Deployed host where only 'minter' may mint or burn."""
    h = Host(MemoryStorage(), verbose=False, authorize=allow_accounts(["minter"]))
    h.deploy("FUN COIN", "FUNC", 18)
    return h
