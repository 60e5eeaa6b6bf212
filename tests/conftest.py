"""
Pytest fixtures for the Gasless Transfer SDK tests.
"""
import time

import pytest
from web3.providers.rpc import HTTPProvider

from gasless_sdk._rate_limited_log import reset_rate_limits
from gasless_sdk.config import NetworkConfig
from gasless_sdk.models import TransferIntent
from gasless_sdk.signer import LocalSigner
from tests.test_helpers import (
    RecordingNotifier,
    TEST_CHAIN_ID,
    TEST_PRIV_KEY,
    TEST_RECIPIENT,
    TEST_TOKEN,
)
from tests.test_helpers.session_creator import make_account

# ─────────────────────────────────────────────────────────────────────────
#  FAST POLLING FOR TESTS
# ─────────────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    """Make time.sleep instantaneous so settlement polling doesn't slow the suite down"""
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _reset_caches():
    reset_rate_limits()
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture(autouse=True)
def _patch_http_provider(monkeypatch):
    """
    Stub every Web3 HTTP call so no DNS / network traffic is triggered.
    """
    def _dummy(self, method, params=None, *_args, **_kwargs):
        if method == "eth_chainId":
            return {"jsonrpc": "2.0", "id": 1, "result": hex(TEST_CHAIN_ID)}
        return {"jsonrpc": "2.0", "id": 1, "result": "0x0"}

    monkeypatch.setattr(HTTPProvider, "make_request", _dummy, raising=True)


class FakeClock:
    """Monotonic clock that only moves when the code under test sleeps."""

    def __init__(self):
        self.now = 1000.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock(monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(time, "monotonic", clock.monotonic)
    monkeypatch.setattr(time, "sleep", clock.sleep)
    return clock


@pytest.fixture
def signer():
    return LocalSigner(TEST_PRIV_KEY)


@pytest.fixture
def smart_account(signer):
    return make_account(signer)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def intent():
    """Scenario intent: 10 tokens to the test recipient on Polygon"""
    return TransferIntent(
        recipient=TEST_RECIPIENT,
        amount="10",
        token_address=TEST_TOKEN,
        chain_id=TEST_CHAIN_ID,
    )
