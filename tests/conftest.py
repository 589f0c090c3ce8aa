import hashlib

import pytest
from fastapi.testclient import TestClient
from solders.keypair import Keypair

from solforge.main import app, get_random_bytes


class CountingRandom:
    """Deterministic stand-in for the secure random source."""

    def __init__(self, label: bytes = b"solforge-tests"):
        self.label = label
        self.calls = 0

    def __call__(self, n: int) -> bytes:
        self.calls += 1
        out = b""
        counter = 0
        while len(out) < n:
            out += hashlib.sha256(self.label + self.calls.to_bytes(4, "little") + counter.to_bytes(4, "little")).digest()
            counter += 1
        return out[:n]


def keypair_from_byte(value: int) -> Keypair:
    return Keypair.from_seed(bytes([value]) * 32)


@pytest.fixture
def fake_random():
    return CountingRandom()


@pytest.fixture
def owner():
    return keypair_from_byte(1)


@pytest.fixture
def recipient():
    return keypair_from_byte(2)


@pytest.fixture
def mint():
    return keypair_from_byte(3)


@pytest.fixture
def client(fake_random):
    app.dependency_overrides[get_random_bytes] = lambda: fake_random
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
