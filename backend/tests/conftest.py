"""
Shared test fixtures for the relay tests.

Provides:
- A controllable clock (epoch seconds)
- A fully wired AppState
- A FastAPI TestClient bound to that state
"""

import pytest
from fastapi.testclient import TestClient

from oraclex_relay.api.state import build_state
from oraclex_relay.controllers.api_controller import create_app
from oraclex_relay.infrastructure.utils.config import RelayConfig


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return RelayConfig()


@pytest.fixture
def state(config, clock):
    return build_state(config, clock=clock)


@pytest.fixture
def client(state, config):
    return TestClient(create_app(state, config))
