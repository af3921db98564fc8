"""Shared fixtures: a fresh runtime per test."""

import pytest

from teamcall.runtime.connections import ConnectionManager
from teamcall.runtime.hub import SignalingHub
from teamcall.runtime.presence import PresenceRegistry
from teamcall.runtime.signaling import SignalingRelay


@pytest.fixture
def connections() -> ConnectionManager:
    return ConnectionManager(outbox_max_size=64)


@pytest.fixture
def presence(connections: ConnectionManager) -> PresenceRegistry:
    return PresenceRegistry(connections)


@pytest.fixture
def relay(connections: ConnectionManager, presence: PresenceRegistry) -> SignalingRelay:
    return SignalingRelay(connections, presence)


@pytest.fixture
async def hub():
    h = SignalingHub(outbox_max_size=64)
    yield h
    await h.close()
