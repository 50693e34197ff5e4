import pytest

from arcade.session.registry import SessionRegistry
from arcade.tests.mocks import FakeClock


@pytest.fixture
def clock():
    return FakeClock(start=1000.0)


@pytest.fixture
def registry(clock):
    return SessionRegistry(clock=clock)


@pytest.fixture
async def playing(registry):
    """Registry with A vs B playing in channel C1; A to move."""
    await registry.create_session("A", "C1")
    await registry.join_session("B", "C1", "A")
    return registry
