"""
Pytest configuration and fixtures for Multinet client tests.

This file provides test isolation and shared fixtures.
"""
import asyncio

import pytest
import pytest_asyncio

from multinet.client import MultinetClient
from tests.factories import API_URL


@pytest.fixture(autouse=True)
def reset_global_state():
    """
    Reset configuration and logging context between tests.

    This prevents test pollution from module-level singletons.
    """
    yield

    import multinet.config as cfg
    cfg._config = None

    from multinet.utils.logging import clear_context
    clear_context()


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use default event loop policy."""
    return asyncio.DefaultEventLoopPolicy()


@pytest_asyncio.fixture
async def client():
    """Multinet client against the fake API root, closed after each test."""
    api = MultinetClient(base_url=API_URL)
    yield api
    await api.close()
