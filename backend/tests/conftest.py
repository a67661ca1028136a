"""Pytest configuration and fixtures."""

import pytest


@pytest.fixture
def event_loop_policy():
    """Use the default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest.fixture(autouse=True)
def _no_scoring_service(monkeypatch):
    """Keep a developer's SCORING_SERVICE_URL from routing tests to a real service."""
    monkeypatch.delenv("SCORING_SERVICE_URL", raising=False)
