"""Fixtures for integration tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest

from tests.helpers.fake_controller import FakeController


@pytest.fixture
async def fake_controller() -> AsyncGenerator[FakeController]:
    """Fixture providing a running fake controller."""
    controller = FakeController()
    await controller.start()
    yield controller
    await controller.stop()
