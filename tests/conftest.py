"""
Shared pytest fixtures.
"""

import pytest

from fakes import FakePlayer, FakeView


@pytest.fixture
def view() -> FakeView:
    return FakeView()


@pytest.fixture
def player() -> FakePlayer:
    return FakePlayer()
