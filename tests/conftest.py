"""Pytest configuration and shared fixtures."""
import pytest

from changetracking import ChangeTracker, reset_default_config
from models import Order, Person


@pytest.fixture(autouse=True)
def reset_config():
    """Reset the module-level tracker config around each test."""
    reset_default_config()
    yield
    reset_default_config()


@pytest.fixture
def tracker():
    """Untyped tracker deriving properties from each item's class."""
    return ChangeTracker()


@pytest.fixture
def person():
    return Person()


@pytest.fixture
def order():
    return Order()
