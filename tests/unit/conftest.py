"""
Unit test fixtures for pure functions and isolated components.
"""

import pytest
from faker import Faker

fake = Faker()


@pytest.fixture
def random_id() -> str:
    """Generate a random observation id."""
    return fake.uuid4()


@pytest.fixture
def random_tool_name() -> str:
    """Generate a tool name that contains no dots."""
    return fake.word().replace(".", "_") + "_tool"
