import uuid

import pytest

from fakes import FakeCloudinary, InMemoryCatalogStore


@pytest.fixture
def store():
    return InMemoryCatalogStore()


@pytest.fixture
def dam():
    return FakeCloudinary()


@pytest.fixture
def user_id():
    return uuid.uuid4()
