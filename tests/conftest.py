import pytest

from tests.helpers import ManualClock


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
