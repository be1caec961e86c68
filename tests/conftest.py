import pytest


class FakeTime:
    """Manually advanced monotonic time source."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_time():
    return FakeTime()
