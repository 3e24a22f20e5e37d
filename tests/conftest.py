import pytest

from xoplay.config import GameConfig
from xoplay.scheduling import ManualScheduler
from xoplay.store import InMemoryDocumentStore


class FixedRng:
    """Stand-in for numpy's Generator: fixed coin flip, always the first candidate."""

    def __init__(self, random_value: float = 0.1, index: int = 0):
        self.random_value = random_value
        self.index = index

    def random(self):
        return self.random_value

    def integers(self, low, high=None):
        if high is None:
            return self.index
        return low + self.index


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def config():
    return GameConfig(ai_delay=0.8, coach_delay=1.5, seed=7)


@pytest.fixture
def store():
    return InMemoryDocumentStore()
