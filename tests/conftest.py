import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from limits_monitor import Configuration, ConfigStore, TTLCache  # noqa: E402


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = 1_760_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(clock=clock)


@pytest.fixture
def make_store(cache: TTLCache):
    def _make(settings_path=None, **overrides) -> ConfigStore:
        return ConfigStore(Configuration(**overrides), cache, settings_path=settings_path)

    return _make
