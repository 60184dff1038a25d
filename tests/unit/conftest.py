import pytest

from meet_torture.utils import timing
from tests.unit.fakes import FakeClock, FakePage


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    c = FakeClock()
    monkeypatch.setattr(timing, "now_ms", c.now_ms)
    monkeypatch.setattr(timing, "sleep_ms", c.sleep_ms)
    return c


@pytest.fixture
def page() -> FakePage:
    return FakePage()
