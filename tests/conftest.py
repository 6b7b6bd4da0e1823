"""Pytest configuration for agentline tests.

Both package roots under src/ are put on sys.path so the tests run from a
plain checkout as well as from an editable install.
"""
import io
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    repo_root = Path(__file__).parent.parent.absolute()
    for package_root in ("agentline-cli", "agentline-ui"):
        path = str(repo_root / "src" / package_root)
        if path not in sys.path:
            sys.path.insert(0, path)


class FakeStream(io.StringIO):
    """A text stream that records writes and can pretend to be a terminal."""

    def __init__(self, tty: bool = True):
        super().__init__()
        self.tty = tty
        self.writes = 0

    def isatty(self):
        return self.tty

    def write(self, data):
        self.writes += 1
        return super().write(data)

    def take(self) -> str:
        value = self.getvalue()
        self.seek(0)
        self.truncate(0)
        return value


class FakeClock:
    """Clock stand-in: ticks only when the test calls fire()."""

    def __init__(self):
        self.on_tick = None
        self.interval_ms = None
        self.starts = 0
        self.stops = 0

    @property
    def running(self):
        return self.on_tick is not None

    def start(self, interval_ms, on_tick):
        self.interval_ms = interval_ms
        self.on_tick = on_tick
        self.starts += 1

    def stop(self):
        self.stops += 1
        self.on_tick = None

    def fire(self, times: int = 1):
        for _ in range(times):
            if self.on_tick is not None:
                self.on_tick()


class FakeTime:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def stream():
    return FakeStream()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def display(stream, fake_clock, fake_time):
    from agentline_ui import Palette, StatusDisplay

    display = StatusDisplay(
        stream=stream,
        palette=Palette(),
        clock=fake_clock,
        time_func=fake_time,
        width=lambda: 200,
    )
    yield display
    display.stop()
