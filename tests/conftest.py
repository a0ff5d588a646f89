"""Shared fixtures: a fake monotonic clock and a scripted fake page."""

from typing import Callable, Optional

import pytest
from selenium.common.exceptions import JavascriptException, NoSuchWindowException

from selenium_settle import probes


class FakeClock:
    """Stands in for the ``time`` module; sleeping advances the clock instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += max(0.0, seconds)


class FakePage:
    """
    WebDriver double that answers the probe scripts from scripted page state.

    Every state callable receives the seconds elapsed since the page was
    created, according to the clock it was given.
    """

    def __init__(self, clock):
        self.clock = clock
        self.start = clock.monotonic()
        self.ready_state: Callable[[float], str] = lambda t: "complete"
        self.content: Callable[[float], str] = lambda t: "Dashboard  Reports  Upload"
        self.active_requests: Callable[[float], int] = lambda t: 0
        self.resource_count: Callable[[float], int] = lambda t: 12
        self.timers: Callable[[float], int] = lambda t: 0
        # selector -> (visible_from, visible_until)
        self.loaders: dict[str, tuple[float, float]] = {}
        # endpoint or resource URL -> time its request finishes
        self.endpoints: dict[str, float] = {}
        self.closed_at: Optional[float] = None
        self.failing_scripts: set[str] = set()
        # script -> errors raised, one per call, before it answers normally
        self.script_errors: dict[str, list[Exception]] = {}
        self.calls: list[str] = []

    def elapsed(self) -> float:
        return self.clock.monotonic() - self.start

    def show_loader(self, selector: str, until: float, since: float = 0.0) -> None:
        self.loaders[selector] = (since, until)

    def _loaders_visible(self, t: float, selectors) -> bool:
        return any(start <= t < end for selector, (start, end) in self.loaders.items() if selector in selectors)

    def execute_script(self, script, *args):
        t = self.elapsed()
        if self.closed_at is not None and t >= self.closed_at:
            raise NoSuchWindowException("no such window: target window already closed")
        if self.script_errors.get(script):
            raise self.script_errors[script].pop(0)
        if script in self.failing_scripts:
            raise JavascriptException("javascript error: Cannot read properties of null")
        self.calls.append(script)

        if script == probes.READY_STATE_SCRIPT:
            return self.ready_state(t)
        if script == probes.NETWORK_ACTIVITY_SCRIPT:
            return {"activeRequests": self.active_requests(t), "recentRequests": 0, "pendingPromises": 0}
        if script == probes.NETWORK_SNAPSHOT_SCRIPT:
            return {"resourceCount": self.resource_count(t), "inFlight": self.active_requests(t)}
        if script == probes.SCRIPT_ACTIVITY_SCRIPT:
            return {
                "documentComplete": self.ready_state(t) == "complete",
                "activeTimeouts": self.timers(t),
                "activeIntervals": 0,
                "animationFrames": 0,
            }
        if script == probes.UI_STATE_SCRIPT:
            selectors, hash_length = args
            return {"loadersVisible": self._loaders_visible(t, selectors), "contentHash": self.content(t)[:hash_length]}
        if script == probes.ACTION_STATE_SCRIPT:
            selectors = args[0]
            return {"networkActive": self.active_requests(t) > 0, "loadersVisible": self._loaders_visible(t, selectors)}
        if script == probes.LOADERS_VISIBLE_SCRIPT:
            return self._loaders_visible(t, args[0])
        if script == probes.QUICK_STATE_SCRIPT:
            return not self._loaders_visible(t, ['[class*="loading"]']) and self.active_requests(t) == 0
        if script == probes.COMPLETED_ENDPOINTS_SCRIPT:
            return [endpoint for endpoint in args[0] if endpoint in self.endpoints and self.endpoints[endpoint] <= t]
        if script == probes.FINISHED_RESOURCES_SCRIPT:
            return [url for url, finished_at in self.endpoints.items() if finished_at <= t]
        raise AssertionError(f"Unexpected script: {script[:60]!r}")


@pytest.fixture
def fake_clock(monkeypatch):
    """Replace the time module used by the wait loops with a fake clock."""
    clock = FakeClock()
    monkeypatch.setattr("selenium_settle.waits.time", clock)
    monkeypatch.setattr("selenium_settle.settle.time", clock)
    return clock


@pytest.fixture
def page(fake_clock):
    """A quiet, fully loaded page on the fake clock."""
    return FakePage(fake_clock)


@pytest.fixture
def page_factory():
    """Build fake pages on a clock of the test's choosing."""
    return FakePage
