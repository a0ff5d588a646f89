"""Page settlement detection.

Decides when a page has stopped reacting to a prior navigation or click by
polling several independent activity indicators in sequence:

1. lifecycle: ``document.readyState`` reaches interactive, then complete
2. network_quiet: no new resources and nothing in flight for a short window
3. network: the composite activity score stays at zero long enough
4. scripts: no tracked timers or animation frames
5. ui: no visible loaders and a stable leading-content fingerprint
6. final_network_quiet: one more short quiescence check
7. action_complete: loaders gone and no XHR/fetch for the idle threshold

This is a heuristic. It cannot tell a page that is still loading from one
that keeps re-rendering harmless UI (a clock widget, a ticker); the latter
never looks stable and costs the full timeout.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from selenium.webdriver.remote.webdriver import WebDriver

from .config import SettleConfig, Timeouts
from .exceptions import EvaluationError, PageClosedError
from .probes import read_network_activity, read_script_activity, read_ui_state
from .waits import pause, remaining, wait_for_action_to_complete, wait_for_network_quiet, wait_for_ready_state

logger = logging.getLogger(__name__)


@dataclass
class SettleResult:
    """Outcome of a settle wait. Callers are free to ignore it."""

    settled: bool
    elapsed: float
    # Stage name -> whether its condition was met, in run order
    stages: dict[str, bool] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def unsettled_stages(self) -> list[str]:
        return [name for name, ok in self.stages.items() if not ok]


class PageSettleDetector:
    """Waits for one page to settle. Use one instance per page."""

    STAGES = ("lifecycle", "network_quiet", "network", "scripts", "ui", "final_network_quiet", "action_complete")

    def __init__(self, driver: WebDriver, config: Optional[SettleConfig] = None):
        """
        Initialize detector.

        Args:
            driver: Selenium WebDriver whose current window is the page to watch
            config: Heuristic thresholds, defaults if omitted
        """
        self.driver = driver
        self.config = config or SettleConfig()

    def wait_for_settled(
        self, timeout: float = Timeouts.MAX_WAIT, extra_loader_patterns: Optional[Iterable[str]] = None
    ) -> SettleResult:
        """
        Wait until the page looks settled, or until the timeout has passed.

        Never raises for a page that does not settle: the wait gives up at
        the deadline and returns so that the caller can proceed anyway.

        Args:
            timeout: Overall budget in seconds
            extra_loader_patterns: Loader selectors or class name fragments added to the built-in set

        Returns:
            SettleResult describing which stages settled

        Raises:
            PageClosedError: If the page handle became invalid while polling
        """
        start = time.monotonic()
        deadline = start + timeout
        # Once the deadline has passed the remaining stages share one floor
        hard_limit = deadline + self.config.stage_floor
        selectors = self.config.loaders(extra_loader_patterns)
        stages: dict[str, bool] = {}
        error = None

        plan: list[tuple[str, Callable[[float, list[str]], bool]]] = [
            ("lifecycle", self._wait_for_lifecycle),
            ("network_quiet", self._wait_for_network_quiet),
            ("network", self._wait_for_network_idle),
            ("scripts", self._wait_for_scripts),
            ("ui", self._wait_for_ui_stability),
            ("final_network_quiet", self._wait_for_final_network_quiet),
            ("action_complete", self._wait_for_action_complete),
        ]

        try:
            for name, stage in plan:
                stage_deadline = max(deadline, min(time.monotonic() + self.config.stage_floor, hard_limit))
                stages[name] = stage(stage_deadline, selectors)
                logger.debug(f"Settle stage '{name}' {'settled' if stages[name] else 'gave up'} at {time.monotonic() - start:.2f}s")
        except PageClosedError:
            raise
        except Exception as e:
            error = str(e)
            logger.warning(f"Page settle check completed with warning after {time.monotonic() - start:.2f}s: {e}")

        elapsed = time.monotonic() - start
        result = SettleResult(
            settled=error is None and len(stages) == len(plan) and all(stages.values()),
            elapsed=elapsed,
            stages=stages,
            error=error,
        )
        if result.settled:
            logger.info(f"Page settled after {elapsed:.2f}s")
        elif error is None:
            logger.warning(
                f"Page did not settle within {timeout}s (still busy: {', '.join(result.unsettled_stages)}), continuing..."
            )
        return result

    def _wait_for_lifecycle(self, deadline: float, selectors: list[str]) -> bool:
        parsed = wait_for_ready_state(self.driver, ("interactive", "complete"), deadline, self.config)
        return parsed and wait_for_ready_state(self.driver, ("complete",), deadline, self.config)

    def _wait_for_network_quiet(self, deadline: float, selectors: list[str]) -> bool:
        return wait_for_network_quiet(self.driver, remaining(deadline), self.config)

    def _wait_for_network_idle(self, deadline: float, selectors: list[str]) -> bool:
        """Require consecutive idle polls and a quiet period since the last activity."""
        config = self.config
        last_activity = time.monotonic()
        idle_checks = 0

        while True:
            try:
                busy = read_network_activity(self.driver, config.recent_request_window).total > 0
            except EvaluationError as e:
                logger.debug(f"Network activity probe failed, counting as idle: {e}")
                busy = False

            now = time.monotonic()
            if busy:
                idle_checks = 0
                last_activity = now
            else:
                idle_checks += 1
                if idle_checks >= config.network_idle_checks and now - last_activity >= config.network_idle_threshold:
                    return True

            if now >= deadline:
                return False
            pause(config.poll_interval, deadline)

    def _wait_for_scripts(self, deadline: float, selectors: list[str]) -> bool:
        config = self.config
        idle_checks = 0

        while True:
            try:
                activity = read_script_activity(self.driver)
            except EvaluationError as e:
                logger.debug(f"Script activity probe failed, skipping stage: {e}")
                pause(config.poll_interval, deadline)
                return False

            if activity.idle:
                idle_checks += 1
                if idle_checks >= config.script_idle_checks:
                    return True
            else:
                idle_checks = 0

            if time.monotonic() >= deadline:
                return False
            pause(config.poll_interval, deadline)

    def _wait_for_ui_stability(self, deadline: float, selectors: list[str]) -> bool:
        """Require no visible loaders and an unchanged content fingerprint across polls."""
        config = self.config
        stable_checks = 0
        previous_hash = None

        while True:
            try:
                state = read_ui_state(self.driver, selectors, config.content_hash_length)
            except EvaluationError as e:
                logger.debug(f"UI state probe failed, skipping stage: {e}")
                pause(config.poll_interval, deadline)
                return False

            if not state.loaders_visible and state.content_hash == previous_hash:
                stable_checks += 1
                if stable_checks >= config.ui_stable_checks:
                    return True
            else:
                stable_checks = 0
            previous_hash = state.content_hash

            if time.monotonic() >= deadline:
                return False
            pause(config.poll_interval, deadline)

    def _wait_for_final_network_quiet(self, deadline: float, selectors: list[str]) -> bool:
        return wait_for_network_quiet(self.driver, min(self.config.quiescence_cap, remaining(deadline)), self.config)

    def _wait_for_action_complete(self, deadline: float, selectors: list[str]) -> bool:
        return wait_for_action_to_complete(self.driver, remaining(deadline), selectors, self.config)


def wait_for_settled(
    driver: WebDriver,
    timeout: float = Timeouts.MAX_WAIT,
    extra_loader_patterns: Optional[Iterable[str]] = None,
    config: Optional[SettleConfig] = None,
) -> SettleResult:
    """Wait for the driver's current page to settle. See ``PageSettleDetector.wait_for_settled``."""
    return PageSettleDetector(driver, config).wait_for_settled(timeout, extra_loader_patterns)
