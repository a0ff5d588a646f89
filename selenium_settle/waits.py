"""Best-effort wait helpers for network quiescence, loaders and finished actions.

None of these raise when their condition is not met in time; they log and
return so that a test can carry on. A closed page is the exception: the
``PageClosedError`` raised by the probes is always propagated.
"""

import logging
import re
import time
from typing import Iterable, Optional, Pattern, Union

from selenium.webdriver.remote.webdriver import WebDriver

from .config import SettleConfig, Timeouts
from .exceptions import EvaluationError
from .probes import (
    read_action_state,
    read_completed_endpoints,
    read_finished_resource_urls,
    read_loaders_visible,
    read_network_snapshot,
    read_quick_ready,
    read_ready_state,
)

logger = logging.getLogger(__name__)

ENDPOINT_POLL_INTERVAL = 0.1
QUICK_ACTION_FALLBACK_WAIT = 2.0


def remaining(deadline: float) -> float:
    """Seconds left until the deadline, never negative."""
    return max(0.0, deadline - time.monotonic())


def pause(interval: float, deadline: float) -> None:
    """Sleep for one poll interval without overshooting the deadline."""
    time.sleep(min(interval, remaining(deadline)))


def wait_for_ready_state(
    driver: WebDriver, states: Iterable[str], deadline: float, config: Optional[SettleConfig] = None
) -> bool:
    """
    Wait until ``document.readyState`` reaches one of the given states.

    Args:
        driver: Selenium WebDriver instance
        states: Acceptable ready states ("loading", "interactive", "complete")
        deadline: Absolute ``time.monotonic()`` value to give up at
        config: Settle configuration

    Returns:
        True if one of the states was reached before the deadline
    """
    config = config or SettleConfig()
    states = tuple(states)
    while True:
        try:
            if read_ready_state(driver) in states:
                return True
        except EvaluationError as e:
            # Usually a navigation replacing the document under us
            logger.debug(f"Ready state probe failed, retrying: {e}")
        if time.monotonic() >= deadline:
            return False
        pause(config.poll_interval, deadline)


def wait_for_network_quiet(driver: WebDriver, timeout: float, config: Optional[SettleConfig] = None) -> bool:
    """
    Wait until no new resources load and nothing is in flight for a quiet window.

    Args:
        driver: Selenium WebDriver instance
        timeout: Maximum wait time in seconds
        config: Settle configuration

    Returns:
        True if the network went quiet before the timeout
    """
    config = config or SettleConfig()
    deadline = time.monotonic() + timeout
    last_change = time.monotonic()
    previous_count = None

    while True:
        try:
            snapshot = read_network_snapshot(driver)
        except EvaluationError as e:
            logger.debug(f"Network snapshot failed, skipping quiescence check: {e}")
            pause(config.poll_interval, deadline)
            return False

        now = time.monotonic()
        if snapshot.in_flight or snapshot.resource_count != previous_count:
            last_change = now
            previous_count = snapshot.resource_count
        elif now - last_change >= config.quiescence_window:
            return True

        if now >= deadline:
            logger.debug(f"Network not quiet after {timeout:.2f}s")
            return False
        pause(config.poll_interval, deadline)


def wait_for_loaders_to_disappear(
    driver: WebDriver,
    custom_selectors: Optional[Iterable[str]] = None,
    timeout: float = Timeouts.MAX_WAIT,
    config: Optional[SettleConfig] = None,
) -> bool:
    """
    Wait for loading indicators to disappear.

    Args:
        driver: Selenium WebDriver instance
        custom_selectors: Additional loader selectors or class name fragments
        timeout: Maximum wait time in seconds
        config: Settle configuration

    Returns:
        True if no loader is visible any more
    """
    config = config or SettleConfig()
    selectors = config.loaders(custom_selectors)
    deadline = time.monotonic() + timeout

    while True:
        try:
            if not read_loaders_visible(driver, selectors):
                return True
        except EvaluationError as e:
            logger.debug(f"Loader probe failed, assuming loaders are gone: {e}")
            return True
        if time.monotonic() >= deadline:
            logger.warning(f"Loaders still visible after {timeout}s, continuing...")
            return False
        pause(config.loader_poll_interval, deadline)


def wait_for_action_to_complete(
    driver: WebDriver,
    timeout: float = Timeouts.MAX_WAIT,
    custom_loader_selectors: Optional[Iterable[str]] = None,
    config: Optional[SettleConfig] = None,
) -> bool:
    """
    Wait for XHR/fetch calls to finish and loaders to disappear after an action.

    Use after clicks or navigations that trigger data loading.

    Args:
        driver: Selenium WebDriver instance
        timeout: Maximum wait time in seconds
        custom_loader_selectors: Additional loader selectors or class name fragments
        config: Settle configuration

    Returns:
        True if the action completed before the timeout
    """
    config = config or SettleConfig()
    selectors = config.loaders(custom_loader_selectors)
    start = time.monotonic()
    deadline = start + timeout
    last_network_activity = start

    while True:
        try:
            state = read_action_state(driver, selectors, config.action_lookback)
        except EvaluationError as e:
            logger.debug(f"Action state probe failed, falling back to network quiescence: {e}")
            return wait_for_network_quiet(driver, remaining(deadline), config)

        now = time.monotonic()
        if state.network_active:
            last_network_activity = now
        if state.complete and now - last_network_activity > config.action_idle_threshold:
            return True

        if now >= deadline:
            logger.warning(f"Action did not complete within {timeout:.2f}s, continuing...")
            return False
        pause(config.action_poll_interval, deadline)


def wait_for_quick_action(driver: WebDriver, timeout: float = Timeouts.SMALL_WAIT, config: Optional[SettleConfig] = None) -> bool:
    """Cheap single-probe wait for the common loaders and tracked requests."""
    config = config or SettleConfig()
    deadline = time.monotonic() + timeout

    while True:
        try:
            if read_quick_ready(driver):
                return True
        except EvaluationError as e:
            logger.debug(f"Quick action probe failed, falling back to network quiescence: {e}")
            return wait_for_network_quiet(driver, min(QUICK_ACTION_FALLBACK_WAIT, remaining(deadline)), config)
        if time.monotonic() >= deadline:
            logger.debug(f"Quick action still busy after {timeout}s")
            return False
        pause(config.poll_interval, deadline)


def wait_for_api_endpoints(driver: WebDriver, endpoints: Iterable[str], timeout: float = Timeouts.MAX_WAIT) -> set[str]:
    """
    Wait until a finished request exists for every endpoint pattern.

    Args:
        driver: Selenium WebDriver instance
        endpoints: Substrings of the request URLs to wait for
        timeout: Maximum wait time in seconds

    Returns:
        Endpoints that did not complete (empty if all did)
    """
    pending = set(endpoints)
    deadline = time.monotonic() + timeout

    while pending:
        try:
            pending -= read_completed_endpoints(driver, pending)
        except EvaluationError as e:
            logger.debug(f"Endpoint probe failed, retrying: {e}")
        if not pending:
            break
        if time.monotonic() >= deadline:
            logger.warning(f"Some API endpoints did not complete: {', '.join(sorted(pending))}")
            break
        pause(ENDPOINT_POLL_INTERVAL, deadline)

    return pending


def wait_for_network_response(
    driver: WebDriver, url_pattern: Union[str, Pattern[str]], timeout: float = Timeouts.MAX_WAIT
) -> Optional[str]:
    """
    Wait for a finished request whose URL matches a pattern.

    Args:
        driver: Selenium WebDriver instance
        url_pattern: URL substring, or a compiled regular expression searched in the URL
        timeout: Maximum wait time in seconds

    Returns:
        The first matching URL, or None if no matching response arrived in time
    """
    if isinstance(url_pattern, str):
        matcher = re.compile(re.escape(url_pattern))
    else:
        matcher = url_pattern
    deadline = time.monotonic() + timeout

    while True:
        try:
            for url in read_finished_resource_urls(driver):
                if matcher.search(url):
                    return url
        except EvaluationError as e:
            logger.debug(f"Resource probe failed, retrying: {e}")
        if time.monotonic() >= deadline:
            logger.warning(f"Timeout waiting for network response matching: {matcher.pattern}")
            return None
        pause(ENDPOINT_POLL_INTERVAL, deadline)
