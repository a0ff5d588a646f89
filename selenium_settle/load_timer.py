"""Measure how long elements take to become visible."""

import logging
import time
from dataclasses import dataclass
from typing import Tuple

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from .config import Timeouts
from .exceptions import ElementNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementLoadEntry:
    step: str
    locator: Tuple[str, str]
    duration: float  # seconds


class ElementLoadTimer:
    """Collects element load durations for a test run."""

    def __init__(self, driver: WebDriver):
        self.driver = driver
        self._entries: list[ElementLoadEntry] = []

    def time_to_load(self, locator: Tuple[str, str], step_name: str, timeout: float = Timeouts.SMALL_WAIT) -> float:
        """
        Measure how long an element takes to become visible.

        Args:
            locator: Tuple of (By.TYPE, value)
            step_name: Descriptive name for the step
            timeout: Maximum wait time

        Returns:
            Duration in seconds, rounded to milliseconds

        Raises:
            ElementNotFoundError: If the element is not visible within timeout
        """
        start = time.perf_counter()
        try:
            WebDriverWait(self.driver, timeout).until(EC.visibility_of_element_located(locator))
        except TimeoutException as e:
            logger.error(f'[Timeout] "{step_name}" - element {locator} not visible')
            raise ElementNotFoundError(f"Element not visible: {locator}") from e

        duration = round(time.perf_counter() - start, 3)
        self._entries.append(ElementLoadEntry(step=step_name, locator=locator, duration=duration))
        logger.info(f"{step_name}: {locator[1]} visible after {duration:.3f}s")
        return duration

    def results(self) -> list[ElementLoadEntry]:
        return list(self._entries)

    def report(self) -> str:
        """Return one line per measured step, slowest first."""
        lines = [f"{entry.duration:8.3f}s  {entry.step}  ({entry.locator[1]})" for entry in sorted(self._entries, key=lambda e: -e.duration)]
        return "\n".join(lines)
