"""Base page class for Page Object Model with settle-aware actions."""

import logging
import time
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from .config import SettleConfig, Timeouts
from .exceptions import ElementNotFoundError, ValidationError
from .settle import SettleResult, wait_for_settled
from .waits import wait_for_action_to_complete, wait_for_loaders_to_disappear

logger = logging.getLogger(__name__)


class BasePage:
    """Base class for all page objects."""

    def __init__(self, driver: WebDriver, base_url: str, settle_config: Optional[SettleConfig] = None):
        """
        Initialize page object.

        Args:
            driver: Selenium WebDriver instance
            base_url: Base URL for the application
            settle_config: Thresholds for the settle waits
        """
        self.driver = driver
        self.base_url = base_url
        self.settle_config = settle_config or SettleConfig()

    def navigate_to(self, path: str = "") -> None:
        """Navigate to a specific path."""
        url = f"{self.base_url}{path}"
        logger.info(f"Navigating to {url}")
        self.driver.get(url)

    def get_current_url(self) -> str:
        """Return current page URL."""
        return self.driver.current_url

    def get_current_title(self) -> str:
        """Return current page title."""
        return self.driver.title

    def verify_page_loaded(self, expected_title) -> bool:
        title = self.get_current_title()
        if expected_title not in title:
            raise ValidationError(f"Wrong page title. Expected '{expected_title}' in title, got '{title}'")
        logger.info(f"Page loaded: {title}")
        return True

    def wait_for_page_settled(
        self, timeout: float = Timeouts.MAX_WAIT, extra_loader_patterns: Optional[Iterable[str]] = None
    ) -> SettleResult:
        """Wait for the current page to stop loading and re-rendering."""
        return wait_for_settled(self.driver, timeout, extra_loader_patterns, self.settle_config)

    def wait_for_loaders(self, custom_selectors: Optional[Iterable[str]] = None, timeout: float = Timeouts.MAX_WAIT) -> bool:
        return wait_for_loaders_to_disappear(self.driver, custom_selectors, timeout, self.settle_config)

    def navigate_and_wait(self, path: str = "", timeout: float = Timeouts.ACTION_WAIT) -> SettleResult:
        """
        Navigate and wait for the page and any API calls it triggers.

        Args:
            path: Path relative to the base URL
            timeout: Budget for the trailing action-complete wait

        Returns:
            SettleResult of the full settle wait
        """
        self.navigate_to(path)
        result = self.wait_for_page_settled()
        wait_for_action_to_complete(self.driver, timeout, config=self.settle_config)
        return result

    def find_element(self, locator: Tuple[str, str], timeout: float = Timeouts.SHORT_WAIT) -> WebElement:
        """
        Find element with explicit wait.

        Args:
            locator: Tuple of (By.TYPE, value)
            timeout: Maximum wait time

        Returns:
            WebElement instance

        Raises:
            ElementNotFoundError: If element not found within timeout
        """
        try:
            wait = WebDriverWait(self.driver, timeout)
            return wait.until(EC.presence_of_element_located(locator))
        except TimeoutException as e:
            raise ElementNotFoundError(f"Element not found: {locator}") from e

    def find_elements(self, locator: Tuple[str, str]) -> list[WebElement]:
        return self.driver.find_elements(*locator)

    def click_element(self, locator_or_element: Union[Tuple[str, str], WebElement], timeout: float = Timeouts.SHORT_WAIT) -> None:
        """
        Click an element specified either by locator or by WebElement instance.

        Args:
            locator_or_element: Tuple locator (By, value) or an already-located WebElement
            timeout: Maximum wait time when a locator is provided

        Raises:
            ElementNotFoundError: If element not found or not clickable (when using a locator)
        """
        try:
            if isinstance(locator_or_element, tuple):
                wait = WebDriverWait(self.driver, timeout)
                element = wait.until(EC.element_to_be_clickable(locator_or_element))
            else:
                element = locator_or_element

            try:
                element.click()
            except Exception:
                # Overlays and animations can intercept a native click
                logger.debug(f"Regular click failed for {locator_or_element}, trying JavaScript")
                self.driver.execute_script("arguments[0].click();", element)
        except TimeoutException as e:
            raise ElementNotFoundError(f"Element not clickable: {locator_or_element}") from e

    def click_and_wait(
        self,
        locator_or_element: Union[Tuple[str, str], WebElement],
        timeout: float = Timeouts.ACTION_WAIT,
        custom_loader_selectors: Optional[Iterable[str]] = None,
    ) -> bool:
        """Click and wait for the API calls and loaders the click triggers."""
        self.click_element(locator_or_element)
        return wait_for_action_to_complete(self.driver, timeout, custom_loader_selectors, self.settle_config)

    def enter_text(self, locator: Tuple[str, str], text: str, clear_first: bool = True) -> None:
        """
        Enter text into an input field.

        Args:
            locator: Tuple of (By.TYPE, value)
            text: Text to enter
            clear_first: Whether to clear field before entering text
        """
        try:
            wait = WebDriverWait(self.driver, Timeouts.SHORT_WAIT)
            element = wait.until(EC.element_to_be_clickable(locator))
        except TimeoutException as e:
            raise ElementNotFoundError(f"Element not interactive: {locator}") from e

        if clear_first:
            element.clear()
        element.send_keys(text)

    def fill_and_wait(self, locator: Tuple[str, str], text: str, timeout: float = Timeouts.ACTION_WAIT) -> bool:
        """Enter text and wait for anything it triggers (autocomplete, validation calls)."""
        self.enter_text(locator, text)
        return wait_for_action_to_complete(self.driver, timeout, config=self.settle_config)

    def wait_for_element_visible(self, locator: Tuple[str, str], timeout: float = Timeouts.STANDARD_WAIT) -> WebElement:
        """Wait for element to be visible."""
        try:
            wait = WebDriverWait(self.driver, timeout)
            return wait.until(EC.visibility_of_element_located(locator))
        except TimeoutException as e:
            raise ElementNotFoundError(f"Element not visible: {locator}") from e

    def wait_for_element_invisible(self, locator: Tuple[str, str], timeout: float = Timeouts.SHORT_WAIT) -> bool:
        """Wait for element to become invisible."""
        try:
            wait = WebDriverWait(self.driver, timeout)
            return bool(wait.until(EC.invisibility_of_element_located(locator)))
        except TimeoutException:
            return False

    def is_element_present(self, locator: Tuple[str, str]) -> bool:
        return len(self.find_elements(locator)) > 0

    def save_debug_artifacts(self, artifacts_dir: str, name: str) -> dict:
        """
        Save a screenshot and the page source.

        Args:
            artifacts_dir: Directory to write the files into
            name: Base name for the files (no extension)

        Returns:
            Dict with "screenshot" and "page_source" paths, empty string for a file that could not be written
        """
        paths = {"screenshot": "", "page_source": ""}
        try:
            Path(artifacts_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Failed to create artifacts directory {artifacts_dir}: {e}")
            return paths

        timestamp = time.strftime("%Y%m%d-%H%M%S")
        screenshot_path = Path(artifacts_dir) / f"{name}-{timestamp}.png"
        try:
            self.driver.save_screenshot(str(screenshot_path))
            paths["screenshot"] = str(screenshot_path)
        except Exception as e:
            logger.warning(f"Failed to save screenshot: {e}")

        source_path = Path(artifacts_dir) / f"{name}-{timestamp}.html"
        try:
            source_path.write_text(self.driver.page_source, encoding="utf-8")
            paths["page_source"] = str(source_path)
        except Exception as e:
            logger.warning(f"Failed to save page source: {e}")
        return paths
