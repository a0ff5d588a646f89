"""Browser factory for creating WebDriver instances."""

import logging
import platform
import shutil
from typing import Literal, Optional

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.firefox.options import Options as FirefoxOptions
from selenium.webdriver.firefox.service import Service as FirefoxService
from selenium.webdriver.remote.webdriver import WebDriver

from .config import Timeouts
from .exceptions import BrowserSetupError

logger = logging.getLogger(__name__)

# Selenium Manager can't fetch drivers for these, system packages are needed
ARM_MACHINES = ("aarch64", "arm64", "armv7l")

COMMON_ARGUMENTS = ("--no-sandbox", "--disable-dev-shm-usage", "--disable-gpu", "--disable-extensions")


def _find_binary(*names: str) -> Optional[str]:
    for name in names:
        path = shutil.which(name)
        if path:
            return path
    return None


class BrowserFactory:
    """Factory for creating browser instances."""

    @staticmethod
    def create_driver(
        browser_type: Literal["chrome", "firefox"] = "chrome", headless: bool = True, page_load_timeout: float = Timeouts.PAGE_LOAD
    ) -> WebDriver:
        """
        Create a WebDriver instance.

        Args:
            browser_type: Type of browser ('chrome' or 'firefox')
            headless: Whether to run in headless mode
            page_load_timeout: Selenium page load timeout in seconds

        Returns:
            Configured WebDriver instance

        Raises:
            BrowserSetupError: If browser creation fails
        """
        try:
            if browser_type == "chrome":
                driver = BrowserFactory._create_chrome(headless)
            elif browser_type == "firefox":
                driver = BrowserFactory._create_firefox(headless)
            else:
                raise ValueError(f"Unsupported browser type: {browser_type}")
            driver.set_page_load_timeout(page_load_timeout)
        except Exception as e:
            raise BrowserSetupError(f"Failed to create {browser_type} browser: {e}") from e
        logger.info(f"{browser_type.capitalize()} browser created successfully")
        return driver

    @staticmethod
    def _is_arm() -> bool:
        return platform.machine().lower() in ARM_MACHINES

    @staticmethod
    def _create_chrome(headless: bool) -> WebDriver:
        """Create Chrome WebDriver; on ARM the system chromium and chromedriver are used."""
        logger.info("Creating Chrome browser...")
        options = ChromeOptions()
        if headless:
            options.add_argument("--headless=new")
        for argument in COMMON_ARGUMENTS + ("--disable-notifications",):
            options.add_argument(argument)
        options.set_capability("pageLoadStrategy", "normal")

        if not BrowserFactory._is_arm():
            return webdriver.Chrome(options=options)

        chromium_path = _find_binary("chromium", "chromium-browser")
        if chromium_path:
            options.binary_location = chromium_path
            logger.info(f"Using chromium at: {chromium_path}")
        chromedriver_path = _find_binary("chromedriver")
        if not chromedriver_path:
            logger.warning("chromedriver not found in PATH, attempting without explicit path")
            return webdriver.Chrome(options=options)
        logger.info(f"Using chromedriver at: {chromedriver_path}")
        return webdriver.Chrome(service=ChromeService(executable_path=chromedriver_path), options=options)

    @staticmethod
    def _create_firefox(headless: bool) -> WebDriver:
        """Create Firefox WebDriver; on ARM the system firefox and geckodriver are used."""
        logger.info("Creating Firefox browser...")
        options = FirefoxOptions()
        if headless:
            options.add_argument("--headless")
        for argument in COMMON_ARGUMENTS:
            options.add_argument(argument)
        options.set_preference("dom.webnotifications.enabled", False)
        options.set_preference("media.volume_scale", "0.0")

        if not BrowserFactory._is_arm():
            return webdriver.Firefox(options=options)

        firefox_path = _find_binary("firefox", "firefox-esr")
        if firefox_path:
            options.binary_location = firefox_path
            logger.info(f"Using firefox at: {firefox_path}")
        geckodriver_path = _find_binary("geckodriver")
        if not geckodriver_path:
            logger.warning("geckodriver not found in PATH, attempting without explicit path")
            return webdriver.Firefox(options=options)
        logger.info(f"Using geckodriver at: {geckodriver_path}")
        return webdriver.Firefox(service=FirefoxService(executable_path=geckodriver_path), options=options)
