"""Command line settle check: open a URL and report how long it takes to settle."""

import argparse
import logging
import sys
from typing import Optional

from selenium.common.exceptions import TimeoutException, WebDriverException

from .base_page import BasePage
from .browser_factory import BrowserFactory
from .config import RunConfig, SettleConfig, Timeouts
from .exceptions import SeleniumTestError
from .logging_utils import parse_log_level, setup_logging
from .settle import SettleResult

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="settle-check", description="Check how long a page takes to settle")
    parser.add_argument("url", help="Page to open")
    parser.add_argument(
        "--timeout", type=float, default=Timeouts.MAX_WAIT, help=f"Settle timeout in seconds (default: {Timeouts.MAX_WAIT})"
    )
    parser.add_argument("--browser", choices=["chrome", "firefox"], default="chrome", help="Browser to use (default: chrome)")
    parser.add_argument("--headless", action="store_true", default=True, help="Run browser in headless mode (default: True)")
    parser.add_argument("--no-headless", action="store_false", dest="headless", help="Run browser with GUI")
    parser.add_argument(
        "--loader",
        action="append",
        default=[],
        dest="loaders",
        metavar="PATTERN",
        help="Extra loader selector or class name fragment (repeatable)",
    )
    parser.add_argument("--artifacts-dir", default="/tmp/settle-artifacts", help="Where to save debug artifacts on failure")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return parser


def run_check(config: RunConfig, settle_config: Optional[SettleConfig] = None) -> SettleResult:
    """
    Open the configured URL in a fresh browser and wait for it to settle.

    Args:
        config: Run configuration
        settle_config: Heuristic thresholds

    Returns:
        SettleResult of the wait

    Raises:
        BrowserSetupError: If the browser could not be started
        WebDriverException: If the browser failed other than by a slow page load
    """
    driver = BrowserFactory.create_driver(config.browser, config.headless)
    try:
        page = BasePage(driver, config.url, settle_config)
        try:
            try:
                page.navigate_to()
            except TimeoutException as e:
                logger.warning(f"Page load did not finish, checking settle state anyway: {e.msg}")
            result = page.wait_for_page_settled(config.timeout, config.extra_loaders)
        except WebDriverException as e:
            logger.error(f"Browser error during settle check: {e.msg}")
            page.save_debug_artifacts(config.artifacts_dir, "settle-check")
            raise
        for name, settled in result.stages.items():
            logger.info(f"  {name:<20} {'ok' if settled else 'timed out'}")
        if not result.settled:
            artifacts = page.save_debug_artifacts(config.artifacts_dir, "settle-check")
            logger.info(f"Saved debug artifacts: {artifacts}")
        return result
    finally:
        driver.quit()


def main(argv: Optional[list[str]] = None) -> int:
    """
    Entry point for ``settle-check``.

    Returns:
        0 if the page settled, 1 otherwise
    """
    args = build_parser().parse_args(argv)
    setup_logging(parse_log_level(args.log_level))

    config = RunConfig(
        url=args.url,
        browser=args.browser,
        headless=args.headless,
        timeout=args.timeout,
        extra_loaders=args.loaders,
        artifacts_dir=args.artifacts_dir,
    )

    try:
        result = run_check(config)
    except (SeleniumTestError, WebDriverException) as e:
        logger.error(f"Settle check failed: {e}")
        return 1

    if result.settled:
        logger.info(f"{config.url} settled after {result.elapsed:.2f}s")
        return 0
    logger.warning(f"{config.url} did not settle within {config.timeout}s")
    return 1


if __name__ == "__main__":
    sys.exit(main())
