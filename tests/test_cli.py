"""Tests for the settle-check command line tool."""

from unittest.mock import MagicMock, patch

import pytest
from selenium.common.exceptions import TimeoutException, WebDriverException

from selenium_settle import cli
from selenium_settle.config import RunConfig
from selenium_settle.exceptions import BrowserSetupError
from selenium_settle.settle import SettleResult


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the CLI from reconfiguring the test run's stdout and logging."""
    with patch("selenium_settle.cli.setup_logging"):
        yield


def test_parser_defaults():
    args = cli.build_parser().parse_args(["https://example.test"])

    assert args.url == "https://example.test"
    assert args.timeout == 240
    assert args.browser == "chrome"
    assert args.headless is True
    assert args.loaders == []


def test_parser_repeatable_loaders():
    args = cli.build_parser().parse_args(["https://example.test", "--loader", "busy", "--loader", "#spin", "--no-headless"])

    assert args.loaders == ["busy", "#spin"]
    assert args.headless is False


@patch("selenium_settle.cli.BrowserFactory.create_driver")
@patch("selenium_settle.cli.BasePage")
def test_run_check_quits_driver(mock_page_class, mock_create_driver):
    driver = MagicMock()
    mock_create_driver.return_value = driver
    page = mock_page_class.return_value
    page.wait_for_page_settled.return_value = SettleResult(settled=True, elapsed=1.2, stages={"ui": True})

    result = cli.run_check(RunConfig(url="https://example.test", extra_loaders=["busy"], timeout=20))

    assert result.settled is True
    page.navigate_to.assert_called_once_with()
    page.wait_for_page_settled.assert_called_once_with(20, ["busy"])
    page.save_debug_artifacts.assert_not_called()
    driver.quit.assert_called_once()


@patch("selenium_settle.cli.BrowserFactory.create_driver")
@patch("selenium_settle.cli.BasePage")
def test_run_check_saves_artifacts_when_not_settled(mock_page_class, mock_create_driver):
    page = mock_page_class.return_value
    page.wait_for_page_settled.return_value = SettleResult(settled=False, elapsed=20.0, stages={"ui": False})

    cli.run_check(RunConfig(url="https://example.test", artifacts_dir="/tmp/a"))

    page.save_debug_artifacts.assert_called_once_with("/tmp/a", "settle-check")


@patch("selenium_settle.cli.BrowserFactory.create_driver")
@patch("selenium_settle.cli.BasePage")
def test_run_check_quits_driver_on_error(mock_page_class, mock_create_driver):
    driver = MagicMock()
    mock_create_driver.return_value = driver
    mock_page_class.return_value.wait_for_page_settled.side_effect = RuntimeError("boom")

    with pytest.raises(RuntimeError):
        cli.run_check(RunConfig(url="https://example.test"))

    driver.quit.assert_called_once()


@patch("selenium_settle.cli.run_check")
def test_main_exit_codes(mock_run_check):
    mock_run_check.return_value = SettleResult(settled=True, elapsed=1.0)
    assert cli.main(["https://example.test"]) == 0

    mock_run_check.return_value = SettleResult(settled=False, elapsed=240.0)
    assert cli.main(["https://example.test"]) == 1


@patch("selenium_settle.cli.run_check")
def test_main_builds_run_config(mock_run_check):
    mock_run_check.return_value = SettleResult(settled=True, elapsed=1.0)

    cli.main(["https://example.test", "--timeout", "12.5", "--browser", "firefox", "--loader", "busy"])

    config = mock_run_check.call_args.args[0]
    assert config == RunConfig(url="https://example.test", browser="firefox", timeout=12.5, extra_loaders=["busy"])


@patch("selenium_settle.cli.run_check")
def test_main_browser_setup_failure(mock_run_check):
    mock_run_check.side_effect = BrowserSetupError("Failed to create chrome browser: no driver")

    assert cli.main(["https://example.test"]) == 1


@patch("selenium_settle.cli.BrowserFactory.create_driver")
@patch("selenium_settle.cli.BasePage")
def test_run_check_continues_after_page_load_timeout(mock_page_class, mock_create_driver):
    page = mock_page_class.return_value
    page.navigate_to.side_effect = TimeoutException("timeout: Timed out receiving message from renderer: 30.000")
    page.wait_for_page_settled.return_value = SettleResult(settled=True, elapsed=45.0, stages={"ui": True})

    result = cli.run_check(RunConfig(url="https://example.test"))

    assert result.settled is True
    page.wait_for_page_settled.assert_called_once_with(240, [])


@patch("selenium_settle.base_page.wait_for_settled")
@patch("selenium_settle.cli.BrowserFactory.create_driver")
def test_main_slow_page_load_still_checks_settle_state(mock_create_driver, mock_settled, tmp_path):
    driver = MagicMock()
    driver.page_source = "<html></html>"
    driver.get.side_effect = TimeoutException("timeout: Timed out receiving message from renderer")
    mock_create_driver.return_value = driver
    mock_settled.return_value = SettleResult(settled=False, elapsed=240.0, stages={"ui": False})

    assert cli.main(["https://example.test", "--timeout", "240", "--artifacts-dir", str(tmp_path)]) == 1

    mock_settled.assert_called_once()
    driver.save_screenshot.assert_called_once()
    driver.quit.assert_called_once()


@patch("selenium_settle.cli.BrowserFactory.create_driver")
def test_main_browser_error_saves_artifacts(mock_create_driver, tmp_path):
    driver = MagicMock()
    driver.page_source = "<html></html>"
    driver.get.side_effect = WebDriverException("unknown error: net::ERR_NAME_NOT_RESOLVED")
    mock_create_driver.return_value = driver

    assert cli.main(["https://example.test", "--artifacts-dir", str(tmp_path)]) == 1

    driver.save_screenshot.assert_called_once()
    driver.quit.assert_called_once()
