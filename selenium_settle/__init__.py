"""Selenium helpers for waiting until a page has settled."""

from .base_page import BasePage
from .browser_factory import BrowserFactory
from .config import LOADER_SELECTORS, RunConfig, SettleConfig, Timeouts, loader_selectors_with
from .exceptions import (
    BrowserSetupError,
    ElementNotFoundError,
    EvaluationError,
    PageClosedError,
    SeleniumTestError,
    ValidationError,
)
from .load_timer import ElementLoadEntry, ElementLoadTimer
from .settle import PageSettleDetector, SettleResult, wait_for_settled
from .waits import (
    wait_for_action_to_complete,
    wait_for_api_endpoints,
    wait_for_loaders_to_disappear,
    wait_for_network_quiet,
    wait_for_network_response,
    wait_for_quick_action,
)

__all__ = [
    "BasePage",
    "BrowserFactory",
    "LOADER_SELECTORS",
    "RunConfig",
    "SettleConfig",
    "Timeouts",
    "loader_selectors_with",
    "SeleniumTestError",
    "ElementNotFoundError",
    "ValidationError",
    "BrowserSetupError",
    "EvaluationError",
    "PageClosedError",
    "ElementLoadEntry",
    "ElementLoadTimer",
    "PageSettleDetector",
    "SettleResult",
    "wait_for_settled",
    "wait_for_action_to_complete",
    "wait_for_api_endpoints",
    "wait_for_loaders_to_disappear",
    "wait_for_network_quiet",
    "wait_for_network_response",
    "wait_for_quick_action",
]
