"""Point-in-time readings of page activity, taken with a single script evaluation each."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from selenium.common.exceptions import InvalidSessionIdException, NoSuchWindowException, WebDriverException
from selenium.webdriver.remote.webdriver import WebDriver
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from .exceptions import EvaluationError, PageClosedError

logger = logging.getLogger(__name__)

# Driver error messages that mean the page can no longer be talked to
CLOSED_PAGE_MARKERS = (
    "no such window",
    "target window already closed",
    "invalid session id",
    "session deleted",
    "not connected to devtools",
    "inspector.detached",
    "chrome not reachable",
    "target closed",
    "browsing context has been discarded",
)

READY_STATE_SCRIPT = "return document.readyState;"

NETWORK_ACTIVITY_SCRIPT = """
var lookback = arguments[0];
var now = performance.now();
var recentRequests = performance.getEntriesByType('resource').filter(function (entry) {
    var isRecent = entry.startTime > now - lookback;
    var isApiCall = entry.initiatorType === 'xmlhttprequest' ||
        entry.initiatorType === 'fetch' ||
        entry.name.indexOf('/api/') !== -1 ||
        entry.name.indexOf('.json') !== -1 ||
        entry.name.indexOf('ajax') !== -1;
    return isRecent && isApiCall && !entry.responseEnd;
}).length;
return {
    activeRequests: Number(window.__activeRequests) || 0,
    recentRequests: recentRequests,
    pendingPromises: Number(window.__pendingPromises) || 0
};
"""

NETWORK_SNAPSHOT_SCRIPT = """
var entries = performance.getEntriesByType('resource');
var inFlight = Number(window.__activeRequests) || 0;
for (var i = 0; i < entries.length; i++) {
    if (!entries[i].responseEnd) {
        inFlight++;
    }
}
return {resourceCount: entries.length, inFlight: inFlight};
"""

SCRIPT_ACTIVITY_SCRIPT = """
return {
    documentComplete: document.readyState === 'complete',
    activeTimeouts: Number(window.__activeTimeouts) || 0,
    activeIntervals: Number(window.__activeIntervals) || 0,
    animationFrames: Number(window.__activeAnimationFrames) || 0
};
"""

# Shared by the loader probes: arguments[0] is the selector list
_VISIBLE_LOADER_FUNCTION = """
function anyLoaderVisible(selectors) {
    return selectors.some(function (selector) {
        var elements;
        try {
            elements = document.querySelectorAll(selector);
        } catch (e) {
            return false;
        }
        return Array.prototype.some.call(elements, function (el) {
            var style = window.getComputedStyle(el);
            return style.display !== 'none' &&
                style.visibility !== 'hidden' &&
                parseFloat(style.opacity) > 0 &&
                el.getClientRects().length > 0;
        });
    });
}
"""

UI_STATE_SCRIPT = (
    _VISIBLE_LOADER_FUNCTION
    + """
var root = document.querySelector('main, #main, .main, [role="main"]') || document.body;
var text = root && root.textContent ? root.textContent.trim() : '';
return {
    loadersVisible: anyLoaderVisible(arguments[0]),
    contentHash: text.substring(0, arguments[1])
};
"""
)

ACTION_STATE_SCRIPT = (
    _VISIBLE_LOADER_FUNCTION
    + """
var lookback = arguments[1];
var now = performance.now();
var recentActivity = performance.getEntriesByType('resource').some(function (entry) {
    return entry.startTime > now - lookback &&
        (entry.initiatorType === 'xmlhttprequest' || entry.initiatorType === 'fetch') &&
        !entry.responseEnd;
});
return {
    networkActive: (Number(window.__activeRequests) || 0) > 0 || recentActivity,
    loadersVisible: anyLoaderVisible(arguments[0])
};
"""
)

LOADERS_VISIBLE_SCRIPT = _VISIBLE_LOADER_FUNCTION + "\nreturn anyLoaderVisible(arguments[0]);\n"

QUICK_STATE_SCRIPT = """
var hasLoader = document.querySelector(
    '[class*="loading"], [class*="spinner"], .fa-spin, .loading-overlay') !== null;
return !hasLoader && (Number(window.__activeRequests) || 0) === 0;
"""

COMPLETED_ENDPOINTS_SCRIPT = """
var endpoints = arguments[0];
var names = performance.getEntriesByType('resource').filter(function (entry) {
    return entry.responseEnd > 0;
}).map(function (entry) {
    return entry.name;
});
return endpoints.filter(function (endpoint) {
    return names.some(function (name) {
        return name.indexOf(endpoint) !== -1;
    });
});
"""

FINISHED_RESOURCES_SCRIPT = """
return performance.getEntriesByType('resource').filter(function (entry) {
    return entry.responseEnd > 0;
}).map(function (entry) {
    return entry.name;
});
"""


@dataclass(frozen=True)
class NetworkActivity:
    """In-flight network work as seen by the page."""

    active_requests: int = 0
    recent_requests: int = 0
    pending_promises: int = 0

    @property
    def total(self) -> int:
        return self.active_requests + self.recent_requests + self.pending_promises


@dataclass(frozen=True)
class NetworkSnapshot:
    """Resource timing entry count and requests without a response end."""

    resource_count: int = 0
    in_flight: int = 0


@dataclass(frozen=True)
class ScriptActivity:
    """Pending timers and animation frames, if the application counts them."""

    document_complete: bool = False
    active_timeouts: int = 0
    active_intervals: int = 0
    animation_frames: int = 0

    @property
    def total(self) -> int:
        return self.active_timeouts + self.active_intervals + self.animation_frames

    @property
    def idle(self) -> bool:
        return self.document_complete and self.total == 0


@dataclass(frozen=True)
class UiState:
    """Loader visibility and a fingerprint of the leading main content."""

    loaders_visible: bool = False
    content_hash: str = ""


@dataclass(frozen=True)
class ActionState:
    network_active: bool = False
    loaders_visible: bool = False

    @property
    def complete(self) -> bool:
        return not self.network_active and not self.loaders_visible


def is_page_closed_error(error: BaseException) -> bool:
    """Return True if the error means the page handle is no longer usable."""
    if isinstance(error, (NoSuchWindowException, InvalidSessionIdException, ConnectionError, Urllib3HTTPError)):
        return True
    if isinstance(error, WebDriverException):
        message = (error.msg or str(error)).lower()
        return any(marker in message for marker in CLOSED_PAGE_MARKERS)
    return False


def evaluate(driver: WebDriver, script: str, *args: Any) -> Any:
    """
    Evaluate a script in the page and return its result.

    Args:
        driver: Selenium WebDriver instance
        script: JavaScript body, returning its result
        *args: Values exposed to the script as ``arguments``

    Returns:
        Whatever the script returned

    Raises:
        PageClosedError: If the page or session is gone
        EvaluationError: If the evaluation failed but the page is still there
    """
    try:
        return driver.execute_script(script, *args)
    except Exception as e:
        if is_page_closed_error(e):
            raise PageClosedError(f"Page is no longer available: {e}") from e
        if isinstance(e, WebDriverException):
            raise EvaluationError(f"Script evaluation failed: {e}") from e
        raise


def _as_dict(result: Any) -> dict:
    if isinstance(result, dict):
        return result
    raise EvaluationError(f"Unexpected probe result: {result!r}")


def _count(value: Any) -> int:
    """Read an optional counter, treating missing or garbage values as zero."""
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def read_ready_state(driver: WebDriver) -> str:
    """Return ``document.readyState``."""
    return str(evaluate(driver, READY_STATE_SCRIPT) or "")


def read_network_activity(driver: WebDriver, lookback: float) -> NetworkActivity:
    """
    Read the composite network activity score.

    Args:
        driver: Selenium WebDriver instance
        lookback: Seconds a resource timing entry counts as recent

    Returns:
        NetworkActivity reading
    """
    result = _as_dict(evaluate(driver, NETWORK_ACTIVITY_SCRIPT, lookback * 1000))
    return NetworkActivity(
        active_requests=_count(result.get("activeRequests")),
        recent_requests=_count(result.get("recentRequests")),
        pending_promises=_count(result.get("pendingPromises")),
    )


def read_network_snapshot(driver: WebDriver) -> NetworkSnapshot:
    result = _as_dict(evaluate(driver, NETWORK_SNAPSHOT_SCRIPT))
    return NetworkSnapshot(
        resource_count=_count(result.get("resourceCount")),
        in_flight=_count(result.get("inFlight")),
    )


def read_script_activity(driver: WebDriver) -> ScriptActivity:
    result = _as_dict(evaluate(driver, SCRIPT_ACTIVITY_SCRIPT))
    return ScriptActivity(
        document_complete=bool(result.get("documentComplete")),
        active_timeouts=_count(result.get("activeTimeouts")),
        active_intervals=_count(result.get("activeIntervals")),
        animation_frames=_count(result.get("animationFrames")),
    )


def read_ui_state(driver: WebDriver, selectors: Iterable[str], hash_length: int) -> UiState:
    """
    Read loader visibility and the leading text of the main content.

    Args:
        driver: Selenium WebDriver instance
        selectors: Loader CSS selectors
        hash_length: Number of leading characters used as content fingerprint

    Returns:
        UiState reading
    """
    result = _as_dict(evaluate(driver, UI_STATE_SCRIPT, list(selectors), hash_length))
    return UiState(
        loaders_visible=bool(result.get("loadersVisible")),
        content_hash=str(result.get("contentHash") or ""),
    )


def read_action_state(driver: WebDriver, selectors: Iterable[str], lookback: float) -> ActionState:
    result = _as_dict(evaluate(driver, ACTION_STATE_SCRIPT, list(selectors), lookback * 1000))
    return ActionState(
        network_active=bool(result.get("networkActive")),
        loaders_visible=bool(result.get("loadersVisible")),
    )


def read_loaders_visible(driver: WebDriver, selectors: Iterable[str]) -> bool:
    return bool(evaluate(driver, LOADERS_VISIBLE_SCRIPT, list(selectors)))


def read_quick_ready(driver: WebDriver) -> bool:
    return bool(evaluate(driver, QUICK_STATE_SCRIPT))


def read_completed_endpoints(driver: WebDriver, endpoints: Iterable[str]) -> set[str]:
    """Return the endpoints that have a finished resource timing entry."""
    result = evaluate(driver, COMPLETED_ENDPOINTS_SCRIPT, list(endpoints))
    return set(result or ())


def read_finished_resource_urls(driver: WebDriver) -> list[str]:
    """Return the URLs of all resource timing entries that have a response end."""
    return [str(name) for name in evaluate(driver, FINISHED_RESOURCES_SCRIPT) or ()]
