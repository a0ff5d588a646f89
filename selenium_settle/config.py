"""Configuration classes for page settlement detection."""

import re
from dataclasses import dataclass, field, fields, replace
from typing import Iterable, Literal, Optional


class Timeouts:
    """Timeout constants for different wait scenarios (seconds)."""

    INSTANT = 1  # Instant actions/assertions
    SHORT_WAIT = 5  # Quick element waits
    SMALL_WAIT = 10  # Quick action checks, element load timing
    ACTION_WAIT = 15  # Waiting for a click or navigation to finish its API calls
    STANDARD_WAIT = 30  # Form submissions, moderate operations
    PAGE_LOAD = 30  # Selenium page load timeout
    MAX_WAIT = 240  # Full page settlement
    QUIESCENCE_CAP = 30  # Upper bound for the final network quiescence check


LOADER_SELECTORS = (
    '[class*="loading"]',
    '[class*="spinner"]',
    '[class*="loader"]',
    '[id*="loading"]',
    '[id*="spinner"]',
    '[id*="loader"]',
    ".fa-spin",
    ".fa-spinner",
    ".fa-circle-o-notch",
    '[aria-label*="loading"]',
    '[aria-label*="Loading"]',
    '[aria-busy="true"]',
    ".loading-overlay",
    ".spinner-border",
    ".spinner-grow",
)

# A bare class-name fragment, e.g. "busy-overlay"
_BARE_NAME = re.compile(r"^[A-Za-z_][\w-]*$")


def normalize_loader_pattern(pattern: str) -> Optional[str]:
    """
    Turn a caller-supplied loader pattern into a CSS selector.

    Bare words are treated as class name fragments, anything else is
    assumed to already be a selector and used verbatim.

    Args:
        pattern: Class name fragment or CSS selector

    Returns:
        CSS selector, or None for an empty pattern
    """
    pattern = pattern.strip()
    if not pattern:
        return None
    if _BARE_NAME.match(pattern):
        return f'[class*="{pattern}"]'
    return pattern


def loader_selectors_with(extra: Optional[Iterable[str]] = None, base: Iterable[str] = LOADER_SELECTORS) -> list[str]:
    """Return the base loader selectors with the extra patterns appended, without duplicates."""
    selectors = list(dict.fromkeys(base))
    for pattern in extra or ():
        selector = normalize_loader_pattern(pattern)
        if selector and selector not in selectors:
            selectors.append(selector)
    return selectors


@dataclass
class SettleConfig:
    """Tunable thresholds of the page settlement heuristic.

    The defaults are empirical; pages with unusual request or rendering
    patterns may need different values.
    """

    poll_interval: float = 0.05
    network_idle_checks: int = 5
    network_idle_threshold: float = 0.5
    # How far back resource timing entries count as recent
    recent_request_window: float = 2.0
    script_idle_checks: int = 3
    ui_stable_checks: int = 4
    content_hash_length: int = 500
    quiescence_window: float = 0.5
    quiescence_cap: float = Timeouts.QUIESCENCE_CAP
    action_idle_threshold: float = 0.3
    action_lookback: float = 1.0
    action_poll_interval: float = 0.1
    loader_poll_interval: float = 0.2
    # Budget a stage still gets once the overall deadline has passed
    stage_floor: float = 1.0
    loader_selectors: tuple[str, ...] = field(default=LOADER_SELECTORS)

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "loader_selectors":
                self.loader_selectors = tuple(value)
            elif f.name == "stage_floor":
                if value < 0:
                    raise ValueError(f"stage_floor must not be negative, got {value}")
            elif value <= 0:
                raise ValueError(f"{f.name} must be positive, got {value}")

    def with_overrides(self, **changes) -> "SettleConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def loaders(self, extra: Optional[Iterable[str]] = None) -> list[str]:
        """Return this config's loader selectors extended with extra patterns."""
        return loader_selectors_with(extra, self.loader_selectors)


@dataclass
class RunConfig:
    """Settings for a command line settle check."""

    url: str
    browser: Literal["chrome", "firefox"] = "chrome"
    headless: bool = True
    timeout: float = Timeouts.MAX_WAIT
    extra_loaders: list[str] = field(default_factory=list)
    # Directory to save debug artifacts (screenshots, page sources)
    artifacts_dir: str = "/tmp/settle-artifacts"
