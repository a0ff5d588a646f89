"""Custom exceptions for the settle framework."""


class SeleniumTestError(Exception):
    """Base exception for all framework failures."""

    pass


class ElementNotFoundError(SeleniumTestError):
    """Element was not found on the page."""

    pass


class ValidationError(SeleniumTestError):
    """Expected condition or validation failed."""

    pass


class BrowserSetupError(SeleniumTestError):
    """Browser initialization failed."""

    pass


class EvaluationError(SeleniumTestError):
    """Evaluating a script in the page failed, but the page is still usable."""

    pass


class PageClosedError(SeleniumTestError):
    """The page handle is gone (window closed, session ended, driver unreachable)."""

    pass
