class PageError(Exception):
    """Base class for errors raised by the page engine."""


class ValidationError(PageError, ValueError):
    """Bad input caught before any network attempt (empty/invalid URL, missing credential)."""


class NoDataAvailable(PageError):
    """A derived field was requested before the page was fetched successfully."""
