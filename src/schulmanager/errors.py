"""Error hierarchy for the Schulmanager scraper.

Each error carries a machine-readable ``code`` and an HTTP-like
``status_code`` so the request boundary can turn it into a uniform error
envelope without a separate lookup table.

Login failures are deliberately absent: ``SessionManager.login`` reports them
as ``False``. ``AuthenticationError`` is raised one level up, by callers that
decided a failed login is fatal for their request.
"""


class ScrapingError(Exception):
    """Base exception for all scraping errors."""

    code = "INTERNAL_ERROR"
    status_code = 500


class TransientError(ScrapingError):
    """Temporary failure that may succeed on retry.

    Examples: network timeouts, the portal being slow to render.
    """

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 503


class NavigationError(TransientError):
    """The schedule table never appeared within its timeout."""

    code = "SCHEDULE_UNAVAILABLE"
    status_code = 504


class PermanentError(ScrapingError):
    """Failure that won't succeed on retry without outside changes."""

    code = "SCRAPING_FAILED"
    status_code = 500


class AuthenticationError(PermanentError):
    """Logging into Schulmanager failed for this request."""

    code = "LOGIN_FAILED"
    status_code = 502


class NotAuthenticatedError(AuthenticationError):
    """An operation needing a session was called before a successful login."""

    code = "NOT_AUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Not logged in to Schulmanager") -> None:
        super().__init__(message)


class InvalidDateError(ScrapingError, ValueError):
    """A date parameter is not a real calendar date in YYYY-MM-DD form."""

    code = "INVALID_DATE"
    status_code = 400
