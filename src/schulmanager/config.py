"""Scraper configuration loaded from environment variables.

Every component accepts a ``SchulmanagerConfig`` in its constructor and only
falls back to the process default from ``get_config()`` when none is given.
"""

from pydantic import Field
from pydantic_settings import BaseSettings

# Cache categories; the first key segment of every cache entry.
TIMETABLE = "timetable"
SUBSTITUTIONS = "substitutions"
CANCELLED = "cancelled"


class SchulmanagerConfig(BaseSettings):
    """Scraper configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Schulmanager portal (Angular single-page app, browser-only scraping)
    schulmanager_login_url: str = Field(
        default="https://login.schulmanager-online.de/",
        description="Login page of the Schulmanager portal",
    )
    schulmanager_schedule_url: str = Field(
        default=(
            "https://login.schulmanager-online.de/"
            "#/modules/schedules/view//?start={monday}"
        ),
        description="Schedule view URL template, {monday} is YYYY-MM-DD",
    )
    schulmanager_authenticated_url_pattern: str = Field(
        default="schulmanager-online.de/#/",
        description="Substring of the URL shown after a successful login",
    )
    schulmanager_email: str = Field(
        default="",
        description="Schulmanager account e-mail for Playwright login",
    )
    schulmanager_password: str = Field(
        default="",
        description="Schulmanager account password for Playwright login",
    )

    # Browser
    headless: bool = Field(default=True, description="Run Chromium headless")
    browser_args: list[str] = Field(
        default=[
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
        ],
        description="Extra Chromium launch arguments",
    )
    block_resources: bool = Field(
        default=True,
        description="Abort image/font/media requests while scraping",
    )
    page_pool_size: int = Field(
        default=1,
        ge=1,
        description="Pages that may navigate concurrently in the shared session",
    )

    # Timeouts and settle delays (milliseconds)
    navigation_timeout_ms: int = Field(default=30000)
    login_settle_ms: int = Field(default=2000)
    post_login_settle_ms: int = Field(default=3000)
    schedule_settle_ms: int = Field(
        default=5000,
        description="Fixed wait for Angular to finish rendering the schedule",
    )
    schedule_table_timeout_ms: int = Field(default=10000)
    schedule_table_selector: str = Field(default=".calendar-table")

    # Cache TTLs (seconds)
    cache_ttl_timetable: int = Field(default=21600)
    cache_ttl_substitutions: int = Field(default=1800)
    cache_default_ttl: int = Field(default=600)
    cache_scope: str = Field(
        default="default",
        description="Scope segment of cache keys (single account)",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def has_credentials(self) -> bool:
        return bool(self.schulmanager_email and self.schulmanager_password)

    def ttl_for(self, category: str) -> int:
        """Default time-to-live in seconds for a cache category."""
        if category == TIMETABLE:
            return self.cache_ttl_timetable
        if category in (SUBSTITUTIONS, CANCELLED):
            return self.cache_ttl_substitutions
        return self.cache_default_ttl


_config: SchulmanagerConfig | None = None


def get_config() -> SchulmanagerConfig:
    """Get the process default configuration.

    Returns:
        SchulmanagerConfig: Configuration built from the environment
    """
    global _config
    if _config is None:
        _config = SchulmanagerConfig()
    return _config
