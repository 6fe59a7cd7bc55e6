"""Triage service configuration using pydantic-settings.

This module defines the TriageSettings class that reads configuration
from environment variables with the TRIAGE_ prefix. Only the GitHub token
is required; everything else has a working default.
"""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TriageSettings(BaseSettings):
    """Triage service configuration from environment variables.

    All environment variables are prefixed with TRIAGE_ (e.g., TRIAGE_GITHUB_TOKEN).

    Required fields (must be set via environment variables):
    - github_token: GitHub API token for milestones and comments
    """

    model_config = SettingsConfigDict(
        env_prefix="TRIAGE_",
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # GitHub Configuration
    # -------------------------------------------------------------------------
    github_token: str

    # Base URL for GitHub API (supports GitHub Enterprise)
    github_base_url: str = "https://api.github.com"

    # Per-request timeout for GitHub API calls
    request_timeout_seconds: float = 10.0

    # Retry attempts for transient GitHub API failures
    max_retries: int = 2

    # Exponential backoff between retries, capped per sleep
    retry_base_delay_seconds: float = 1.0
    retry_max_delay_seconds: float = 10.0

    # -------------------------------------------------------------------------
    # Triage Configuration
    # -------------------------------------------------------------------------
    milestone_title: str = "Needs Triage"

    # GitHub caps per_page at 100
    milestone_page_size: int = 100

    # Upper bound on handling one delivery end to end. Must outlast one
    # GitHub call with all of its retries.
    delivery_timeout_seconds: float = 45.0

    # -------------------------------------------------------------------------
    # Comment Configuration
    # -------------------------------------------------------------------------
    # Post "Issue event: <action>" / "PR event: <action>" comments
    acknowledge_events: bool = False

    # Reply "Hello @<login>" to comments containing greeting_trigger
    greeting_enabled: bool = False
    greeting_trigger: str = "Hello there."

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v: str) -> str:
        """Validate that GitHub token is not empty."""
        if not v or not v.strip():
            raise ValueError("github_token cannot be empty")
        return v

    @field_validator("github_base_url")
    @classmethod
    def validate_github_base_url(cls, v: str) -> str:
        """Validate that the GitHub base URL is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("github_base_url must start with http:// or https://")
        return v

    @field_validator("milestone_title", "greeting_trigger")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("value cannot be empty")
        return v

    @field_validator("milestone_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Validate that page size is within GitHub's bounds."""
        if not 1 <= v <= 100:
            raise ValueError("milestone_page_size must be between 1 and 100")
        return v

    @field_validator("request_timeout_seconds", "delivery_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("retry_base_delay_seconds", "retry_max_delay_seconds")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("retry delays cannot be negative")
        return v

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries cannot be negative")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def worst_case_call_seconds(self) -> float:
        """Longest one GitHub call can take: every attempt times out and
        every backoff sleep hits its cap."""
        attempts = self.max_retries + 1
        backoff = sum(
            min(self.retry_base_delay_seconds * (2 ** attempt), self.retry_max_delay_seconds)
            for attempt in range(self.max_retries)
        )
        return self.request_timeout_seconds * attempts + backoff

    @model_validator(mode="after")
    def validate_delivery_deadline(self) -> "TriageSettings":
        """A timed-out GitHub call must fail before the delivery deadline,
        so it surfaces as its own error instead of a generic timeout."""
        if self.delivery_timeout_seconds <= self.worst_case_call_seconds:
            raise ValueError(
                f"delivery_timeout_seconds ({self.delivery_timeout_seconds}) must exceed "
                f"the worst-case GitHub call duration ({self.worst_case_call_seconds}s)"
            )
        return self


def get_settings() -> TriageSettings:
    """Create and return a TriageSettings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    return TriageSettings()
