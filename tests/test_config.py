"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from src.triage.config import TriageSettings, get_settings


@pytest.fixture
def triage_env(monkeypatch):
    """Set the minimum environment for settings to load."""
    monkeypatch.setenv("TRIAGE_GITHUB_TOKEN", "ghp_test")


class TestGetSettings:
    """Tests for get_settings function."""

    def test_defaults(self, triage_env):
        settings = get_settings()

        assert settings.github_token == "ghp_test"
        assert settings.github_base_url == "https://api.github.com"
        assert settings.milestone_title == "Needs Triage"
        assert settings.milestone_page_size == 100
        assert settings.acknowledge_events is False
        assert settings.greeting_enabled is False
        assert settings.greeting_trigger == "Hello there."
        assert settings.port == 8080
        assert settings.delivery_timeout_seconds == 45.0

    def test_from_env(self, triage_env, monkeypatch):
        monkeypatch.setenv("TRIAGE_MILESTONE_TITLE", "Inbox")
        monkeypatch.setenv("TRIAGE_GREETING_ENABLED", "true")
        monkeypatch.setenv("TRIAGE_MAX_RETRIES", "0")
        monkeypatch.setenv("TRIAGE_LOG_LEVEL", "debug")

        settings = get_settings()

        assert settings.milestone_title == "Inbox"
        assert settings.greeting_enabled is True
        assert settings.max_retries == 0
        assert settings.log_level == "DEBUG"

    def test_token_is_required(self, monkeypatch):
        monkeypatch.delenv("TRIAGE_GITHUB_TOKEN", raising=False)

        with pytest.raises(ValidationError):
            get_settings()


class TestValidators:

    @pytest.mark.parametrize(
        "overrides",
        [
            {"github_token": "  "},
            {"github_base_url": "api.github.com"},
            {"milestone_title": ""},
            {"milestone_page_size": 0},
            {"milestone_page_size": 101},
            {"request_timeout_seconds": 0},
            {"delivery_timeout_seconds": -1},
            {"max_retries": -1},
            {"retry_base_delay_seconds": -1},
            {"port": 70000},
            {"log_level": "LOUD"},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        values = {"github_token": "ghp_test", **overrides}

        with pytest.raises(ValidationError):
            TriageSettings(**values)

class TestDeliveryDeadline:

    def test_defaults_outlast_a_fully_retried_call(self, triage_env):
        settings = get_settings()

        # 3 attempts of 10s plus 1s and 2s of backoff
        assert settings.worst_case_call_seconds == 33.0
        assert settings.delivery_timeout_seconds > settings.worst_case_call_seconds

    @pytest.mark.parametrize(
        "overrides",
        [
            {"delivery_timeout_seconds": 30.0},
            {"delivery_timeout_seconds": 33.0},
            {"max_retries": 5},
            {"request_timeout_seconds": 20.0},
        ],
    )
    def test_deadline_shorter_than_a_call_is_rejected(self, overrides):
        with pytest.raises(ValidationError, match="worst-case GitHub call"):
            TriageSettings(github_token="ghp_test", **overrides)

    def test_backoff_is_capped(self):
        settings = TriageSettings(
            github_token="ghp_test",
            max_retries=4,
            request_timeout_seconds=1.0,
            retry_max_delay_seconds=3.0,
        )

        # 5 attempts of 1s plus 1 + 2 + 3 + 3 of backoff
        assert settings.worst_case_call_seconds == 14.0
