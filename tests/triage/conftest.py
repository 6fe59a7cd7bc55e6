"""Pytest fixtures for triage tests."""

import pytest

from tests.triage.helpers import FakeGitHubClient


@pytest.fixture
def fake_github() -> FakeGitHubClient:
    return FakeGitHubClient()
