"""GitHub API client for milestone and comment operations.

This module provides a wrapper around the GitHub API for:
- Listing and creating milestones
- Assigning milestones to issues and pull requests
- Creating comments

Includes rate limiting and retry logic for API resilience.
"""

from src.triage.github.client import (
    GitHubAPIError,
    GitHubClient,
    MilestonePage,
    RateLimitError,
)

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "MilestonePage",
    "RateLimitError",
]
