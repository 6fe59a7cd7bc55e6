"""GitHub API client for triage operations.

This module provides an async wrapper around the GitHub REST API for:
- Listing repository milestones (paginated)
- Creating milestones
- Assigning a milestone to an issue or pull request
- Creating comments on issues and pull requests

Includes rate limiting and retry logic for API resilience. Retry policy
lives here and nowhere else in the service.

Source:
- src/triage/config.py (github_token, github_base_url, timeouts)
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from src.triage.models import MilestoneRef


logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Raised when a GitHub API request fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response.
        response_body: Response body from GitHub API.
        request_url: The URL that was requested.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(message)

    def is_already_exists(self) -> bool:
        """Check whether this is GitHub's duplicate-resource validation error.

        GitHub answers a create for a title that is already taken with
        422 and an ``errors`` entry whose code is ``already_exists``.
        """
        if self.status_code != 422 or not self.response_body:
            return False
        return "already_exists" in self.response_body


class RateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded.

    Attributes:
        reset_at: Unix timestamp when the rate limit resets.
        retry_after: Seconds to wait before retrying.
    """

    def __init__(
        self,
        message: str,
        reset_at: Optional[int] = None,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.reset_at = reset_at
        self.retry_after = retry_after


@dataclass
class MilestonePage:
    """One page of a repository's milestone listing.

    Attributes:
        milestones: Milestones on this page, in the order GitHub returned.
        page: The page number that was requested.
        next_page: Page number from the ``rel="next"`` link, or None on
            the last page.
    """

    milestones: List[MilestoneRef] = field(default_factory=list)
    page: int = 1
    next_page: Optional[int] = None


class GitHubClient:
    """Async GitHub API client with rate limiting and retry logic.

    This client provides the issue and milestone operations the triage
    workflow needs. It implements:

    - Automatic retry with exponential backoff for transient failures
    - Rate limit handling by respecting X-RateLimit-* headers
    - Support for both github.com and GitHub Enterprise Server

    Attributes:
        token: GitHub API token (PAT or GitHub App token).
        base_url: Base URL for GitHub API (default: https://api.github.com).
        max_retries: Maximum number of retry attempts for transient failures.
        base_delay: Base delay in seconds for exponential backoff.
        max_delay: Maximum delay in seconds between retries.
        timeout: Per-request timeout in seconds.

    Example:
        >>> client = GitHubClient(token="ghp_xxx")
        >>> async with client:
        ...     await client.create_milestone("owner", "repo", "Needs Triage")
    """

    # HTTP status codes that should trigger a retry. 429 is a rate limit
    # and raises RateLimitError instead.
    RETRYABLE_STATUS_CODES = {408, 500, 502, 503, 504}

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_delay: float = 10.0,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the GitHub client.

        Args:
            token: GitHub API token for authentication.
            base_url: Base URL for GitHub API. Use this to support
                      GitHub Enterprise Server endpoints.
            max_retries: Maximum number of retry attempts.
            base_delay: Base delay in seconds for exponential backoff.
            max_delay: Maximum delay in seconds between retries.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests to stub
                       the network.
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "TriageBot/1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(
        self,
        exc_type: Any,
        exc_val: Any,
        exc_tb: Any,
    ) -> None:
        await self.close()

    def _calculate_backoff(self, attempt: int) -> float:
        """Calculate backoff delay with full jitter.

        Args:
            attempt: The current retry attempt (0-indexed).

        Returns:
            Delay in seconds before the next retry.
        """
        exponential_delay = self.base_delay * (2 ** attempt)
        capped_delay = min(exponential_delay, self.max_delay)
        return random.uniform(0, capped_delay)

    def _parse_int_header(
        self,
        headers: httpx.Headers,
        name: str,
    ) -> Optional[int]:
        value = headers.get(name)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                pass
        return None

    def _raise_rate_limited(self, response: httpx.Response) -> None:
        """Raise RateLimitError with reset information from the headers.

        Raises:
            RateLimitError: Always.
        """
        reset_at = self._parse_int_header(response.headers, "x-ratelimit-reset")

        retry_after = None
        if reset_at is not None:
            retry_after = max(0, reset_at - int(time.time()))

        retry_after_header = self._parse_int_header(response.headers, "retry-after")
        if retry_after_header is not None:
            retry_after = retry_after_header

        logger.warning(
            "GitHub API rate limit exceeded",
            extra={
                "reset_at": reset_at,
                "retry_after": retry_after,
                "path": response.request.url.path,
            },
        )

        raise RateLimitError(
            message="GitHub API rate limit exceeded",
            status_code=response.status_code,
            reset_at=reset_at,
            retry_after=retry_after,
            request_url=str(response.request.url),
        )

    async def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, PATCH).
            path: API path (e.g., /repos/owner/repo/milestones).
            json_data: Optional JSON body for the request.
            params: Optional query parameters.

        Returns:
            The HTTP response from GitHub.

        Raises:
            GitHubAPIError: If the request fails after all retries.
            RateLimitError: If rate limit is exceeded.
        """
        last_exception: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(
                    method=method,
                    url=path,
                    json=json_data,
                    params=params,
                )
            except httpx.TimeoutException as e:
                last_exception = e
                message = "Request timeout"
            except httpx.RequestError as e:
                last_exception = e
                message = "Request error"
            else:
                if response.status_code == 403:
                    remaining = self._parse_int_header(
                        response.headers,
                        "x-ratelimit-remaining",
                    )
                    if remaining == 0:
                        self._raise_rate_limited(response)

                if response.status_code == 429:
                    self._raise_rate_limited(response)

                if (
                    response.status_code in self.RETRYABLE_STATUS_CODES
                    and attempt < self.max_retries
                ):
                    delay = self._calculate_backoff(attempt)
                    logger.warning(
                        "Retryable error from GitHub API",
                        extra={
                            "status_code": response.status_code,
                            "attempt": attempt + 1,
                            "max_retries": self.max_retries,
                            "delay": delay,
                            "path": path,
                        },
                    )
                    await asyncio.sleep(delay)
                    continue

                if response.status_code >= 400:
                    error_body = response.text
                    logger.error(
                        "GitHub API error",
                        extra={
                            "status_code": response.status_code,
                            "path": path,
                            "method": method,
                            "response_body": error_body[:500],
                        },
                    )
                    raise GitHubAPIError(
                        message=f"GitHub API error: {response.status_code}",
                        status_code=response.status_code,
                        response_body=error_body,
                        request_url=str(response.url),
                    )

                return response

            if attempt < self.max_retries:
                delay = self._calculate_backoff(attempt)
                logger.warning(
                    "%s, retrying",
                    message,
                    extra={
                        "error": str(last_exception),
                        "attempt": attempt + 1,
                        "max_retries": self.max_retries,
                        "delay": delay,
                        "path": path,
                    },
                )
                await asyncio.sleep(delay)

        logger.error(
            "GitHub API request failed after all retries",
            extra={
                "path": path,
                "method": method,
                "max_retries": self.max_retries,
                "last_error": str(last_exception),
            },
        )
        raise GitHubAPIError(
            message=f"Request failed after {self.max_retries} retries: {last_exception!r}",
            request_url=f"{self.base_url}{path}",
        ) from last_exception

    @staticmethod
    def _next_page(response: httpx.Response) -> Optional[int]:
        """Extract the page number of the ``rel="next"`` Link, if any."""
        next_link = response.links.get("next")
        if not next_link or not next_link.get("url"):
            return None
        page = httpx.URL(next_link["url"]).params.get("page")
        if page is None:
            return None
        try:
            return int(page)
        except ValueError:
            return None

    def _malformed(self, response: httpx.Response, error: Exception) -> GitHubAPIError:
        """Build the error for a successful response with an unusable body."""
        logger.error(
            "Unexpected response body from GitHub API",
            extra={
                "status_code": response.status_code,
                "path": response.request.url.path,
                "error": str(error),
                "response_body": response.text[:500],
            },
        )
        return GitHubAPIError(
            message=f"Malformed GitHub API response: {error!r}",
            status_code=response.status_code,
            response_body=response.text,
            request_url=str(response.request.url),
        )

    def _decode(self, response: httpx.Response) -> Any:
        """Decode a JSON response body.

        Raises:
            GitHubAPIError: If the body is not JSON.
        """
        try:
            return response.json()
        except ValueError as e:
            raise self._malformed(response, e) from e

    async def list_milestones(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: int = 100,
        state: str = "all",
    ) -> MilestonePage:
        """List one page of a repository's milestones.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            page: 1-based page number.
            per_page: Page size (GitHub caps this at 100).
            state: Milestone state filter: open, closed or all.

        Returns:
            MilestonePage with the entries and the next page number.

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = f"/repos/{owner}/{repo}/milestones"

        logger.debug(
            "Listing milestones",
            extra={"owner": owner, "repo": repo, "page": page},
        )

        response = await self._request(
            method="GET",
            path=path,
            params={"state": state, "per_page": per_page, "page": page},
        )

        data = self._decode(response)
        try:
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            milestones = [MilestoneRef.from_github_response(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise self._malformed(response, e) from e
        return MilestonePage(
            milestones=milestones,
            page=page,
            next_page=self._next_page(response),
        )

    async def create_milestone(
        self,
        owner: str,
        repo: str,
        title: str,
    ) -> MilestoneRef:
        """Create a milestone with only its title set.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            title: Milestone title.

        Returns:
            Reference to the created milestone.

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = f"/repos/{owner}/{repo}/milestones"

        logger.info(
            "Creating milestone",
            extra={"owner": owner, "repo": repo, "title": title},
        )

        response = await self._request(
            method="POST",
            path=path,
            json_data={"title": title},
        )

        try:
            milestone = MilestoneRef.from_github_response(self._decode(response))
        except (KeyError, TypeError, ValueError) as e:
            raise self._malformed(response, e) from e
        logger.info(
            "Milestone created successfully",
            extra={
                "owner": owner,
                "repo": repo,
                "milestone_number": milestone.number,
            },
        )
        return milestone

    async def set_issue_milestone(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        milestone_number: int,
    ) -> Dict[str, Any]:
        """Assign a milestone to an issue or pull request.

        Pull requests share the issues endpoint. Only the milestone field
        is sent, so labels, assignees, title and body are left untouched.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            issue_number: Issue or pull request number.
            milestone_number: Number of the milestone to assign.

        Returns:
            The updated issue data from GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = f"/repos/{owner}/{repo}/issues/{issue_number}"

        logger.info(
            "Assigning milestone to issue",
            extra={
                "owner": owner,
                "repo": repo,
                "issue_number": issue_number,
                "milestone_number": milestone_number,
            },
        )

        response = await self._request(
            method="PATCH",
            path=path,
            json_data={"milestone": milestone_number},
        )
        return self._decode(response)

    async def create_comment(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        body: str,
    ) -> Dict[str, Any]:
        """Create a comment on an issue or pull request.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            issue_number: Issue number to comment on.
            body: Comment body in markdown format.

        Returns:
            The created comment data from GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = f"/repos/{owner}/{repo}/issues/{issue_number}/comments"

        logger.info(
            "Creating comment on issue",
            extra={
                "owner": owner,
                "repo": repo,
                "issue_number": issue_number,
                "body_length": len(body),
            },
        )

        response = await self._request(
            method="POST",
            path=path,
            json_data={"body": body},
        )

        result = self._decode(response)
        logger.info(
            "Comment created successfully",
            extra={
                "owner": owner,
                "repo": repo,
                "issue_number": issue_number,
                "comment_id": result.get("id"),
            },
        )
        return result
