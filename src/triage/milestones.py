"""Get-or-create resolution of milestones by title.

The resolver walks a repository's milestone pages looking for an exact
title match and creates the milestone when none exists. There is no lock
around the read-then-create sequence: two concurrent deliveries can both
miss the milestone and both try to create it. GitHub rejects the second
create with a 422 ``already_exists`` validation error, which the resolver
treats as "the milestone now exists" and re-resolves once.

Source:
- src/triage/github/client.py (list_milestones, create_milestone)
"""

import logging
from typing import Optional

from src.triage.errors import ResolverError, ResolverFailure
from src.triage.github.client import GitHubAPIError, GitHubClient
from src.triage.models import MilestoneRef

logger = logging.getLogger(__name__)


class MilestoneResolver:
    """Finds or creates a milestone by exact title.

    Attributes:
        github_client: Client providing the milestone operations.
        page_size: Milestones requested per page.
    """

    def __init__(self, github_client: GitHubClient, page_size: int = 100):
        self.github_client = github_client
        self.page_size = page_size

    async def find(self, owner: str, repo: str, title: str) -> Optional[MilestoneRef]:
        """Walk the milestone pages and return the first exact title match.

        Paging stops at the page holding the match, when GitHub reports no
        next page, or when the next page repeats the current one.

        Raises:
            ResolverError: LIST_FAILED when any page cannot be fetched.
        """
        page: Optional[int] = 1
        while page is not None:
            try:
                result = await self.github_client.list_milestones(
                    owner, repo, page=page, per_page=self.page_size
                )
            except GitHubAPIError as e:
                raise ResolverError(
                    ResolverFailure.LIST_FAILED, owner, repo, title, e.message
                ) from e

            for milestone in result.milestones:
                if milestone.title == title:
                    logger.debug(
                        "Found milestone %r as #%d on page %d",
                        title,
                        milestone.number,
                        page,
                    )
                    return milestone

            if result.next_page is None or result.next_page == page:
                break
            page = result.next_page

        return None

    async def get_or_create(self, owner: str, repo: str, title: str) -> MilestoneRef:
        """Return the milestone titled ``title``, creating it if missing.

        Args:
            owner: Repository owner.
            repo: Repository name.
            title: Exact milestone title (case-sensitive).

        Returns:
            The existing or newly created milestone.

        Raises:
            ResolverError: LIST_FAILED or CREATE_FAILED.
        """
        existing = await self.find(owner, repo, title)
        if existing is not None:
            return existing

        logger.info(
            "Milestone not found, creating it",
            extra={"owner": owner, "repo": repo, "title": title},
        )

        try:
            return await self.github_client.create_milestone(owner, repo, title)
        except GitHubAPIError as e:
            if not e.is_already_exists():
                raise ResolverError(
                    ResolverFailure.CREATE_FAILED, owner, repo, title, e.message
                ) from e
            create_error = e

        # Lost the creation race to a concurrent delivery.
        logger.warning(
            "Milestone was created concurrently, re-resolving",
            extra={"owner": owner, "repo": repo, "title": title},
        )
        existing = await self.find(owner, repo, title)
        if existing is None:
            raise ResolverError(
                ResolverFailure.CREATE_FAILED,
                owner,
                repo,
                title,
                "create reported already_exists but no match was listed",
            ) from create_error
        return existing
