"""Triage controller: keeps a "Needs Triage" milestone on open work.

For each issue or pull request the controller first computes a
TriageDecision from the entity alone. Only an open entity without a
milestone leads to remote calls: the triage milestone is resolved (or
created) and assigned with a single milestone-only edit.

Source:
- src/triage/milestones.py (MilestoneResolver)
- src/triage/github/client.py (set_issue_milestone)
"""

import logging

from src.triage.errors import ResolverError, TriageError, TriageFailure
from src.triage.github.client import GitHubAPIError, GitHubClient
from src.triage.milestones import MilestoneResolver
from src.triage.models import (
    EntityState,
    MilestoneRef,
    SkipReason,
    TriageableEntity,
    TriageDecision,
)

logger = logging.getLogger(__name__)

DEFAULT_MILESTONE_TITLE = "Needs Triage"


def decide(entity: TriageableEntity) -> TriageDecision:
    """Decide whether triage applies to an entity.

    Checks run in order and short-circuit: an assigned milestone wins over
    a closed state.
    """
    if entity.milestone is not None:
        return TriageDecision.skip(SkipReason.ALREADY_MILESTONED)
    if entity.state == EntityState.CLOSED:
        return TriageDecision.skip(SkipReason.CLOSED)
    return TriageDecision.apply()


class TriageController:
    """Applies the triage milestone to issues and pull requests.

    Attributes:
        github_client: Client used for the milestone assignment.
        resolver: Milestone get-or-create resolver.
        milestone_title: Title of the triage milestone.
    """

    def __init__(
        self,
        github_client: GitHubClient,
        resolver: MilestoneResolver,
        milestone_title: str = DEFAULT_MILESTONE_TITLE,
    ):
        self.github_client = github_client
        self.resolver = resolver
        self.milestone_title = milestone_title

    async def triage(self, entity: TriageableEntity) -> TriageDecision:
        """Ensure the entity carries a milestone.

        Args:
            entity: Issue or pull request taken from the delivery.

        Returns:
            The decision that was applied. Skips are successes.

        Raises:
            TriageError: RESOLVE_FAILED or ASSIGN_FAILED. Not retried.
        """
        decision = decide(entity)
        if not decision.should_apply:
            logger.info(
                "Skipping triage",
                extra={
                    "entity_id": entity.entity_id,
                    "reason": decision.reason.value,
                },
            )
            return decision

        try:
            milestone = await self.resolver.get_or_create(
                entity.owner, entity.repo, self.milestone_title
            )
        except ResolverError as e:
            raise TriageError(
                TriageFailure.RESOLVE_FAILED, entity.entity_id, e.message
            ) from e

        await self._assign(entity, milestone)
        return decision

    async def _assign(self, entity: TriageableEntity, milestone: MilestoneRef) -> None:
        try:
            await self.github_client.set_issue_milestone(
                entity.owner, entity.repo, entity.number, milestone.number
            )
        except GitHubAPIError as e:
            raise TriageError(
                TriageFailure.ASSIGN_FAILED, entity.entity_id, e.message
            ) from e

        logger.info(
            "Triage milestone assigned",
            extra={
                "entity_id": entity.entity_id,
                "kind": entity.kind.value,
                "milestone_number": milestone.number,
            },
        )
