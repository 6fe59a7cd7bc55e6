"""Triage domain models.

This module defines the request-scoped data the triage workflow operates on:
- MilestoneRef: A milestone as seen on the remote tracker (number + title)
- TriageableEntity: An issue or pull request that may need triage
- TriageDecision: Whether triage applies to an entity, and why not

None of these objects outlive a single webhook delivery. The milestone field
on GitHub is the only persisted triage state.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class MilestoneRef(BaseModel):
    """Reference to a milestone on the remote tracker.

    Attributes:
        number: Repository-scoped milestone number used for assignment.
        title: Milestone title, compared exactly (case-sensitive).
    """

    number: int = Field(..., gt=0)
    title: str

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> "MilestoneRef":
        """Build a reference from a GitHub milestone JSON object."""
        return cls(number=data["number"], title=data["title"])


class EntityKind(str, Enum):
    """Kinds of tracker entities that can be triaged."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"


class EntityState(str, Enum):
    """Open/closed state of an issue or pull request."""

    OPEN = "open"
    CLOSED = "closed"


class TriageableEntity(BaseModel):
    """An issue or pull request extracted from a webhook event.

    Attributes:
        kind: Whether the entity is an issue or a pull request.
        owner: Repository owner login (user or organization).
        repo: Repository name without owner prefix.
        number: Issue or pull request number.
        milestone: Milestone currently assigned, if any.
        state: Open or closed.
    """

    kind: EntityKind
    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    number: int = Field(..., gt=0)
    milestone: Optional[MilestoneRef] = None
    state: EntityState = EntityState.OPEN

    @property
    def entity_id(self) -> str:
        """Canonical identifier in format "{owner}/{repo}#{number}"."""
        return f"{self.owner}/{self.repo}#{self.number}"


class SkipReason(str, Enum):
    """Why triage did not apply to an entity."""

    ALREADY_MILESTONED = "already_milestoned"
    CLOSED = "closed"


class TriageAction(str, Enum):
    APPLY = "apply"
    SKIP = "skip"


class TriageDecision(BaseModel):
    """Outcome of the triage guard checks.

    Attributes:
        action: APPLY when the entity needs the triage milestone.
        reason: Set only when action is SKIP.
    """

    action: TriageAction
    reason: Optional[SkipReason] = None

    @classmethod
    def apply(cls) -> "TriageDecision":
        return cls(action=TriageAction.APPLY)

    @classmethod
    def skip(cls, reason: SkipReason) -> "TriageDecision":
        return cls(action=TriageAction.SKIP, reason=reason)

    @property
    def should_apply(self) -> bool:
        return self.action == TriageAction.APPLY
