"""GitHub webhook event models for the triage service.

This module defines the typed events a delivery can be classified into.
The set is closed:

- PullRequestEvent: ``pull_request`` deliveries (triaged)
- IssuesEvent: ``issues`` deliveries (triaged)
- IssueCommentEvent: ``issue_comment`` deliveries (greeting replies only)
- PushEvent: ``push`` deliveries (logged)
- OtherEvent: any other well-formed kind (logged)

Only the fields the service reads are modelled; everything else in the
payload is ignored.

GitHub Webhook Payload Structure (issues event, abridged):
{
  "action": "opened",
  "issue": {
    "number": 42,
    "state": "open",
    "milestone": null,
    "user": {"login": "username"}
  },
  "repository": {
    "name": "repo-name",
    "owner": {"login": "owner-name"}
  },
  "sender": {"login": "username", "type": "User"}
}
"""

from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union

from pydantic import BaseModel, Field

from src.triage.models import (
    EntityKind,
    EntityState,
    MilestoneRef,
    TriageableEntity,
)


class EventKind(str, Enum):
    """Event kinds the classifier knows the payload shape of.

    Attributes:
        PULL_REQUEST: A pull request was opened, edited, closed, etc.
        ISSUES: An issue was opened, edited, closed, etc.
        ISSUE_COMMENT: A comment was made on an issue or pull request.
        PUSH: Commits were pushed to a branch or tag.
    """

    PULL_REQUEST = "pull_request"
    ISSUES = "issues"
    ISSUE_COMMENT = "issue_comment"
    PUSH = "push"


class GitHubUser(BaseModel):
    login: str = Field(..., min_length=1)
    type: str = "User"

    @property
    def is_bot(self) -> bool:
        return self.type == "Bot" or self.login.endswith("[bot]")


class GitHubRepository(BaseModel):
    name: str = Field(..., min_length=1)
    owner: GitHubUser

    @property
    def full_name(self) -> str:
        return f"{self.owner.login}/{self.name}"


class GitHubMilestone(BaseModel):
    number: int = Field(..., gt=0)
    title: str

    def to_ref(self) -> MilestoneRef:
        return MilestoneRef(number=self.number, title=self.title)


class GitHubIssue(BaseModel):
    """Issue object embedded in issues and issue_comment payloads.

    ``pull_request`` is present when the issue is the conversation of a
    pull request.
    """

    number: int = Field(..., gt=0)
    state: EntityState
    milestone: Optional[GitHubMilestone] = None
    user: Optional[GitHubUser] = None
    pull_request: Optional[Dict[str, Any]] = None


class GitHubPullRequest(BaseModel):
    number: int = Field(..., gt=0)
    state: EntityState
    milestone: Optional[GitHubMilestone] = None
    user: Optional[GitHubUser] = None


class GitHubComment(BaseModel):
    id: Optional[int] = None
    body: str = ""
    user: Optional[GitHubUser] = None


class WebhookEvent(BaseModel):
    """Base class for typed webhook events."""

    kind: ClassVar[str] = ""

    @property
    def type_name(self) -> str:
        return type(self).__name__

    @property
    def kind_name(self) -> str:
        """The event kind as named by the delivery."""
        return self.kind


class IssuesEvent(WebhookEvent):
    kind: ClassVar[str] = EventKind.ISSUES.value

    action: str
    issue: GitHubIssue
    repository: GitHubRepository
    sender: Optional[GitHubUser] = None

    def to_entity(self) -> TriageableEntity:
        """Extract the triageable issue from the event."""
        return TriageableEntity(
            kind=(
                EntityKind.PULL_REQUEST
                if self.issue.pull_request is not None
                else EntityKind.ISSUE
            ),
            owner=self.repository.owner.login,
            repo=self.repository.name,
            number=self.issue.number,
            milestone=self.issue.milestone.to_ref() if self.issue.milestone else None,
            state=self.issue.state,
        )


class PullRequestEvent(WebhookEvent):
    kind: ClassVar[str] = EventKind.PULL_REQUEST.value

    action: str
    pull_request: GitHubPullRequest
    repository: GitHubRepository
    sender: Optional[GitHubUser] = None

    def to_entity(self) -> TriageableEntity:
        """Extract the triageable pull request from the event."""
        pr = self.pull_request
        return TriageableEntity(
            kind=EntityKind.PULL_REQUEST,
            owner=self.repository.owner.login,
            repo=self.repository.name,
            number=pr.number,
            milestone=pr.milestone.to_ref() if pr.milestone else None,
            state=pr.state,
        )


class IssueCommentEvent(WebhookEvent):
    kind: ClassVar[str] = EventKind.ISSUE_COMMENT.value

    action: str
    issue: GitHubIssue
    comment: GitHubComment
    repository: GitHubRepository
    sender: GitHubUser


class PushEvent(WebhookEvent):
    kind: ClassVar[str] = EventKind.PUSH.value

    ref: str
    repository: GitHubRepository
    before: Optional[str] = None
    after: Optional[str] = None


class OtherEvent(WebhookEvent):
    """A well-formed delivery of a kind the service does not act on.

    Attributes:
        event_kind: The kind as named by the delivery, kept for logging.
        payload: The raw JSON object.
    """

    event_kind: str = Field(..., min_length=1)
    payload: Dict[str, Any] = Field(default_factory=dict)

    @property
    def kind_name(self) -> str:
        return self.event_kind


TypedEvent = Union[
    PullRequestEvent,
    IssuesEvent,
    IssueCommentEvent,
    PushEvent,
    OtherEvent,
]

EVENT_MODELS = {
    EventKind.PULL_REQUEST.value: PullRequestEvent,
    EventKind.ISSUES.value: IssuesEvent,
    EventKind.ISSUE_COMMENT.value: IssueCommentEvent,
    EventKind.PUSH.value: PushEvent,
}


class Envelope(BaseModel):
    """A raw delivery before classification.

    Attributes:
        event_type_hint: Dotted namespace string whose last segment names
            the event kind (e.g. ``dev.knative.source.github.issues``). A
            bare kind such as ``issues`` is a one-segment hint.
        body: Raw request body.
    """

    event_type_hint: str
    body: bytes = b""
