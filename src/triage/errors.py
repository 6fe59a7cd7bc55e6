"""Error taxonomy for the triage service.

Errors fall into three families, each carrying a reason code:

- ClassificationError: the delivery itself is unusable (client error, 400).
- ResolverError: listing or creating milestones failed.
- TriageError: resolving or assigning the triage milestone failed (500).

CommentError covers failed acknowledgement comments (500).
"""

from enum import Enum
from typing import Optional


class TriageBotError(Exception):
    """Base class for all errors raised by the triage service.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ClassificationFailure(str, Enum):
    MALFORMED_HINT = "malformed_hint"
    BAD_PAYLOAD = "bad_payload"


class ClassificationError(TriageBotError):
    """Raised when an envelope cannot be turned into a typed event.

    Attributes:
        reason: MALFORMED_HINT or BAD_PAYLOAD.
        detail: Underlying parser detail, if any.
    """

    def __init__(self, reason: ClassificationFailure, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = reason.value if not detail else f"{reason.value}: {detail}"
        super().__init__(message)


class ResolverFailure(str, Enum):
    LIST_FAILED = "list_failed"
    CREATE_FAILED = "create_failed"


class ResolverError(TriageBotError):
    """Raised when the milestone resolver cannot list or create milestones.

    Attributes:
        reason: LIST_FAILED or CREATE_FAILED.
        owner: Repository owner.
        repo: Repository name.
        title: Milestone title being resolved.
    """

    def __init__(
        self,
        reason: ResolverFailure,
        owner: str,
        repo: str,
        title: str,
        detail: str = "",
    ):
        self.reason = reason
        self.owner = owner
        self.repo = repo
        self.title = title
        message = f"{reason.value} for milestone {title!r} in {owner}/{repo}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TriageFailure(str, Enum):
    RESOLVE_FAILED = "resolve_failed"
    ASSIGN_FAILED = "assign_failed"


class TriageError(TriageBotError):
    """Raised when the triage milestone could not be applied to an entity.

    Attributes:
        reason: RESOLVE_FAILED or ASSIGN_FAILED.
        entity_id: "{owner}/{repo}#{number}" of the entity being triaged.
    """

    def __init__(
        self,
        reason: TriageFailure,
        entity_id: str,
        detail: Optional[str] = None,
    ):
        self.reason = reason
        self.entity_id = entity_id
        message = f"{reason.value} for {entity_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CommentError(TriageBotError):
    """Raised when an acknowledgement comment could not be posted."""

    def __init__(self, entity_id: str, detail: str = ""):
        self.entity_id = entity_id
        message = f"comment failed for {entity_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
