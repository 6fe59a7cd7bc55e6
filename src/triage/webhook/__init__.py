"""GitHub webhook handling for the triage service.

This module parses GitHub webhook deliveries into typed events:
- pull_request - triaged
- issues - triaged
- issue_comment - greeting replies
- push and everything else - logged

Signature validation is performed by the delivery transport before events
reach this service.
"""

from .classifier import classify, classify_envelope, event_kind_from_hint
from .models import (
    Envelope,
    EventKind,
    IssueCommentEvent,
    IssuesEvent,
    OtherEvent,
    PullRequestEvent,
    PushEvent,
    TypedEvent,
)

__all__ = [
    "Envelope",
    "EventKind",
    "IssueCommentEvent",
    "IssuesEvent",
    "OtherEvent",
    "PullRequestEvent",
    "PushEvent",
    "TypedEvent",
    "classify",
    "classify_envelope",
    "event_kind_from_hint",
]
