"""Event routing for the triage service.

Dispatches a typed event to its handler and converts the result into an
Outcome the HTTP layer can turn into a response:

    PullRequestEvent  -> triage (pull request) + optional acknowledgement
    IssuesEvent       -> triage (issue) + optional acknowledgement
    IssueCommentEvent -> optional greeting reply
    PushEvent         -> logged
    OtherEvent        -> logged

A delivery that cannot be classified becomes a client error without any
handler running. A handler error becomes a server error.

Source:
- src/triage/webhook/classifier.py (classify, classify_envelope)
- src/triage/controller.py (TriageController)
- src/triage/comments.py (CommentResponder)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from src.triage.comments import CommentResponder
from src.triage.controller import TriageController
from src.triage.errors import ClassificationError, TriageBotError
from src.triage.webhook.classifier import classify, classify_envelope
from src.triage.webhook.models import (
    Envelope,
    IssueCommentEvent,
    IssuesEvent,
    OtherEvent,
    PullRequestEvent,
    PushEvent,
    TypedEvent,
)

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    HANDLED = "handled"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"


_HTTP_STATUS = {
    OutcomeStatus.HANDLED: 200,
    OutcomeStatus.CLIENT_ERROR: 400,
    OutcomeStatus.SERVER_ERROR: 500,
}


@dataclass
class Outcome:
    """Result of routing one delivery.

    Attributes:
        status: Handled, client error or server error.
        detail: One-line message returned to the sender.
    """

    status: OutcomeStatus
    detail: str

    @classmethod
    def handled(cls, event: TypedEvent) -> "Outcome":
        return cls(OutcomeStatus.HANDLED, f"Handled {event.type_name}")

    @classmethod
    def client_error(cls, detail: str) -> "Outcome":
        return cls(OutcomeStatus.CLIENT_ERROR, detail)

    @classmethod
    def server_error(cls, detail: str) -> "Outcome":
        return cls(OutcomeStatus.SERVER_ERROR, detail)

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.status]

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.HANDLED


class EventRouter:
    """Routes typed events to their handlers.

    Attributes:
        controller: Triage controller for issues and pull requests.
        responder: Comment responder for acknowledgements and greetings.
    """

    def __init__(self, controller: TriageController, responder: CommentResponder):
        self.controller = controller
        self.responder = responder

    async def route(self, event: TypedEvent) -> Outcome:
        """Dispatch a classified event and report the outcome."""
        logger.info(
            "Routing %s",
            event.type_name,
            extra={"event_kind": event.kind_name},
        )

        try:
            await self._dispatch(event)
        except TriageBotError as e:
            logger.exception(
                "Error handling %s: %s",
                event.type_name,
                e.message,
                extra={"event_kind": event.kind_name},
            )
            return Outcome.server_error(e.message)

        return Outcome.handled(event)

    async def route_delivery(self, event_kind: str, body: Union[bytes, str]) -> Outcome:
        """Classify a delivery whose kind is already known, then route it."""
        try:
            event = classify(event_kind, body)
        except ClassificationError as e:
            return self._rejected(e)
        return await self.route(event)

    async def route_envelope(self, envelope: Envelope) -> Outcome:
        """Classify a raw envelope by its dotted hint, then route it."""
        try:
            event = classify_envelope(envelope)
        except ClassificationError as e:
            return self._rejected(e)
        return await self.route(event)

    def _rejected(self, error: ClassificationError) -> Outcome:
        logger.warning(
            "Unable to classify delivery: %s",
            error.message,
            extra={"reason": error.reason.value},
        )
        return Outcome.client_error(error.message)

    async def _dispatch(self, event: TypedEvent) -> None:
        if isinstance(event, (PullRequestEvent, IssuesEvent)):
            entity = event.to_entity()
            await self.controller.triage(entity)
            await self.responder.acknowledge(entity, event.action)
        elif isinstance(event, IssueCommentEvent):
            await self.responder.reply_to_greeting(event)
        elif isinstance(event, PushEvent):
            logger.info(
                "Push to %s on %s",
                event.ref,
                event.repository.full_name,
            )
        elif isinstance(event, OtherEvent):
            logger.info("Ignoring %s event", event.event_kind)
        else:
            raise TypeError(f"Unroutable event type: {type(event).__name__}")
