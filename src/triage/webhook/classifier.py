"""Classification of raw webhook deliveries into typed events.

The classifier is a pure parse: it maps an event kind and a JSON body to
one of the typed events in ``src.triage.webhook.models`` or raises
ClassificationError. It never talks to GitHub.

Event kinds come either from GitHub's canonical ``X-GitHub-Event`` header
(already a bare kind) or from a dotted delivery hint such as
``dev.knative.source.github.issues``, in which case only the last segment
is meaningful.
"""

import json
import logging
from typing import Any, Dict, Union

from pydantic import ValidationError

from src.triage.errors import ClassificationError, ClassificationFailure
from src.triage.webhook.models import (
    EVENT_MODELS,
    Envelope,
    OtherEvent,
    TypedEvent,
)

logger = logging.getLogger(__name__)


def event_kind_from_hint(hint: str) -> str:
    """Extract the event kind from a dotted event-type hint.

    Args:
        hint: Dotted namespace string, e.g. ``com.example.webhook.issues``.

    Returns:
        The last dot-separated segment, e.g. ``issues``.

    Raises:
        ClassificationError: MALFORMED_HINT when the hint is empty or its
            last segment is empty.
    """
    if not isinstance(hint, str) or not hint.strip():
        raise ClassificationError(
            ClassificationFailure.MALFORMED_HINT, "event type hint is empty"
        )

    kind = hint.strip().split(".")[-1]
    if not kind:
        raise ClassificationError(
            ClassificationFailure.MALFORMED_HINT,
            f"event type hint {hint!r} has no trailing segment",
        )
    return kind


def _load_object(body: Union[bytes, str]) -> Dict[str, Any]:
    """Decode a JSON object from the request body."""
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ClassificationError(
            ClassificationFailure.BAD_PAYLOAD, f"invalid JSON body: {e}"
        ) from e

    if not isinstance(payload, dict):
        raise ClassificationError(
            ClassificationFailure.BAD_PAYLOAD,
            f"expected JSON object, got {type(payload).__name__}",
        )
    return payload


def classify(event_kind: str, body: Union[bytes, str]) -> TypedEvent:
    """Parse a delivery body according to its event kind.

    Args:
        event_kind: Bare event kind (``issues``, ``pull_request``, ...).
        body: Raw JSON body.

    Returns:
        The typed event. Kinds without a known shape become OtherEvent.

    Raises:
        ClassificationError: MALFORMED_HINT for an empty kind, BAD_PAYLOAD
            when the body is not JSON or does not match the kind's shape.
    """
    if not event_kind:
        raise ClassificationError(
            ClassificationFailure.MALFORMED_HINT, "event kind is empty"
        )

    payload = _load_object(body)

    model = EVENT_MODELS.get(event_kind)
    if model is None:
        logger.debug("No payload shape for event kind %s", event_kind)
        return OtherEvent(event_kind=event_kind, payload=payload)

    try:
        event = model.model_validate(payload)
    except ValidationError as e:
        raise ClassificationError(
            ClassificationFailure.BAD_PAYLOAD,
            f"{event_kind} payload does not match schema: "
            f"{e.error_count()} validation error(s)",
        ) from e

    logger.debug("Classified delivery as %s", event.type_name)
    return event


def classify_envelope(envelope: Envelope) -> TypedEvent:
    """Classify a raw envelope carrying a dotted event-type hint.

    Raises:
        ClassificationError: See event_kind_from_hint and classify.
    """
    return classify(event_kind_from_hint(envelope.event_type_hint), envelope.body)
