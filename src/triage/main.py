"""FastAPI application entry point for the triage service.

Receives GitHub webhook deliveries, classifies them, and routes them to
the triage workflow. Responses are plain text:

- 200 "Handled <EventType>" when the delivery was handled
- 400 with the classification detail for malformed deliveries
- 500 with the error detail when a handler failed
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from .comments import CommentResponder
from .config import TriageSettings, get_settings
from .controller import TriageController
from .errors import ClassificationError
from .github.client import GitHubClient
from .milestones import MilestoneResolver
from .router import EventRouter, Outcome
from .webhook.classifier import event_kind_from_hint

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

GITHUB_EVENT_HEADER = "x-github-event"
EVENT_TYPE_HINT_HEADER = "ce-eventtype"
_REDACTED_HEADERS = {"authorization", "cookie", "x-hub-signature", "x-hub-signature-256"}


def _redact_secret(value: str, visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters."""
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(settings: TriageSettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info("Triage configuration:")
    logger.info(f"  GitHub Base URL: {settings.github_base_url}")
    logger.info(f"  GitHub Token: {_redact_secret(settings.github_token)}")
    logger.info(f"  Request Timeout Seconds: {settings.request_timeout_seconds}")
    logger.info(f"  Max Retries: {settings.max_retries}")
    logger.info(f"  Retry Base Delay Seconds: {settings.retry_base_delay_seconds}")
    logger.info(f"  Retry Max Delay Seconds: {settings.retry_max_delay_seconds}")
    logger.info(f"  Milestone Title: {settings.milestone_title}")
    logger.info(f"  Milestone Page Size: {settings.milestone_page_size}")
    logger.info(f"  Delivery Timeout Seconds: {settings.delivery_timeout_seconds}")
    logger.info(f"  Acknowledge Events: {settings.acknowledge_events}")
    logger.info(f"  Greeting Enabled: {settings.greeting_enabled}")
    logger.info(f"  Host: {settings.host}")
    logger.info(f"  Port: {settings.port}")


def resolve_event_kind(headers: Mapping[str, str]) -> str:
    """Determine the event kind of a delivery from its headers.

    GitHub's own ``X-GitHub-Event`` header already names the kind and is
    preferred. Deliveries relayed through an event bus carry a dotted
    ``Ce-Eventtype`` hint instead, whose last segment is the kind.

    Raises:
        ClassificationError: MALFORMED_HINT when neither header is usable.
    """
    kind = headers.get(GITHUB_EVENT_HEADER, "").strip()
    if kind:
        return kind
    return event_kind_from_hint(headers.get(EVENT_TYPE_HINT_HEADER, ""))


def describe_request(request: Request) -> str:
    """Render the request line and headers for operator logs."""
    lines = [f"{request.method} {request.url}"]
    for name, value in request.headers.items():
        if name.lower() in _REDACTED_HEADERS:
            value = _redact_secret(value)
        lines.append(f"{name.lower()}: {value}")
    return "\n".join(lines)


def build_router(settings: TriageSettings, github_client: GitHubClient) -> EventRouter:
    """Wire the resolver, controller and responder into an EventRouter."""
    resolver = MilestoneResolver(
        github_client=github_client,
        page_size=settings.milestone_page_size,
    )
    controller = TriageController(
        github_client=github_client,
        resolver=resolver,
        milestone_title=settings.milestone_title,
    )
    responder = CommentResponder(
        github_client=github_client,
        acknowledge_events=settings.acknowledge_events,
        greeting_enabled=settings.greeting_enabled,
        greeting_trigger=settings.greeting_trigger,
    )
    return EventRouter(controller=controller, responder=responder)


def _to_response(outcome: Outcome) -> PlainTextResponse:
    return PlainTextResponse(outcome.detail, status_code=outcome.http_status)


def create_app(
    settings: Optional[TriageSettings] = None,
    github_client: Optional[GitHubClient] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Settings to use; read from the environment at startup
                  when omitted.
        github_client: Client to use; built from settings when omitted.
                       A client passed in is not closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Triage service starting up...")

        cfg = settings if settings is not None else get_settings()
        logging.getLogger().setLevel(cfg.log_level)
        _log_configuration(cfg)

        client = github_client
        owns_client = client is None
        if client is None:
            client = GitHubClient(
                token=cfg.github_token,
                base_url=cfg.github_base_url,
                max_retries=cfg.max_retries,
                base_delay=cfg.retry_base_delay_seconds,
                max_delay=cfg.retry_max_delay_seconds,
                timeout=cfg.request_timeout_seconds,
            )

        app.state.settings = cfg
        app.state.github_client = client
        app.state.event_router = build_router(cfg, client)

        logger.info("Triage service started successfully")

        yield

        logger.info("Triage service shutting down...")
        app.state.event_router = None
        if owns_client:
            await client.close()
        logger.info("Triage service shutdown complete")

    app = FastAPI(
        title="Triage Bot",
        description="Keeps a triage milestone on open GitHub issues and pull requests",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health():
        """Liveness probe endpoint."""
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready(request: Request):
        """Readiness probe endpoint.

        Ready once the router has been wired during startup.
        """
        router = getattr(request.app.state, "event_router", None)
        if router is None:
            return PlainTextResponse("not ready", status_code=503)
        return {"status": "ready"}

    async def receive(request: Request) -> PlainTextResponse:
        router: Optional[EventRouter] = getattr(request.app.state, "event_router", None)
        if router is None:
            logger.error("Triage service not initialized")
            return PlainTextResponse("Service not initialized", status_code=503)

        body = await request.body()

        try:
            event_kind = resolve_event_kind(request.headers)
        except ClassificationError as e:
            logger.warning(
                "Unable to determine event kind: %s\n%s",
                e.message,
                describe_request(request),
            )
            return _to_response(Outcome.client_error(e.message))

        timeout = request.app.state.settings.delivery_timeout_seconds
        try:
            outcome = await asyncio.wait_for(
                router.route_delivery(event_kind, body), timeout=timeout
            )
        except asyncio.TimeoutError:
            logger.error(
                "Delivery timed out",
                extra={"event_kind": event_kind, "timeout": timeout},
            )
            return _to_response(
                Outcome.server_error(f"delivery timed out after {timeout}s")
            )

        if outcome.http_status == 400:
            logger.warning("Rejected delivery\n%s", describe_request(request))
        return _to_response(outcome)

    app.add_api_route("/", receive, methods=["POST"])
    app.add_api_route("/webhooks/github", receive, methods=["POST"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    dev_settings = get_settings()
    uvicorn.run(
        "src.triage.main:app",
        host=dev_settings.host,
        port=dev_settings.port,
    )
