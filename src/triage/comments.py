"""Acknowledgement comments posted in response to deliveries.

Two optional behaviours, both off unless enabled in settings:

- event acknowledgements: "Issue event: <action>" / "PR event: <action>"
  on the issue or pull request the delivery is about;
- greeting replies: a comment containing the trigger phrase gets
  "Hello @<sender>" back. Bot comments never trigger a reply.
"""

import logging
from typing import Optional

from src.triage.errors import CommentError
from src.triage.github.client import GitHubAPIError, GitHubClient
from src.triage.models import EntityKind, TriageableEntity
from src.triage.webhook.models import IssueCommentEvent

logger = logging.getLogger(__name__)

DEFAULT_GREETING_TRIGGER = "Hello there."


def build_acknowledgement(entity: TriageableEntity, action: str) -> str:
    prefix = "PR" if entity.kind == EntityKind.PULL_REQUEST else "Issue"
    return f"{prefix} event: {action}"


def build_greeting(login: str) -> str:
    return f"Hello @{login}"


class CommentResponder:
    """Posts acknowledgement and greeting comments.

    Attributes:
        github_client: Client used to create comments.
        acknowledge_events: Whether issue/PR events are acknowledged.
        greeting_enabled: Whether greeting replies are posted.
        greeting_trigger: Substring that triggers a greeting reply.
    """

    def __init__(
        self,
        github_client: GitHubClient,
        acknowledge_events: bool = False,
        greeting_enabled: bool = False,
        greeting_trigger: str = DEFAULT_GREETING_TRIGGER,
    ):
        self.github_client = github_client
        self.acknowledge_events = acknowledge_events
        self.greeting_enabled = greeting_enabled
        self.greeting_trigger = greeting_trigger

    async def acknowledge(self, entity: TriageableEntity, action: str) -> Optional[str]:
        """Comment on the entity with the event action, when enabled.

        Returns:
            The posted body, or None when acknowledgements are disabled.

        Raises:
            CommentError: If the comment could not be created.
        """
        if not self.acknowledge_events:
            return None

        body = build_acknowledgement(entity, action)
        await self._post(entity.owner, entity.repo, entity.number, body)
        return body

    async def reply_to_greeting(self, event: IssueCommentEvent) -> Optional[str]:
        """Reply to a comment containing the greeting trigger.

        Returns:
            The posted body, or None when no reply was due.

        Raises:
            CommentError: If the reply could not be created.
        """
        logger.info(
            "Comment from %s on #%d",
            event.sender.login,
            event.issue.number,
            extra={"action": event.action},
        )

        if not self.greeting_enabled or event.action != "created":
            return None
        if event.sender.is_bot:
            return None
        if self.greeting_trigger not in event.comment.body:
            return None

        body = build_greeting(event.sender.login)
        await self._post(
            event.repository.owner.login,
            event.repository.name,
            event.issue.number,
            body,
        )
        return body

    async def _post(self, owner: str, repo: str, number: int, body: str) -> None:
        try:
            await self.github_client.create_comment(owner, repo, number, body)
        except GitHubAPIError as e:
            raise CommentError(f"{owner}/{repo}#{number}", e.message) from e
