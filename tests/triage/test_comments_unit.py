"""Unit tests for acknowledgement and greeting comments."""

import json

import pytest

from src.triage.comments import (
    CommentResponder,
    build_acknowledgement,
    build_greeting,
)
from src.triage.errors import CommentError
from src.triage.github.client import GitHubAPIError
from src.triage.models import EntityKind, TriageableEntity
from src.triage.webhook import classify
from tests.triage.helpers import FakeGitHubClient, issue_comment_payload, run_async


def _entity(kind: EntityKind = EntityKind.ISSUE) -> TriageableEntity:
    return TriageableEntity(kind=kind, owner="owner", repo="repo", number=5)


def _comment_event(**kwargs):
    return classify("issue_comment", json.dumps(issue_comment_payload(**kwargs)))


class TestBuilders:

    def test_issue_acknowledgement(self):
        assert build_acknowledgement(_entity(), "opened") == "Issue event: opened"

    def test_pull_request_acknowledgement(self):
        entity = _entity(EntityKind.PULL_REQUEST)
        assert build_acknowledgement(entity, "synchronize") == "PR event: synchronize"

    def test_greeting(self):
        assert build_greeting("octocat") == "Hello @octocat"


class TestAcknowledge:

    def test_disabled_by_default(self, fake_github: FakeGitHubClient):
        responder = CommentResponder(fake_github)

        assert run_async(responder.acknowledge(_entity(), "opened")) is None
        assert fake_github.calls == []

    def test_posts_when_enabled(self, fake_github):
        responder = CommentResponder(fake_github, acknowledge_events=True)

        run_async(responder.acknowledge(_entity(), "opened"))

        assert fake_github.calls_to("create_comment") == [
            ("owner", "repo", 5, "Issue event: opened")
        ]

    def test_failure_raises_comment_error(self, fake_github):
        fake_github.fail_on["create_comment"] = GitHubAPIError("nope", status_code=403)
        responder = CommentResponder(fake_github, acknowledge_events=True)

        with pytest.raises(CommentError) as exc_info:
            run_async(responder.acknowledge(_entity(), "opened"))
        assert exc_info.value.entity_id == "owner/repo#5"


class TestReplyToGreeting:

    def test_replies_to_trigger(self, fake_github):
        responder = CommentResponder(fake_github, greeting_enabled=True)

        body = run_async(responder.reply_to_greeting(_comment_event(sender="octocat")))

        assert body == "Hello @octocat"
        assert fake_github.calls_to("create_comment") == [
            ("owner", "repo", 3, "Hello @octocat")
        ]

    def test_trigger_may_be_embedded(self, fake_github):
        responder = CommentResponder(fake_github, greeting_enabled=True)

        run_async(
            responder.reply_to_greeting(_comment_event(body="Well. Hello there. Hi."))
        )

        assert len(fake_github.calls_to("create_comment")) == 1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"body": "General Kenobi"},
            {"sender": "triage-bot[bot]"},
            {"sender_type": "Bot"},
            {"action": "edited"},
        ],
    )
    def test_no_reply(self, fake_github, kwargs):
        responder = CommentResponder(fake_github, greeting_enabled=True)

        assert run_async(responder.reply_to_greeting(_comment_event(**kwargs))) is None
        assert fake_github.calls == []

    def test_disabled(self, fake_github):
        responder = CommentResponder(fake_github)

        assert run_async(responder.reply_to_greeting(_comment_event())) is None
        assert fake_github.calls == []

    def test_custom_trigger(self, fake_github):
        responder = CommentResponder(
            fake_github, greeting_enabled=True, greeting_trigger="/ping"
        )

        run_async(responder.reply_to_greeting(_comment_event(body="/ping")))

        assert len(fake_github.calls_to("create_comment")) == 1
