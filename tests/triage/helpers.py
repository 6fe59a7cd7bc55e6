"""Test helpers for the triage service.

FakeGitHubClient is an in-memory stand-in for GitHubClient that records
every call, so tests can assert on the exact remote traffic a delivery
produced.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from src.triage.github.client import GitHubAPIError, MilestonePage
from src.triage.models import MilestoneRef


def run_async(coro):
    return asyncio.run(coro)


class FakeGitHubClient:
    """Records calls and serves milestones from memory.

    Attributes:
        milestones: Milestones per "owner/repo", in listing order.
        page_size: Entries per listed page.
        calls: (operation, args) tuples in call order.
        fail_on: Operation names that raise GitHubAPIError.
    """

    def __init__(self, page_size: int = 2):
        self.milestones: Dict[str, List[MilestoneRef]] = {}
        self.page_size = page_size
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.fail_on: Dict[str, GitHubAPIError] = {}
        self._next_number = 1

    def seed(self, owner: str, repo: str, *titles: str) -> List[MilestoneRef]:
        refs = [self._new(owner, repo, title) for title in titles]
        return refs

    def _new(self, owner: str, repo: str, title: str) -> MilestoneRef:
        ref = MilestoneRef(number=self._next_number, title=title)
        self._next_number += 1
        self.milestones.setdefault(f"{owner}/{repo}", []).append(ref)
        return ref

    def _maybe_fail(self, operation: str) -> None:
        error = self.fail_on.get(operation)
        if error is not None:
            raise error

    def calls_to(self, operation: str) -> List[Tuple[Any, ...]]:
        return [args for name, args in self.calls if name == operation]

    async def list_milestones(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: int = 100,
        state: str = "all",
    ) -> MilestonePage:
        self.calls.append(("list_milestones", (owner, repo, page)))
        self._maybe_fail("list_milestones")
        entries = self.milestones.get(f"{owner}/{repo}", [])
        start = (page - 1) * self.page_size
        chunk = entries[start:start + self.page_size]
        has_more = start + self.page_size < len(entries)
        return MilestonePage(
            milestones=list(chunk),
            page=page,
            next_page=page + 1 if has_more else None,
        )

    async def create_milestone(self, owner: str, repo: str, title: str) -> MilestoneRef:
        self.calls.append(("create_milestone", (owner, repo, title)))
        self._maybe_fail("create_milestone")
        return self._new(owner, repo, title)

    async def set_issue_milestone(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        milestone_number: int,
    ) -> Dict[str, Any]:
        self.calls.append(
            ("set_issue_milestone", (owner, repo, issue_number, milestone_number))
        )
        self._maybe_fail("set_issue_milestone")
        return {"number": issue_number, "milestone": {"number": milestone_number}}

    async def create_comment(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        body: str,
    ) -> Dict[str, Any]:
        self.calls.append(("create_comment", (owner, repo, issue_number, body)))
        self._maybe_fail("create_comment")
        return {"id": len(self.calls), "body": body}

    async def close(self) -> None:
        pass


def issues_payload(
    number: int = 42,
    state: str = "open",
    milestone: Optional[Dict[str, Any]] = None,
    owner: str = "owner",
    repo: str = "repo",
    action: str = "opened",
) -> Dict[str, Any]:
    return {
        "action": action,
        "issue": {
            "number": number,
            "title": "Something is broken",
            "state": state,
            "milestone": milestone,
            "user": {"login": "reporter"},
            "labels": [{"name": "bug"}],
        },
        "repository": {
            "name": repo,
            "full_name": f"{owner}/{repo}",
            "owner": {"login": owner},
        },
        "sender": {"login": "reporter", "type": "User"},
    }


def pull_request_payload(
    number: int = 7,
    state: str = "open",
    milestone: Optional[Dict[str, Any]] = None,
    owner: str = "owner",
    repo: str = "repo",
    action: str = "opened",
) -> Dict[str, Any]:
    return {
        "action": action,
        "number": number,
        "pull_request": {
            "number": number,
            "state": state,
            "milestone": milestone,
            "user": {"login": "contributor"},
        },
        "repository": {
            "name": repo,
            "owner": {"login": owner},
        },
        "sender": {"login": "contributor", "type": "User"},
    }


def issue_comment_payload(
    body: str = "Hello there.",
    sender: str = "commenter",
    sender_type: str = "User",
    number: int = 3,
    action: str = "created",
) -> Dict[str, Any]:
    return {
        "action": action,
        "issue": {"number": number, "state": "open", "milestone": None},
        "comment": {"id": 99, "body": body, "user": {"login": sender}},
        "repository": {"name": "repo", "owner": {"login": "owner"}},
        "sender": {"login": sender, "type": sender_type},
    }
