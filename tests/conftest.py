"""Shared fixtures for recap tests."""
from __future__ import annotations

import os
import time
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from scripts.recap import PullRequest, SummaryResult

REPO = "acme/app"
NOW = datetime(2026, 10, 16, 12, 0, tzinfo=UTC)


class FakeGitHub:
    """In-memory stand-in for GitHubClient."""

    def __init__(
        self,
        items: list[dict],
        pulls: dict[int, dict],
        users: dict[str, dict] | None = None,
        comments: dict[int, list[dict]] | None = None,
    ) -> None:
        self.items = items
        self.pulls = pulls
        self.users = users or {}
        self.comments = comments or {}
        self.queries: list[str] = []
        self.user_calls: list[str] = []

    def search_issues(self, query: str) -> list[dict]:
        self.queries.append(query)
        return self.items

    def pull_request(self, repo: str, number: int) -> dict:
        assert repo == REPO
        return self.pulls[number]

    def user(self, login: str) -> dict:
        self.user_calls.append(login)
        return self.users[login]

    def issue_comments(self, repo: str, number: int) -> list[dict]:
        assert repo == REPO
        return self.comments.get(number, [])


def search_item(
    number: int,
    title: str,
    login: str = "alice",
    user_type: str = "User",
    closed_at: str | None = None,
) -> dict:
    return {
        "number": number,
        "title": title,
        "user": {"login": login, "type": user_type},
        "html_url": f"https://github.com/{REPO}/pull/{number}",
        "closed_at": closed_at,
    }


def make_pr(
    number: int = 1,
    title: str = "[WEB-1] Fix login",
    summary: str | None = None,
    merged_at: datetime | None = NOW,
    **fields: object,
) -> PullRequest:
    pr = PullRequest(
        number=number,
        title=title,
        author=str(fields.pop("author", "alice")),
        author_name=str(fields.pop("author_name", "Alice")),
        url=f"https://github.com/{REPO}/pull/{number}",
        merged_at=merged_at,
        **fields,
    )
    if summary is not None:
        summarizer = MagicMock()
        summarizer.summarize.return_value = SummaryResult(text=summary)
        pr.generate_summary(summarizer)
    return pr


def completion(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture(autouse=True)
def local_timezone():
    """Pin the process timezone to UTC; tests may switch it through the returned setter."""
    original = os.environ.get("TZ")

    def set_timezone(name: str) -> None:
        os.environ["TZ"] = name
        time.tzset()

    set_timezone("UTC")
    yield set_timezone
    if original is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = original
    time.tzset()
