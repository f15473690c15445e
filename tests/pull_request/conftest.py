"""Shared fixtures for pull request tests."""

from typing import List

import pytest

from pull_request.pull_request_exceptions import PullRequestError
from pull_request.pull_request_provider import PullRequestProvider
from pull_request.pull_request_types import PullRequest


class FakeProvider(PullRequestProvider):
    """Provider serving fixed diffs and counting diff fetches."""

    def __init__(self) -> None:
        self.diffs = {}
        self.diff_calls: List[int] = []

    async def list_pull_requests(self, repo, limit=30, state="open", search=None):
        return []

    async def get_pull_request(self, repo, number):
        raise PullRequestError(f"No pull request {number}")

    async def get_diff(self, repo, number):
        self.diff_calls.append(number)
        if number not in self.diffs:
            raise PullRequestError("Diff is empty. The PR may have no changes.")

        return self.diffs[number]


@pytest.fixture
def provider():
    """A fake provider with no diffs."""
    return FakeProvider()


@pytest.fixture
def pull():
    """Pull request 42, updated once."""
    return PullRequest(number=42, title="Add login", url="https://example.com/42", updated_at="2025-03-01T10:00:00Z")
