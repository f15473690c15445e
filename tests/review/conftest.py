"""Shared fixtures for review tests."""

import asyncio
from typing import Dict

import pytest

from intent.intent_analyzer import IntentAnalyzer
from intent.intent_hunk_splitter import IntentHunkSplitter
from intent.intent_refiner import IntentRefiner
from pull_request.pull_request_types import PullRequest
from review.review_session import ReviewSession


DIFF_A = """diff --git a/a.py b/a.py
--- a/a.py
+++ b/a.py
@@ -1,2 +1,2 @@
-x = 1
+x = 2
 y = 0
@@ -10,1 +10,2 @@
 def f():
+    pass
"""

DIFF_B = """diff --git a/b.py b/b.py
--- a/b.py
+++ b/b.py
@@ -1,1 +1,1 @@
-print("old")
+print("new")
"""


class GatedFetcher:
    """Diff fetcher whose fetches each wait for a per-PR gate to open."""

    def __init__(self, diffs: Dict[int, object]) -> None:
        self.diffs = diffs
        self._gates: Dict[int, asyncio.Event] = {}

    def gate(self, number: int) -> asyncio.Event:
        """Get the gate for a pull request number."""
        return self._gates.setdefault(number, asyncio.Event())

    async def fetch_diff(self, repo, pull_request, force=False):
        await self.gate(pull_request.number).wait()
        result = self.diffs[pull_request.number]
        if isinstance(result, Exception):
            raise result

        return result


def make_pull(number: int) -> PullRequest:
    """Build a pull request."""
    return PullRequest(number=number, title=f"PR {number}", url="u", updated_at="2025-01-01T00:00:00Z", body="Body")


@pytest.fixture
def fetcher():
    """A gated fetcher serving DIFF_A as PR 1 and DIFF_B as PR 2."""
    return GatedFetcher({1: DIFF_A, 2: DIFF_B})


@pytest.fixture
def pulls():
    """Pull requests 1 and 2."""
    return make_pull(1), make_pull(2)


@pytest.fixture
def session(fetcher, engine, cache):
    """A review session over the gated fetcher and the fake engine."""
    return ReviewSession(
        fetcher=fetcher,
        analyzer=IntentAnalyzer(engine, cache),
        refiner=IntentRefiner(engine, cache),
        splitter=IntentHunkSplitter(engine, cache, threshold=2),
    )
