"""Base class for pull request providers."""

from abc import ABC, abstractmethod
import re
from typing import List

from pull_request.pull_request_exceptions import PullRequestError
from pull_request.pull_request_types import PullRequest


_REPO_PART_RE = re.compile(r'^\S+$')


def validate_repo(repo: str) -> None:
    """
    Check that a repository name has the form "owner/repo".

    Args:
        repo: Repository name

    Raises:
        PullRequestError: If the name is not two non-empty parts without whitespace
    """
    parts = repo.split('/')
    if len(parts) != 2 or not all(_REPO_PART_RE.match(part) for part in parts):
        raise PullRequestError(f"Invalid repo format: '{repo}'. Expected 'owner/repo'.")


class PullRequestProvider(ABC):
    """Abstract base class for services that host pull requests."""

    @abstractmethod
    async def list_pull_requests(
        self,
        repo: str,
        limit: int = 30,
        state: str = "open",
        search: str | None = None
    ) -> List[PullRequest]:
        """
        List pull requests, most recently updated first.

        Args:
            repo: Repository in "owner/repo" form
            limit: Maximum number of pull requests to return
            state: "open", "closed", "merged" or "all"
            search: Optional text the title or body must contain

        Returns:
            Matching pull requests

        Raises:
            PullRequestError: If the repository name is invalid or the request fails
        """

    @abstractmethod
    async def get_diff(self, repo: str, number: int) -> str:
        """
        Fetch the unified diff of a pull request.

        Args:
            repo: Repository in "owner/repo" form
            number: Pull request number

        Returns:
            Unified diff text, never empty

        Raises:
            PullRequestError: If the request fails or the diff is empty
        """

    @abstractmethod
    async def get_pull_request(self, repo: str, number: int) -> PullRequest:
        """
        Fetch one pull request's metadata.

        Args:
            repo: Repository in "owner/repo" form
            number: Pull request number

        Returns:
            The pull request

        Raises:
            PullRequestError: If the request fails
        """
