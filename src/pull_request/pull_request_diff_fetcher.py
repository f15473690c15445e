"""Cached access to pull request diffs."""

import logging

from content_cache import CacheNamespace, ContentCache, diff_cache_key

from pull_request.pull_request_provider import PullRequestProvider, validate_repo
from pull_request.pull_request_types import PullRequest


class PullRequestDiffFetcher:
    """
    Fetches pull request diffs through the content cache.

    The cache key includes the pull request's update time, so pushing to a pull request
    naturally produces a fresh fetch.
    """

    def __init__(self, provider: PullRequestProvider, cache: ContentCache) -> None:
        self._provider = provider
        self._cache = cache
        self._logger = logging.getLogger("PullRequestDiffFetcher")

    async def fetch_diff(self, repo: str, pull_request: PullRequest, force: bool = False) -> str:
        """
        Get the unified diff for a pull request.

        Args:
            repo: Repository in "owner/repo" form
            pull_request: Pull request to fetch
            force: If True, skip the cache read

        Returns:
            Unified diff text

        Raises:
            PullRequestError: If the diff cannot be fetched
        """
        validate_repo(repo)
        key = diff_cache_key(repo, pull_request.number, pull_request.updated_at)

        if not force:
            cached = self._cache.get(CacheNamespace.DIFF, key)
            if isinstance(cached, str) and cached.strip():
                self._logger.debug("Diff for %s#%d served from cache", repo, pull_request.number)
                return cached

        diff = await self._provider.get_diff(repo, pull_request.number)
        self._cache.put(CacheNamespace.DIFF, key, diff)
        return diff
