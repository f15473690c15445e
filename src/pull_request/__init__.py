"""Pull request listing and diff retrieval."""

from pull_request.github_pull_request_provider import GitHubPullRequestProvider
from pull_request.pull_request_diff_fetcher import PullRequestDiffFetcher
from pull_request.pull_request_exceptions import PullRequestError
from pull_request.pull_request_provider import PullRequestProvider, validate_repo
from pull_request.pull_request_types import PullRequest

__all__ = [
    'GitHubPullRequestProvider',
    'PullRequest',
    'PullRequestDiffFetcher',
    'PullRequestError',
    'PullRequestProvider',
    'validate_repo',
]
