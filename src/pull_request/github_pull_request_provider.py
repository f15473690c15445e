"""Pull request provider for the GitHub REST API."""

import asyncio
import json
import logging
import os
import ssl
import sys
from typing import Any, Dict, List

import aiohttp
from aiohttp import ClientConnectorError, ClientError
import certifi

from pull_request.pull_request_exceptions import PullRequestError
from pull_request.pull_request_provider import PullRequestProvider, validate_repo
from pull_request.pull_request_types import PullRequest


class GitHubPullRequestProvider(PullRequestProvider):
    """Lists pull requests and fetches their diffs from GitHub."""

    MAX_PAGE_SIZE = 100
    VALID_STATES = ("open", "closed", "merged", "all")

    @classmethod
    def get_default_url(cls) -> str:
        """
        Get the default API URL.

        Returns:
            The public GitHub API URL
        """
        return "https://api.github.com"

    def __init__(self, token: str | None = None, api_url: str | None = None) -> None:
        """
        Initialize the provider.

        Args:
            token: Optional access token; public repositories work without one
            api_url: Optional API URL, e.g. for GitHub Enterprise
        """
        self._token = token
        self._api_url = (api_url or self.get_default_url()).rstrip('/')
        self._logger = logging.getLogger("GitHubPullRequestProvider")

        if getattr(sys, "frozen", False) and hasattr(sys, '_MEIPASS'):
            cert_path = os.path.join(sys._MEIPASS, "certifi", "cacert.pem")

        else:
            cert_path = certifi.where()

        self._ssl_context = ssl.create_default_context(cafile=cert_path)

    def _headers(self, accept: str) -> Dict[str, str]:
        """Build request headers."""
        headers = {
            "Accept": accept,
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "prlens"
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        return headers

    async def _get(self, path: str, accept: str, params: Dict[str, Any] | None = None) -> str:
        """
        Issue a GET request and return the response body.

        Raises:
            PullRequestError: On a network failure or a non-200 response
        """
        url = f"{self._api_url}{path}"
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=20, sock_read=60)

        try:
            async with aiohttp.ClientSession(connector=aiohttp.TCPConnector(ssl=self._ssl_context)) as session:
                async with session.get(url, headers=self._headers(accept), params=params, timeout=timeout) as response:
                    body = await response.text(errors='replace')
                    if response.status != 200:
                        message = body
                        try:
                            message = json.loads(body).get("message", body)

                        except (json.JSONDecodeError, AttributeError):
                            pass

                        self._logger.debug("GitHub API error: %d: %s", response.status, message)
                        if response.status in (401, 403):
                            raise PullRequestError(
                                f"GitHub rejected the request ({response.status}): {message}. "
                                "Check the GitHub token.",
                                error_details={"status": response.status, "url": url}
                            )

                        raise PullRequestError(
                            f"GitHub API error {response.status}: {message}",
                            error_details={"status": response.status, "url": url}
                        )

                    return body

        except (ClientConnectorError, ClientError, asyncio.TimeoutError) as e:
            self._logger.warning("Network error requesting %s: %s", url, str(e))
            raise PullRequestError(f"Network error: {str(e)}") from e

    async def list_pull_requests(
        self,
        repo: str,
        limit: int = 30,
        state: str = "open",
        search: str | None = None
    ) -> List[PullRequest]:
        validate_repo(repo)
        if state not in self.VALID_STATES:
            raise PullRequestError(f"Invalid state: '{state}'. Expected one of {', '.join(self.VALID_STATES)}.")

        if limit <= 0:
            return []

        # "merged" is not an API state, merged pull requests are closed ones with a merge time
        api_state = "closed" if state == "merged" else state

        results: List[PullRequest] = []
        page = 1
        while len(results) < limit:
            params = {
                "state": api_state,
                "sort": "updated",
                "direction": "desc",
                "per_page": self.MAX_PAGE_SIZE,
                "page": page
            }
            body = await self._get(f"/repos/{repo}/pulls", "application/vnd.github+json", params)

            try:
                entries = json.loads(body)
                if not isinstance(entries, list):
                    raise ValueError("expected a JSON array")

                pulls = [(entry, PullRequest.from_github(entry)) for entry in entries]

            except (ValueError, KeyError, TypeError, AttributeError) as e:
                raise PullRequestError(f"Failed to parse GitHub response: {str(e)}") from e

            for entry, pull in pulls:
                if state == "merged" and not entry.get("merged_at"):
                    continue

                if search and not pull.matches(search):
                    continue

                results.append(pull)

            if len(entries) < self.MAX_PAGE_SIZE:
                break

            page += 1

        self._logger.info("Listed %d pull requests for %s", min(len(results), limit), repo)
        return results[:limit]

    async def get_pull_request(self, repo: str, number: int) -> PullRequest:
        validate_repo(repo)
        body = await self._get(f"/repos/{repo}/pulls/{number}", "application/vnd.github+json")

        try:
            return PullRequest.from_github(json.loads(body))

        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise PullRequestError(f"Failed to parse GitHub response: {str(e)}") from e

    async def get_diff(self, repo: str, number: int) -> str:
        validate_repo(repo)
        diff = await self._get(f"/repos/{repo}/pulls/{number}", "application/vnd.github.v3.diff")
        if not diff.strip():
            raise PullRequestError(
                "Diff is empty. The PR may have no changes.",
                error_details={"repo": repo, "number": number}
            )

        return diff
