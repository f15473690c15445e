"""Pull request metadata."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class PullRequest:
    """The subset of pull request metadata a review needs."""

    number: int
    title: str
    url: str
    updated_at: str  # ISO 8601 timestamp; part of the diff cache key
    author: str | None = None
    head_ref: str | None = None
    base_ref: str | None = None
    body: str | None = None

    def matches(self, search: str) -> bool:
        """
        Check whether the title or body contains a search string, ignoring case.

        Args:
            search: Text to look for

        Returns:
            True if the search text was found
        """
        needle = search.strip().lower()
        if not needle:
            return True

        return needle in self.title.lower() or needle in (self.body or "").lower()

    @classmethod
    def from_github(cls, data: Dict[str, Any]) -> "PullRequest":
        """
        Create a pull request from a GitHub REST API "pulls" entry.

        Args:
            data: Decoded JSON object

        Returns:
            New PullRequest

        Raises:
            KeyError: If a required field is missing
        """
        user = data.get("user") or {}
        head = data.get("head") or {}
        base = data.get("base") or {}
        return cls(
            number=data["number"],
            title=data["title"],
            url=data.get("html_url", ""),
            updated_at=data["updated_at"],
            author=user.get("login"),
            head_ref=head.get("ref"),
            base_ref=base.get("ref"),
            body=data.get("body")
        )
