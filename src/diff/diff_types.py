"""Shared dataclasses for diff operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class DiffLineKind(str, Enum):
    """Kind of a single line inside a hunk body."""
    ADD = "add"
    REMOVE = "remove"
    CONTEXT = "context"


@dataclass(frozen=True)
class DiffLine:
    """Represents a single line in a diff hunk."""

    kind: DiffLineKind
    old_line_number: int | None  # Present for remove and context lines
    new_line_number: int | None  # Present for add and context lines
    text: str  # The actual line content (without the prefix character)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the line to its JSON form.

        Returns:
            Dictionary using camelCase keys
        """
        return {
            "kind": self.kind.value,
            "oldLine": self.old_line_number,
            "newLine": self.new_line_number,
            "text": self.text
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiffLine":
        """
        Create a line from its JSON form.

        Args:
            data: Dictionary as produced by to_dict()

        Returns:
            New DiffLine

        Raises:
            ValueError: If the line kind is not recognised
            KeyError: If a required field is missing
        """
        return cls(
            kind=DiffLineKind(data["kind"]),
            old_line_number=data.get("oldLine"),
            new_line_number=data.get("newLine"),
            text=data["text"]
        )


@dataclass(frozen=True)
class Hunk:
    """Represents a single addressable hunk from a unified diff."""

    id: str  # "H<n>", or "H<n>.<m>" for a hunk split out of "H<n>"
    file_path: str
    header: str  # The original "@@ -a,b +c,d @@" text
    old_start: int  # Starting line number in original file (1-indexed)
    old_line_count: int  # Number of lines in original file
    new_start: int  # Starting line number in new file (1-indexed)
    new_line_count: int  # Number of lines in new file
    lines: Tuple[DiffLine, ...]

    def count_old_lines(self) -> int:
        """Count the body lines that belong to the original file."""
        return sum(1 for line in self.lines if line.kind != DiffLineKind.ADD)

    def count_new_lines(self) -> int:
        """Count the body lines that belong to the new file."""
        return sum(1 for line in self.lines if line.kind != DiffLineKind.REMOVE)

    def is_consistent(self) -> bool:
        """
        Check the body against the header counts.

        Returns:
            True if context+remove lines match old_line_count and context+add lines
            match new_line_count
        """
        return (
            self.count_old_lines() == self.old_line_count and
            self.count_new_lines() == self.new_line_count
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the hunk to the JSON form handed to the intent engine.

        Returns:
            Dictionary using camelCase keys
        """
        return {
            "id": self.id,
            "filePath": self.file_path,
            "header": self.header,
            "oldStart": self.old_start,
            "oldLines": self.old_line_count,
            "newStart": self.new_start,
            "newLines": self.new_line_count,
            "lines": [line.to_dict() for line in self.lines]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Hunk":
        """
        Create a hunk from its JSON form.

        Args:
            data: Dictionary as produced by to_dict()

        Returns:
            New Hunk
        """
        return cls(
            id=data["id"],
            file_path=data["filePath"],
            header=data["header"],
            old_start=data["oldStart"],
            old_line_count=data["oldLines"],
            new_start=data["newStart"],
            new_line_count=data["newLines"],
            lines=tuple(DiffLine.from_dict(line) for line in data["lines"])
        )
