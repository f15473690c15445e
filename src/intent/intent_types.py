"""Shared dataclasses for intent analysis."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple

from diff import Hunk


ANALYSIS_VERSION = 1


class GroupCategory(str, Enum):
    """What kind of change an intent group makes."""
    SCHEMA = "schema"
    LOGIC = "logic"
    API = "api"
    UI = "ui"
    TEST = "test"
    CONFIG = "config"
    DOCS = "docs"
    REFACTOR = "refactor"
    OTHER = "other"


class GroupRisk(str, Enum):
    """How much review attention an intent group needs."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class IntentGroup:
    """A reviewer-facing cluster of hunks sharing one change purpose."""

    id: str
    title: str
    category: GroupCategory
    risk: GroupRisk
    rationale: str
    hunk_ids: Tuple[str, ...]
    reviewer_checklist: Tuple[str, ...] = ()
    suggested_tests: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase JSON form used by the engine and the cache."""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "risk": self.risk.value,
            "rationale": self.rationale,
            "hunkIds": list(self.hunk_ids),
            "reviewerChecklist": list(self.reviewer_checklist),
            "suggestedTests": list(self.suggested_tests)
        }


@dataclass(frozen=True)
class AnalysisResult:
    """The full intent analysis of one hunk set."""

    version: int
    overall_summary: str
    groups: Tuple[IntentGroup, ...]
    unassigned_hunk_ids: Tuple[str, ...]
    non_substantive_hunk_ids: Tuple[str, ...]
    questions: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase JSON form used by the engine and the cache."""
        return {
            "version": self.version,
            "overallSummary": self.overall_summary,
            "groups": [group.to_dict() for group in self.groups],
            "unassignedHunkIds": list(self.unassigned_hunk_ids),
            "nonSubstantiveHunkIds": list(self.non_substantive_hunk_ids),
            "questions": list(self.questions)
        }

    def find_group(self, group_id: str) -> IntentGroup | None:
        """Find a group by ID."""
        for group in self.groups:
            if group.id == group_id:
                return group

        return None

    def with_refined_group(self, group_id: str, sub_groups: Sequence[IntentGroup]) -> "AnalysisResult":
        """
        Replace one group with the sub-groups it was refined into.

        The sub-groups take the refined group's position.  Unassigned and non-substantive
        hunk IDs are carried over unchanged since refinement never touches hunks outside
        the refined group.

        Args:
            group_id: ID of the group that was refined
            sub_groups: Its replacement groups

        Returns:
            New analysis result

        Raises:
            KeyError: If no group has the given ID
        """
        new_groups: List[IntentGroup] = []
        found = False
        for group in self.groups:
            if group.id == group_id:
                new_groups.extend(sub_groups)
                found = True
                continue

            new_groups.append(group)

        if not found:
            raise KeyError(group_id)

        return replace(self, groups=tuple(new_groups))


@dataclass(frozen=True)
class RefineTarget:
    """The parts of an intent group that refinement needs."""

    id: str
    title: str
    hunk_ids: Tuple[str, ...]


@dataclass(frozen=True)
class SplitRange:
    """One engine-proposed piece of a large hunk."""

    id: str
    title: str
    start_line_index: int  # 0-indexed into the hunk's lines
    end_line_index: int  # Exclusive


@dataclass(frozen=True)
class SplitPlan:
    """How the engine proposes to split one large hunk."""

    original_hunk_id: str
    sub_hunks: Tuple[SplitRange, ...]


@dataclass(frozen=True)
class AnalysisResponse:
    """Result of an analysis run."""

    result: AnalysisResult
    engine_log: str
    from_cache: bool


@dataclass(frozen=True)
class RefineResponse:
    """Result of refining one group."""

    sub_groups: Tuple[IntentGroup, ...]
    engine_log: str
    from_cache: bool


@dataclass(frozen=True)
class SplitResponse:
    """Result of splitting large hunks."""

    hunks: Tuple[Hunk, ...]
    engine_log: str
    from_cache: bool
