"""Coverage-and-uniqueness validation of engine results."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

from intent.intent_exceptions import IntentValidationError
from intent.intent_types import AnalysisResult, GroupCategory, GroupRisk, IntentGroup


@dataclass
class CoverageReport:
    """What is wrong, if anything, with how a set of buckets covers the expected hunk IDs."""

    missing: List[str] = field(default_factory=list)
    duplicated: List[str] = field(default_factory=list)
    unknown: List[str] = field(default_factory=list)

    def is_valid(self) -> bool:
        """Check whether every expected ID appears exactly once and nothing else appears."""
        return not (self.missing or self.duplicated or self.unknown)

    def describe(self) -> str:
        """Summarise the problems for an error message."""
        problems = []
        if self.missing:
            problems.append(f"missing {self.missing}")

        if self.duplicated:
            problems.append(f"duplicated {self.duplicated}")

        if self.unknown:
            problems.append(f"unknown {self.unknown}")

        return ", ".join(problems)

    def to_details(self) -> dict:
        """Convert to error details."""
        return {"missing": self.missing, "duplicated": self.duplicated, "unknown": self.unknown}


def check_coverage(buckets: Iterable[Sequence[str]], expected_ids: Iterable[str]) -> CoverageReport:
    """
    Check that the buckets together hold every expected ID exactly once.

    Args:
        buckets: Hunk ID lists, one per group (plus the unassigned list, if any)
        expected_ids: The full input hunk ID set

    Returns:
        Coverage report; is_valid() is True only if the multiset union of the buckets
        equals the expected set
    """
    expected = list(dict.fromkeys(expected_ids))
    expected_set = set(expected)
    counts: Counter = Counter()
    for bucket in buckets:
        counts.update(bucket)

    return CoverageReport(
        missing=[hunk_id for hunk_id in expected if counts[hunk_id] == 0],
        duplicated=sorted(hunk_id for hunk_id, count in counts.items() if count > 1 and hunk_id in expected_set),
        unknown=sorted(hunk_id for hunk_id in counts if hunk_id not in expected_set)
    )


def parse_category(value: object, group_id: str) -> GroupCategory:
    """
    Convert a raw category value.

    Raises:
        IntentValidationError: If the value is not a known category
    """
    try:
        return GroupCategory(value)

    except ValueError as e:
        raise IntentValidationError(
            f"Group '{group_id}' has unknown category {value!r}",
            error_details={"group_id": group_id, "category": value}
        ) from e


def parse_risk(value: object, group_id: str) -> GroupRisk:
    """
    Convert a raw risk value.

    Raises:
        IntentValidationError: If the value is not a known risk level
    """
    try:
        return GroupRisk(value)

    except ValueError as e:
        raise IntentValidationError(
            f"Group '{group_id}' has unknown risk {value!r}",
            error_details={"group_id": group_id, "risk": value}
        ) from e


def _validate_groups(groups: Sequence[IntentGroup]) -> None:
    """Check group IDs are unique and every group holds at least one hunk."""
    counts = Counter(group.id for group in groups)
    duplicate_ids = sorted(group_id for group_id, count in counts.items() if count > 1)
    if duplicate_ids:
        raise IntentValidationError(
            f"Duplicate group ids: {duplicate_ids}",
            error_details={"duplicate_group_ids": duplicate_ids}
        )

    empty = [group.id for group in groups if not group.hunk_ids]
    if empty:
        raise IntentValidationError(
            f"Groups without hunks: {empty}",
            error_details={"empty_group_ids": empty}
        )


def validate_analysis(result: AnalysisResult, hunk_ids: Iterable[str]) -> None:
    """
    Validate an analysis result against the hunk set it was produced for.

    Every input hunk ID must appear exactly once across all groups and the unassigned
    list.  Non-substantive IDs are advisory and outside the coverage check, but they must
    still name input hunks.

    Args:
        result: Decoded analysis result
        hunk_ids: IDs of every input hunk

    Raises:
        IntentValidationError: If the result is not a faithful partition of the input
    """
    expected = list(hunk_ids)
    _validate_groups(result.groups)

    buckets: List[Tuple[str, ...]] = [group.hunk_ids for group in result.groups]
    buckets.append(result.unassigned_hunk_ids)
    report = check_coverage(buckets, expected)
    if not report.is_valid():
        raise IntentValidationError(
            f"Analysis does not cover the input hunks exactly once: {report.describe()}",
            error_details=report.to_details()
        )

    expected_set = set(expected)
    unknown_non_substantive = sorted(set(result.non_substantive_hunk_ids) - expected_set)
    if unknown_non_substantive:
        raise IntentValidationError(
            f"Analysis marks unknown hunks as non-substantive: {unknown_non_substantive}",
            error_details={"unknown": unknown_non_substantive}
        )


def validate_refinement(sub_groups: Sequence[IntentGroup], target_hunk_ids: Iterable[str]) -> None:
    """
    Validate the sub-groups produced by refining one group.

    There is no unassigned list at this scope: every hunk of the refined group must land
    in exactly one sub-group.

    Args:
        sub_groups: Decoded sub-groups
        target_hunk_ids: Hunk IDs of the group that was refined

    Raises:
        IntentValidationError: If the sub-groups are not a faithful partition of the group
    """
    if not sub_groups:
        raise IntentValidationError("Refinement produced no sub-groups")

    _validate_groups(sub_groups)

    report = check_coverage([group.hunk_ids for group in sub_groups], target_hunk_ids)
    if not report.is_valid():
        raise IntentValidationError(
            f"Sub-groups do not cover the group's hunks exactly once: {report.describe()}",
            error_details=report.to_details()
        )
