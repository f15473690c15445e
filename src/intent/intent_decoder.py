"""Decoding of engine output into intent types."""

import json
from typing import Any, Dict, List, Tuple

from intent.intent_exceptions import SchemaError
from intent.intent_types import (
    ANALYSIS_VERSION, AnalysisResult, IntentGroup, SplitPlan, SplitRange
)
from intent.intent_validator import parse_category, parse_risk


def load_json_object(text: str | None, label: str) -> Dict[str, Any]:
    """
    Parse engine output text that must hold a single JSON object.

    Args:
        text: Raw output text, or None if the engine wrote nothing
        label: Name of the output for error messages

    Returns:
        The decoded object

    Raises:
        SchemaError: If there is no output or it is not a JSON object
    """
    if text is None:
        raise SchemaError(f"The engine did not produce {label} output")

    try:
        data = json.loads(text)

    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON in {label} output: {str(e)}") from e

    if not isinstance(data, dict):
        raise SchemaError(f"Root element of {label} output must be an object")

    return data


def _require(data: Dict[str, Any], key: str, expected_type: type, where: str) -> Any:
    """Fetch a required field and check its JSON type."""
    if key not in data:
        raise SchemaError(f"Missing required field '{key}' in {where}")

    value = data[key]

    # bool is an int subclass, but JSON true/false is never a valid integer here
    if not isinstance(value, expected_type) or (expected_type is int and isinstance(value, bool)):
        raise SchemaError(f"Field '{key}' in {where} must be {expected_type.__name__}")

    return value


def _require_strings(data: Dict[str, Any], key: str, where: str) -> Tuple[str, ...]:
    """Fetch a required array of strings."""
    values = _require(data, key, list, where)
    if not all(isinstance(value, str) for value in values):
        raise SchemaError(f"Field '{key}' in {where} must contain only strings")

    return tuple(values)


def decode_group(data: Any) -> IntentGroup:
    """
    Decode one intent group.

    Raises:
        SchemaError: If the group does not have the expected shape
        IntentValidationError: If its category or risk is outside the enumeration
    """
    if not isinstance(data, dict):
        raise SchemaError("Group must be an object")

    group_id = _require(data, "id", str, "group")
    where = f"group '{group_id}'"
    title = _require(data, "title", str, where)
    rationale = _require(data, "rationale", str, where)
    category = _require(data, "category", str, where)
    risk = _require(data, "risk", str, where)

    return IntentGroup(
        id=group_id,
        title=title,
        category=parse_category(category, group_id),
        risk=parse_risk(risk, group_id),
        rationale=rationale,
        hunk_ids=_require_strings(data, "hunkIds", where),
        reviewer_checklist=_require_strings(data, "reviewerChecklist", where),
        suggested_tests=_require_strings(data, "suggestedTests", where)
    )


def decode_analysis(data: Dict[str, Any]) -> AnalysisResult:
    """
    Decode a full analysis result.

    Args:
        data: Decoded JSON object

    Returns:
        The analysis result; coverage has not been checked yet

    Raises:
        SchemaError: If the object does not have the analysis shape
        IntentValidationError: If a category or risk is outside the enumeration
    """
    version = _require(data, "version", int, "analysis")
    if version != ANALYSIS_VERSION:
        raise SchemaError(f"Unsupported analysis version: {version}")

    groups = _require(data, "groups", list, "analysis")
    return AnalysisResult(
        version=version,
        overall_summary=_require(data, "overallSummary", str, "analysis"),
        groups=tuple(decode_group(group) for group in groups),
        unassigned_hunk_ids=_require_strings(data, "unassignedHunkIds", "analysis"),
        non_substantive_hunk_ids=_require_strings(data, "nonSubstantiveHunkIds", "analysis"),
        questions=_require_strings(data, "questions", "analysis")
    )


def decode_groups(data: Dict[str, Any]) -> Tuple[IntentGroup, ...]:
    """
    Decode a refinement result, which carries only groups.

    Raises:
        SchemaError: If the object does not have the refinement shape
        IntentValidationError: If a category or risk is outside the enumeration
    """
    groups = _require(data, "groups", list, "refinement")
    return tuple(decode_group(group) for group in groups)


def decode_split_plans(data: Dict[str, Any]) -> List[SplitPlan]:
    """
    Decode a hunk split result.

    Raises:
        SchemaError: If the object does not have the split shape
    """
    plans = []
    for entry in _require(data, "splits", list, "split result"):
        if not isinstance(entry, dict):
            raise SchemaError("Split entry must be an object")

        original_id = _require(entry, "originalHunkId", str, "split entry")
        where = f"split of '{original_id}'"
        ranges = []
        for sub in _require(entry, "subHunks", list, where):
            if not isinstance(sub, dict):
                raise SchemaError(f"Sub-hunk in {where} must be an object")

            ranges.append(SplitRange(
                id=_require(sub, "id", str, where),
                title=_require(sub, "title", str, where),
                start_line_index=_require(sub, "startLineIndex", int, where),
                end_line_index=_require(sub, "endLineIndex", int, where)
            ))

        plans.append(SplitPlan(original_hunk_id=original_id, sub_hunks=tuple(ranges)))

    return plans
