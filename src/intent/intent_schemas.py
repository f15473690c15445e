"""Output schemas handed to the classification engine."""

from typing import Any, Dict

from intent.intent_types import ANALYSIS_VERSION, GroupCategory, GroupRisk


_STRING_ARRAY: Dict[str, Any] = {"type": "array", "items": {"type": "string"}}

_GROUP_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "title": {"type": "string"},
        "category": {"type": "string", "enum": [category.value for category in GroupCategory]},
        "rationale": {"type": "string"},
        "risk": {"type": "string", "enum": [risk.value for risk in GroupRisk]},
        "hunkIds": _STRING_ARRAY,
        "reviewerChecklist": _STRING_ARRAY,
        "suggestedTests": _STRING_ARRAY
    },
    "required": [
        "id", "title", "category", "rationale", "risk", "hunkIds", "reviewerChecklist", "suggestedTests"
    ],
    "additionalProperties": False
}

ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "version": {"type": "integer", "enum": [ANALYSIS_VERSION]},
        "overallSummary": {"type": "string"},
        "groups": {"type": "array", "items": _GROUP_SCHEMA},
        "unassignedHunkIds": _STRING_ARRAY,
        "nonSubstantiveHunkIds": _STRING_ARRAY,
        "questions": _STRING_ARRAY
    },
    "required": [
        "version", "overallSummary", "groups", "unassignedHunkIds", "nonSubstantiveHunkIds", "questions"
    ],
    "additionalProperties": False
}

REFINE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "groups": {"type": "array", "items": _GROUP_SCHEMA}
    },
    "required": ["groups"],
    "additionalProperties": False
}

SPLIT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "splits": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "originalHunkId": {"type": "string"},
                    "subHunks": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "id": {"type": "string"},
                                "title": {"type": "string"},
                                "startLineIndex": {"type": "integer"},
                                "endLineIndex": {"type": "integer"}
                            },
                            "required": ["id", "title", "startLineIndex", "endLineIndex"],
                            "additionalProperties": False
                        }
                    }
                },
                "required": ["originalHunkId", "subHunks"],
                "additionalProperties": False
            }
        }
    },
    "required": ["splits"],
    "additionalProperties": False
}
