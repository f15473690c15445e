"""Prompts for the classification engine."""

MAX_CONTEXT_CHARS = 2000


def lang_suffix(lang: str | None) -> str:
    """
    Build the instruction that selects the response language.

    Args:
        lang: Language name or code, e.g. "Japanese"; None or blank for no instruction

    Returns:
        " Respond in <lang>." or an empty string
    """
    if lang is None or not lang.strip():
        return ""

    return f" Respond in {lang.strip()}."


def build_analysis_prompt(hunk_count: int, context: str | None, lang: str | None) -> str:
    """
    Build the prompt for a full intent analysis.

    Args:
        hunk_count: Number of hunks in hunks.json
        context: Optional free text such as the PR description
        lang: Optional response language

    Returns:
        Prompt text
    """
    pr_context = ""
    if context is not None and context.strip():
        pr_context = f" The PR description is: \"{context[:MAX_CONTEXT_CHARS]}\"."

    return (
        f"Read hunks.json which contains {hunk_count} hunks and group ALL of them by change intent "
        f"for PR review.{pr_context} "
        "Every single hunk must be assigned to exactly one group, or listed in unassignedHunkIds. "
        "No hunk may appear more than once. "
        "Use only existing hunk ids. Output must match the schema. Do not invent ids. "
        "Order the groups array by logical processing flow "
        "(e.g. data model / schema first, then business logic, then API / controller, then UI, "
        "then tests, then config). "
        "Give each group a clear, descriptive title that serves as a section heading for reviewers, "
        "and a category and risk level. "
        "For overallSummary, write a concise reviewer-facing summary of WHAT the PR changes and WHY. "
        "Do NOT mention hunks, hunks.json, grouping process, or analysis internals. "
        "Also classify each hunk as substantive or non-substantive. "
        "Non-substantive changes are: formatting/whitespace-only changes, code moved to another file "
        "without modification, indentation changes, lock file updates, auto-generated code changes, "
        "snapshot updates. Note: variable/function renames and comment changes ARE substantive. "
        f"List non-substantive hunk IDs in nonSubstantiveHunkIds.{lang_suffix(lang)}"
    )


def build_refine_prompt(group_id: str, group_title: str, lang: str | None) -> str:
    """
    Build the prompt for refining one group into sub-groups.

    Args:
        group_id: ID of the group being refined
        group_title: Title of the group being refined
        lang: Optional response language

    Returns:
        Prompt text
    """
    return (
        "Read hunks.json. These hunks all belong to a single intent group titled "
        f"\"{group_title}\". "
        "Split them into smaller, more focused sub-groups by specific change purpose. "
        "Every hunk must be assigned to exactly one sub-group. "
        "Use only existing hunk ids from the input. Do not invent ids. "
        f"Sub-group ids must be \"{group_id}.1\", \"{group_id}.2\", etc. "
        "Order sub-groups by logical processing flow. "
        f"Give each sub-group a clear, descriptive title.{lang_suffix(lang)}"
    )


def build_split_prompt(lang: str | None) -> str:
    """
    Build the prompt for splitting large hunks into semantic sub-hunks.

    Args:
        lang: Optional response language

    Returns:
        Prompt text
    """
    return (
        "Read large_hunks.json. Each hunk has an id, filePath, and a lines array. "
        "For each hunk, split it into semantic sub-hunks by change purpose. "
        "Each sub-hunk must be a contiguous range of lines (0-based indices, endLineIndex is exclusive). "
        "Sub-hunk ids must be \"<originalId>.1\", \"<originalId>.2\", etc. "
        "The sub-hunks must cover all lines of the original hunk with no gaps or overlaps. "
        "Give each sub-hunk a short descriptive title. "
        f"Output must match the schema.{lang_suffix(lang)}"
    )
