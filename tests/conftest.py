"""Fixtures shared by every test package."""

import asyncio
import json
from typing import Any, Callable, Dict, List, Sequence, Tuple

import pytest

from content_cache.content_cache import ContentCache
from diff.diff_types import DiffLine, DiffLineKind, Hunk
from intent.intent_engine import EngineOutput, EngineRequest, IntentEngine
from intent.intent_exceptions import EngineError


class FakeEngine(IntentEngine):
    """Engine that returns queued outputs and records every request."""

    def __init__(self) -> None:
        self.requests: List[EngineRequest] = []
        self._outputs: List[Tuple[Any, asyncio.Event | None]] = []

    def queue(self, output: Any, gate: asyncio.Event | None = None) -> None:
        """
        Queue the result for the next run.

        Args:
            output: A dict (serialized as the output file), a raw string, None for no
                output file, or an exception to raise
            gate: Optional event the run waits for before returning
        """
        self._outputs.append((output, gate))

    async def run(self, request: EngineRequest) -> EngineOutput:
        self.requests.append(request)
        if not self._outputs:
            raise EngineError("No output queued")

        output, gate = self._outputs.pop(0)
        if gate is not None:
            await gate.wait()

        if isinstance(output, Exception):
            raise output

        text = json.dumps(output) if isinstance(output, dict) else output
        return EngineOutput(stdout="done", stderr="", elapsed_secs=0.5, model_used="test-model", output_text=text)


def build_hunk(hunk_id: str, kinds: str, file_path: str = "file.py", old_start: int = 1, new_start: int = 1) -> Hunk:
    """
    Build a consistent hunk from a string of line kinds.

    Args:
        hunk_id: ID for the hunk
        kinds: One character per line: '+' add, '-' remove, ' ' context
        file_path: File path for the hunk
        old_start: First old line number
        new_start: First new line number

    Returns:
        A hunk whose header counts match its body
    """
    lines: List[DiffLine] = []
    old_line = old_start
    new_line = new_start
    for index, kind in enumerate(kinds):
        text = f"{hunk_id} line {index}"
        if kind == '+':
            lines.append(DiffLine(DiffLineKind.ADD, None, new_line, text))
            new_line += 1

        elif kind == '-':
            lines.append(DiffLine(DiffLineKind.REMOVE, old_line, None, text))
            old_line += 1

        else:
            lines.append(DiffLine(DiffLineKind.CONTEXT, old_line, new_line, text))
            old_line += 1
            new_line += 1

    old_count = old_line - old_start
    new_count = new_line - new_start
    return Hunk(
        id=hunk_id,
        file_path=file_path,
        header=f"@@ -{old_start},{old_count} +{new_start},{new_count} @@",
        old_start=old_start,
        old_line_count=old_count,
        new_start=new_start,
        new_line_count=new_count,
        lines=tuple(lines)
    )


def group_dict(group_id: str, hunk_ids: Sequence[str], category: str = "logic", risk: str = "low") -> Dict[str, Any]:
    """Build one group in the engine's JSON form."""
    return {
        "id": group_id,
        "title": f"Group {group_id}",
        "category": category,
        "risk": risk,
        "rationale": "Related changes",
        "hunkIds": list(hunk_ids),
        "reviewerChecklist": ["Check it"],
        "suggestedTests": []
    }


def analysis_dict(
    groups: Sequence[Sequence[str]],
    unassigned: Sequence[str] = (),
    non_substantive: Sequence[str] = ()
) -> Dict[str, Any]:
    """Build an analysis in the engine's JSON form, one group per hunk ID list."""
    return {
        "version": 1,
        "overallSummary": "Adds a feature",
        "groups": [group_dict(f"G{i + 1}", hunk_ids) for i, hunk_ids in enumerate(groups)],
        "unassignedHunkIds": list(unassigned),
        "nonSubstantiveHunkIds": list(non_substantive),
        "questions": []
    }


@pytest.fixture
def make_hunk() -> Callable[..., Hunk]:
    """Factory for consistent hunks, see build_hunk()."""
    return build_hunk


@pytest.fixture
def three_hunks(make_hunk):
    """Hunks H1, H2 and H3 across two files."""
    return [
        make_hunk("H1", " -+ ", file_path="src/models.py"),
        make_hunk("H2", "++", file_path="src/views.py", old_start=20, new_start=20),
        make_hunk("H3", " - ", file_path="src/views.py", old_start=40, new_start=41),
    ]


@pytest.fixture
def make_analysis():
    """Factory for analyses in the engine's JSON form, see analysis_dict()."""
    return analysis_dict


@pytest.fixture
def make_group():
    """Factory for groups in the engine's JSON form, see group_dict()."""
    return group_dict


@pytest.fixture
def engine():
    """A fake engine with nothing queued."""
    return FakeEngine()


@pytest.fixture
def cache(tmp_path):
    """A cache rooted in a fresh temporary directory."""
    return ContentCache(str(tmp_path / "cache"))
