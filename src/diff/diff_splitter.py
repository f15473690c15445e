"""Hierarchical hunk splitting."""

from typing import List, Sequence, Tuple

from diff.diff_exceptions import DiffSplitError
from diff.diff_types import DiffLine, DiffLineKind, Hunk


def is_descendant_id(hunk_id: str, ancestor_id: str) -> bool:
    """
    Check whether a hunk ID was produced by (possibly repeated) splitting of another.

    Args:
        hunk_id: Candidate descendant, e.g. "H5.2.1"
        ancestor_id: Candidate ancestor, e.g. "H5"

    Returns:
        True if hunk_id is a strict descendant of ancestor_id
    """
    return hunk_id.startswith(ancestor_id + ".")


def _validate_ranges(hunk: Hunk, ranges: Sequence[Tuple[int, int]]) -> None:
    """
    Check that ranges tile the hunk's lines exactly.

    Raises:
        DiffSplitError: On an empty list, empty range, gap, overlap or overrun
    """
    if not ranges:
        raise DiffSplitError(f"No split ranges given for hunk '{hunk.id}'", {"hunk_id": hunk.id})

    expected_start = 0
    for index, (start, end) in enumerate(ranges):
        if start != expected_start:
            kind = "gap" if start > expected_start else "overlap"
            raise DiffSplitError(
                f"Split of hunk '{hunk.id}' has a {kind} at line index {expected_start}",
                {"hunk_id": hunk.id, "range_index": index, "start": start, "expected_start": expected_start}
            )

        if end <= start:
            raise DiffSplitError(
                f"Split of hunk '{hunk.id}' has an empty range {start}..{end}",
                {"hunk_id": hunk.id, "range_index": index, "start": start, "end": end}
            )

        expected_start = end

    if expected_start != len(hunk.lines):
        raise DiffSplitError(
            f"Split of hunk '{hunk.id}' covers {expected_start} of {len(hunk.lines)} lines",
            {"hunk_id": hunk.id, "covered": expected_start, "total": len(hunk.lines)}
        )


def _make_child(parent: Hunk, child_id: str, lines: Tuple[DiffLine, ...], title: str | None) -> Hunk:
    """Build one child hunk, deriving its ranges from its own lines."""
    old_start = next(
        (line.old_line_number for line in lines if line.old_line_number is not None), parent.old_start
    )
    new_start = next(
        (line.new_line_number for line in lines if line.new_line_number is not None), parent.new_start
    )
    old_count = sum(1 for line in lines if line.kind != DiffLineKind.ADD)
    new_count = sum(1 for line in lines if line.kind != DiffLineKind.REMOVE)

    header = f"@@ -{old_start},{old_count} +{new_start},{new_count} @@"
    if title:
        header += f" [{title}]"

    return Hunk(
        id=child_id,
        file_path=parent.file_path,
        header=header,
        old_start=old_start,
        old_line_count=old_count,
        new_start=new_start,
        new_line_count=new_count,
        lines=lines
    )


def split_hunk(
    hunk: Hunk,
    ranges: Sequence[Tuple[int, int]],
    titles: Sequence[str | None] | None = None
) -> List[Hunk]:
    """
    Split a hunk into an ordered sequence of child hunks.

    Args:
        hunk: The hunk to split
        ranges: Half-open (start, end) line-index ranges, in order, that together cover
            every line of the hunk exactly once
        titles: Optional per-range titles, appended to each child's header

    Returns:
        Child hunks with IDs "<parent>.1", "<parent>.2", ...

    Raises:
        DiffSplitError: If the ranges do not tile the hunk's lines exactly
    """
    _validate_ranges(hunk, ranges)
    if titles is not None and len(titles) != len(ranges):
        raise DiffSplitError(
            f"Split of hunk '{hunk.id}' has {len(ranges)} ranges but {len(titles)} titles",
            {"hunk_id": hunk.id}
        )

    children = []
    for index, (start, end) in enumerate(ranges):
        title = titles[index] if titles is not None else None
        children.append(_make_child(hunk, f"{hunk.id}.{index + 1}", hunk.lines[start:end], title))

    return children


def replace_hunk(hunks: Sequence[Hunk], parent_id: str, children: Sequence[Hunk]) -> List[Hunk]:
    """
    Replace one hunk in a hunk list with its children, preserving position.

    Args:
        hunks: Current hunk list
        parent_id: ID of the hunk to replace
        children: Hunks produced by splitting the parent

    Returns:
        New hunk list

    Raises:
        KeyError: If no hunk has the parent ID
    """
    result: List[Hunk] = []
    found = False
    for hunk in hunks:
        if hunk.id == parent_id:
            result.extend(children)
            found = True
            continue

        result.append(hunk)

    if not found:
        raise KeyError(parent_id)

    return result


def verify_split(parent: Hunk, leaves: Sequence[Hunk]) -> None:
    """
    Verify that the leaves descending from a parent reconstruct its lines exactly.

    Any number of split levels is supported: only leaf hunks whose IDs descend from the
    parent's ID are considered, in the order given.

    Args:
        parent: The original hunk
        leaves: Hunk list containing the parent's leaf descendants

    Raises:
        DiffSplitError: If lines were gained, lost or reordered
    """
    descendants = [hunk for hunk in leaves if is_descendant_id(hunk.id, parent.id)]
    if not descendants:
        raise DiffSplitError(f"No split hunks found for '{parent.id}'", {"hunk_id": parent.id})

    reconstructed: List[DiffLine] = []
    for hunk in descendants:
        if not hunk.is_consistent():
            raise DiffSplitError(
                f"Split hunk '{hunk.id}' does not match its own header counts",
                {"hunk_id": hunk.id}
            )

        reconstructed.extend(hunk.lines)

    if tuple(reconstructed) != parent.lines:
        raise DiffSplitError(
            f"Split hunks of '{parent.id}' do not reconstruct its lines",
            {
                "hunk_id": parent.id,
                "expected_lines": len(parent.lines),
                "actual_lines": len(reconstructed)
            }
        )
