"""Unified diff parsing."""

from dataclasses import dataclass, field
import re
from typing import List

from diff.diff_exceptions import DiffParseError
from diff.diff_types import DiffLine, DiffLineKind, Hunk


_HUNK_HEADER_RE = re.compile(r'^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$')
_GIT_HEADER_RE = re.compile(
    r'^(index |new file mode |deleted file mode |old mode |new mode |similarity index |dissimilarity index '
    r'|rename from |rename to |copy from |copy to |Binary files )'
)


@dataclass
class _HunkBuilder:
    """Accumulates the body of the hunk currently being parsed."""

    file_path: str
    header: str
    old_start: int
    old_line_count: int
    new_start: int
    new_line_count: int
    lines: List[DiffLine] = field(default_factory=list)
    old_remaining: int = 0
    new_remaining: int = 0
    next_old_line: int = 0
    next_new_line: int = 0

    def is_complete(self) -> bool:
        """Check whether the declared old and new line counts have been consumed."""
        return self.old_remaining == 0 and self.new_remaining == 0


class DiffParser:
    """Parser for unified diff format."""

    def parse(self, diff_text: str) -> List[Hunk]:
        """
        Parse unified diff text into hunks with stable identifiers.

        Hunks are numbered "H1", "H2", ... in file-then-position order, so parsing the
        same text always produces the same identifiers.  Files without any "@@" header
        (renames, mode changes, binary files) contribute no hunks.

        Args:
            diff_text: Unified diff format text

        Returns:
            List of parsed hunks, possibly empty

        Raises:
            DiffParseError: If a hunk header cannot be decoded, or a hunk body line does
                not start with '+', '-', ' ' or '\\', or a hunk body is shorter or longer
                than its header declares
        """
        lines = diff_text.split('\n')
        if lines and lines[-1] == '':
            lines.pop()

        # Blank lines after the last hunk are padding, not stripped context lines
        last_content = max((i for i, line in enumerate(lines, start=1) if line.strip()), default=0)

        hunks: List[Hunk] = []
        current_file: str | None = None
        builder: _HunkBuilder | None = None

        # The last completed hunk, until a marker shows that its body has ended
        finished: _HunkBuilder | None = None

        for line_number, raw_line in enumerate(lines, start=1):
            line = raw_line[:-1] if raw_line.endswith('\r') else raw_line

            if builder is not None:
                if line.startswith('@@') or line.startswith('diff --'):
                    raise self._truncated_hunk_error(builder)

                self._parse_body_line(builder, line, line_number)
                if builder.is_complete():
                    hunks.append(self._build_hunk(builder, len(hunks) + 1))
                    finished = builder
                    builder = None

                continue

            # "\ No newline at end of file" can follow the last line of a hunk
            if line.startswith('\\'):
                continue

            if line.startswith('diff --'):
                current_file = None
                finished = None
                continue

            if line.startswith('+++ '):
                path = self._extract_path(line[4:], 'b/')
                if path is not None:
                    current_file = path

                finished = None
                continue

            if line.startswith('--- '):
                path = self._extract_path(line[4:], 'a/')
                if path is not None:
                    current_file = path

                finished = None
                continue

            if line.startswith('@@'):
                finished = None
                builder = self._start_hunk(line, current_file, line_number)
                if builder.is_complete():
                    hunks.append(self._build_hunk(builder, len(hunks) + 1))
                    finished = builder
                    builder = None

                continue

            if finished is None:
                # Outside any hunk: index lines, mode changes, rename/similarity lines,
                # "Binary files ... differ", mail headers of format-patch output, etc.
                continue

            if line_number > last_content:
                continue

            if line in ('-- ', '--'):
                # format-patch signature; what follows is trailer text up to the next patch
                finished = None
                continue

            if _GIT_HEADER_RE.match(line):
                continue

            raise self._overrun_error(finished, line, line_number)

        if builder is not None:
            raise self._truncated_hunk_error(builder)

        return hunks

    def _overrun_error(self, builder: _HunkBuilder, line: str, line_number: int) -> DiffParseError:
        """Create the error for a body line found after a hunk's declared counts were used up."""
        return DiffParseError(
            f"Hunk '{builder.header}' has more lines than its header declares: {line}",
            error_details={"line": line_number, "header": builder.header, "content": line}
        )

    def _truncated_hunk_error(self, builder: _HunkBuilder) -> DiffParseError:
        """Create the error for a hunk whose body is shorter than its header declares."""
        return DiffParseError(
            f"Hunk '{builder.header}' ended before its declared line counts were reached",
            error_details={
                "header": builder.header,
                "file_path": builder.file_path,
                "old_remaining": builder.old_remaining,
                "new_remaining": builder.new_remaining
            }
        )

    def _extract_path(self, marker_text: str, prefix: str) -> str | None:
        """
        Extract a file path from the text after a '---' or '+++' marker.

        Args:
            marker_text: Text following the marker and its space
            prefix: The conventional "a/" or "b/" prefix to strip

        Returns:
            The path, or None for /dev/null
        """
        # Classic diff -u output appends a tab and a timestamp
        path = marker_text.split('\t', 1)[0]
        if path == '/dev/null':
            return None

        if path.startswith(prefix):
            path = path[len(prefix):]

        return path

    def _start_hunk(self, header: str, current_file: str | None, line_number: int) -> _HunkBuilder:
        """
        Decode a hunk header and open a new hunk.

        Args:
            header: The "@@ -a,b +c,d @@" line
            current_file: Path of the file the hunk belongs to
            line_number: 1-indexed line number of the header (for error reporting)

        Returns:
            Builder for the new hunk

        Raises:
            DiffParseError: If the header cannot be decoded
        """
        match = _HUNK_HEADER_RE.match(header)
        if not match:
            raise DiffParseError(
                f"Invalid hunk header format: {header}",
                error_details={"line": line_number, "header": header}
            )

        old_start = int(match.group(1))
        old_count = int(match.group(2)) if match.group(2) is not None else 1
        new_start = int(match.group(3))
        new_count = int(match.group(4)) if match.group(4) is not None else 1

        return _HunkBuilder(
            file_path=current_file if current_file is not None else "unknown",
            header=header,
            old_start=old_start,
            old_line_count=old_count,
            new_start=new_start,
            new_line_count=new_count,
            old_remaining=old_count,
            new_remaining=new_count,
            next_old_line=old_start,
            next_new_line=new_start
        )

    def _parse_body_line(self, builder: _HunkBuilder, line: str, line_number: int) -> None:
        """
        Classify one body line and append it to the current hunk.

        Args:
            builder: The hunk being built
            line: The physical line
            line_number: 1-indexed line number (for error reporting)

        Raises:
            DiffParseError: If the line has no valid prefix or overruns the header counts
        """
        if line.startswith('\\'):
            return

        # Some tools strip the single space from empty context lines
        prefix = line[0] if line else ' '
        text = line[1:]

        if prefix == '+':
            self._require_remaining(builder, builder.new_remaining, "added", line_number)
            builder.lines.append(DiffLine(DiffLineKind.ADD, None, builder.next_new_line, text))
            builder.next_new_line += 1
            builder.new_remaining -= 1
            return

        if prefix == '-':
            self._require_remaining(builder, builder.old_remaining, "removed", line_number)
            builder.lines.append(DiffLine(DiffLineKind.REMOVE, builder.next_old_line, None, text))
            builder.next_old_line += 1
            builder.old_remaining -= 1
            return

        if prefix == ' ':
            self._require_remaining(
                builder, min(builder.old_remaining, builder.new_remaining), "context", line_number
            )
            builder.lines.append(
                DiffLine(DiffLineKind.CONTEXT, builder.next_old_line, builder.next_new_line, text)
            )
            builder.next_old_line += 1
            builder.next_new_line += 1
            builder.old_remaining -= 1
            builder.new_remaining -= 1
            return

        raise DiffParseError(
            f"Invalid line in hunk '{builder.header}': {line}",
            error_details={"line": line_number, "header": builder.header, "content": line}
        )

    def _require_remaining(self, builder: _HunkBuilder, remaining: int, kind: str, line_number: int) -> None:
        """Raise if a body line would exceed the counts declared in the hunk header."""
        if remaining > 0:
            return

        raise DiffParseError(
            f"Hunk '{builder.header}' has more {kind} lines than its header declares",
            error_details={"line": line_number, "header": builder.header}
        )

    def _build_hunk(self, builder: _HunkBuilder, sequence: int) -> Hunk:
        """Freeze a completed builder into a Hunk with the next sequential ID."""
        return Hunk(
            id=f"H{sequence}",
            file_path=builder.file_path,
            header=builder.header,
            old_start=builder.old_start,
            old_line_count=builder.old_line_count,
            new_start=builder.new_start,
            new_line_count=builder.new_line_count,
            lines=tuple(builder.lines)
        )
