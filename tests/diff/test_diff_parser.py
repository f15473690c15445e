"""Tests for diff parser."""

import random

import pytest

from diff.diff_parser import DiffParser
from diff.diff_exceptions import DiffParseError
from diff.diff_types import DiffLineKind


def _render(hunks):
    """Render hunks back to unified diff body text, one hunk per file."""
    out = []
    for hunk in hunks:
        out.append(f"--- a/{hunk.file_path}")
        out.append(f"+++ b/{hunk.file_path}")
        out.append(hunk.header)
        prefixes = {DiffLineKind.ADD: '+', DiffLineKind.REMOVE: '-', DiffLineKind.CONTEXT: ' '}
        out.extend(prefixes[line.kind] + line.text for line in hunk.lines)

    return "\n".join(out) + "\n"


def _random_diff(rng: random.Random) -> str:
    """Generate a random, well-formed multi-file diff."""
    out = []
    for file_index in range(rng.randint(1, 4)):
        out.append(f"diff --git a/f{file_index}.py b/f{file_index}.py")
        out.append(f"--- a/f{file_index}.py")
        out.append(f"+++ b/f{file_index}.py")
        old_start = 1
        for _ in range(rng.randint(1, 3)):
            kinds = [rng.choice("+- ") for _ in range(rng.randint(1, 12))]
            old_count = sum(1 for k in kinds if k != '+')
            new_count = sum(1 for k in kinds if k != '-')
            out.append(f"@@ -{old_start},{old_count} +{old_start},{new_count} @@")
            out.extend(f"{k}text {rng.randint(0, 999)}" for k in kinds)
            old_start += old_count + 10

    return "\n".join(out) + "\n"


class TestDiffParserBasic:
    """Test basic diff parsing functionality."""

    def test_parse_simple_hunk(self):
        """Test parsing a simple single-hunk diff."""
        diff_text = """@@ -10,3 +10,3 @@
 context line
-old line
+new line
 context line
"""
        parser = DiffParser()
        hunks = parser.parse(diff_text)

        assert len(hunks) == 1
        hunk = hunks[0]
        assert hunk.id == "H1"
        assert hunk.file_path == "unknown"
        assert hunk.old_start == 10
        assert hunk.old_line_count == 3
        assert hunk.new_start == 10
        assert hunk.new_line_count == 3
        assert len(hunk.lines) == 4

        assert hunk.lines[0].kind == DiffLineKind.CONTEXT
        assert hunk.lines[0].text == 'context line'
        assert hunk.lines[1].kind == DiffLineKind.REMOVE
        assert hunk.lines[1].text == 'old line'
        assert hunk.lines[2].kind == DiffLineKind.ADD
        assert hunk.lines[2].text == 'new line'
        assert hunk.lines[3].kind == DiffLineKind.CONTEXT

    def test_line_numbers(self):
        """Test that old and new line numbers advance independently."""
        diff_text = """@@ -10,3 +10,3 @@
 context line
-old line
+new line
 context line
"""
        lines = DiffParser().parse(diff_text)[0].lines

        assert (lines[0].old_line_number, lines[0].new_line_number) == (10, 10)
        assert (lines[1].old_line_number, lines[1].new_line_number) == (11, None)
        assert (lines[2].old_line_number, lines[2].new_line_number) == (None, 11)
        assert (lines[3].old_line_number, lines[3].new_line_number) == (12, 12)

    def test_empty_input(self):
        """Test that empty input produces no hunks."""
        assert DiffParser().parse("") == []

    def test_omitted_counts_default_to_one(self):
        """Test headers without explicit counts."""
        hunks = DiffParser().parse("@@ -5 +5 @@\n-a\n+b\n")

        assert hunks[0].old_line_count == 1
        assert hunks[0].new_line_count == 1

    def test_header_keeps_section_text(self):
        """Test that the full header text is preserved."""
        hunks = DiffParser().parse("@@ -1,1 +1,1 @@ def main():\n-a\n+b\n")

        assert hunks[0].header == "@@ -1,1 +1,1 @@ def main():"

    def test_crlf_line_endings(self):
        """Test that carriage returns are stripped."""
        hunks = DiffParser().parse("@@ -1,1 +1,1 @@\r\n-a\r\n+b\r\n")

        assert [line.text for line in hunks[0].lines] == ["a", "b"]

    def test_empty_context_line_without_space(self):
        """Test that an empty line inside a hunk is a blank context line."""
        hunks = DiffParser().parse("@@ -1,3 +1,3 @@\n a\n\n-b\n+c\n")

        assert hunks[0].lines[1].kind == DiffLineKind.CONTEXT
        assert hunks[0].lines[1].text == ""

    def test_no_newline_marker_ignored(self):
        """Test that the no-newline marker is not a body line."""
        diff_text = "@@ -1,1 +1,1 @@\n-a\n\\ No newline at end of file\n+b\n\\ No newline at end of file\n"
        hunks = DiffParser().parse(diff_text)

        assert len(hunks) == 1
        assert len(hunks[0].lines) == 2


class TestDiffParserFiles:
    """Test file attribution across multi-file diffs."""

    def test_multi_file_diff(self, multi_file_diff):
        """Test IDs and paths across modified, new and binary files."""
        hunks = DiffParser().parse(multi_file_diff)

        assert [hunk.id for hunk in hunks] == ["H1", "H2", "H3"]
        assert [hunk.file_path for hunk in hunks] == ["src/app.py", "src/app.py", "README.md"]

    def test_new_file_uses_new_path(self, multi_file_diff):
        """Test that /dev/null never becomes a file path."""
        hunks = DiffParser().parse(multi_file_diff)

        assert hunks[2].old_start == 0
        assert hunks[2].old_line_count == 0
        assert all(line.kind == DiffLineKind.ADD for line in hunks[2].lines)

    def test_deleted_file_uses_old_path(self):
        """Test that a deleted file is attributed to its old path."""
        diff_text = """diff --git a/gone.py b/gone.py
deleted file mode 100644
--- a/gone.py
+++ /dev/null
@@ -1,2 +0,0 @@
-x = 1
-y = 2
"""
        hunks = DiffParser().parse(diff_text)

        assert hunks[0].file_path == "gone.py"

    def test_timestamps_stripped_from_paths(self):
        """Test classic diff -u headers with timestamps."""
        diff_text = (
            "--- old/file.txt\t2024-01-01 00:00:00\n"
            "+++ new/file.txt\t2024-01-02 00:00:00\n"
            "@@ -1 +1 @@\n-a\n+b\n"
        )
        hunks = DiffParser().parse(diff_text)

        assert hunks[0].file_path == "new/file.txt"

    def test_rename_without_hunks(self):
        """Test that a pure rename contributes no hunks."""
        diff_text = """diff --git a/old.py b/new.py
similarity index 100%
rename from old.py
rename to new.py
"""
        assert DiffParser().parse(diff_text) == []

    def test_parsing_is_deterministic(self, multi_file_diff):
        """Test that parsing the same text twice gives identical hunks."""
        assert DiffParser().parse(multi_file_diff) == DiffParser().parse(multi_file_diff)

    def test_git_headers_between_files(self):
        """Test that git header lines after a complete hunk are accepted."""
        diff_text = (
            "diff --git a/x b/x\n--- a/x\n+++ b/x\n@@ -1 +1 @@\n-a\n+b\n"
            "index 1111111..2222222 100644\n"
            "diff --git a/y b/y\n--- a/y\n+++ b/y\n@@ -1 +1 @@\n-c\n+d\n"
        )

        assert [hunk.file_path for hunk in DiffParser().parse(diff_text)] == ["x", "y"]

    def test_format_patch_signature(self):
        """Test that the signature trailer of format-patch output is not a hunk line."""
        diff_text = "--- a/x\n+++ b/x\n@@ -1 +1 @@\n-a\n+b\n-- \n2.43.0\n"

        hunks = DiffParser().parse(diff_text)

        assert len(hunks) == 1
        assert len(hunks[0].lines) == 2

    def test_trailing_blank_lines(self):
        """Test that blank padding after the last hunk is ignored."""
        hunks = DiffParser().parse("@@ -1 +1 @@\n-a\n+b\n\n\n")

        assert len(hunks[0].lines) == 2


class TestDiffParserErrors:
    """Test parse errors."""

    def test_invalid_header(self):
        """Test that a malformed hunk header raises."""
        with pytest.raises(DiffParseError) as exc_info:
            DiffParser().parse("--- a/x\n+++ b/x\n@@ invalid @@\n+a\n")

        assert exc_info.value.error_details["line"] == 3

    def test_invalid_body_prefix(self):
        """Test that a body line with an unknown prefix raises."""
        with pytest.raises(DiffParseError):
            DiffParser().parse("@@ -1,2 +1,2 @@\n a\n*b\n")

    def test_truncated_hunk_at_end(self):
        """Test that a hunk shorter than its header raises."""
        with pytest.raises(DiffParseError) as exc_info:
            DiffParser().parse("@@ -1,3 +1,3 @@\n a\n b\n")

        assert exc_info.value.error_details["old_remaining"] == 1

    def test_truncated_hunk_before_next_header(self):
        """Test that a new header inside an unfinished hunk raises."""
        with pytest.raises(DiffParseError):
            DiffParser().parse("@@ -1,3 +1,3 @@\n a\n@@ -10,1 +10,1 @@\n-x\n+y\n")

    def test_body_longer_than_header(self):
        """Test that a body with more added lines than declared raises."""
        with pytest.raises(DiffParseError):
            DiffParser().parse("@@ -1,2 +1,1 @@\n+a\n+b\n-c\n-d\n")

    def test_extra_line_after_counts_used_up(self):
        """Test that a body line past the header's counts raises instead of being dropped."""
        with pytest.raises(DiffParseError) as exc_info:
            DiffParser().parse("--- a/x\n+++ b/x\n@@ -1,1 +1,1 @@\n-a\n+b\n+c\n")

        assert exc_info.value.error_details["content"] == "+c"
        assert exc_info.value.error_details["line"] == 6

    def test_invalid_prefix_after_counts_used_up(self):
        """Test that an unknown line directly after a complete hunk raises."""
        with pytest.raises(DiffParseError):
            DiffParser().parse("@@ -1,1 +1,1 @@\n-a\n+b\n*junk\n")

    @pytest.mark.parametrize("line", [" c", "-c", ""])
    def test_context_or_removal_after_counts_used_up(self, line):
        """Test that context, removed and blank lines past the counts raise."""
        with pytest.raises(DiffParseError):
            DiffParser().parse(f"@@ -1,1 +1,1 @@\n-a\n+b\n{line}\n@@ -9,1 +9,1 @@\n-x\n+y\n")


class TestDiffParserProperties:
    """Properties that hold for every well-formed diff."""

    @pytest.mark.parametrize("seed", range(20))
    def test_counts_match_headers(self, seed):
        """Test that every parsed hunk is consistent with its header."""
        hunks = DiffParser().parse(_random_diff(random.Random(seed)))

        assert hunks
        assert all(hunk.is_consistent() for hunk in hunks)

    @pytest.mark.parametrize("seed", range(20))
    def test_render_and_reparse(self, seed):
        """Test that rendering parsed hunks and parsing again is lossless."""
        hunks = DiffParser().parse(_random_diff(random.Random(seed)))
        reparsed = DiffParser().parse(_render(hunks))

        assert [hunk.lines for hunk in reparsed] == [hunk.lines for hunk in hunks]
        assert [hunk.id for hunk in reparsed] == [f"H{i + 1}" for i in range(len(hunks))]
