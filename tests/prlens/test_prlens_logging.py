"""Tests for log file management."""

import logging
import os
import sys
from unittest.mock import patch

from prlens import cleanup_old_logs, install_global_exception_handler


def _make_logs(log_dir, count):
    """Create log files with increasing modification times."""
    paths = []
    for index in range(count):
        path = os.path.join(log_dir, f"2025-01-01-00-00-{index:02d}.log")
        with open(path, 'w', encoding='utf-8') as f:
            f.write("x")

        os.utime(path, (1000 + index, 1000 + index))
        paths.append(path)

    return paths


class TestCleanupOldLogs:
    """Test pruning of old log files."""

    def test_removes_oldest(self, tmp_path):
        """Test that only the newest files are kept."""
        paths = _make_logs(str(tmp_path), 5)

        removed = cleanup_old_logs(str(tmp_path), 3)

        assert removed == 2
        assert sorted(os.listdir(tmp_path)) == sorted(os.path.basename(p) for p in paths[2:])

    def test_under_limit(self, tmp_path):
        """Test that nothing is removed when under the limit."""
        _make_logs(str(tmp_path), 2)

        assert cleanup_old_logs(str(tmp_path), 3) == 0
        assert len(os.listdir(tmp_path)) == 2

    def test_ignores_other_files(self, tmp_path):
        """Test that files that are not logs are never removed."""
        _make_logs(str(tmp_path), 2)
        (tmp_path / "notes.txt").write_text("keep", encoding='utf-8')

        cleanup_old_logs(str(tmp_path), 0)

        assert os.listdir(tmp_path) == ["notes.txt"]

    def test_removal_failure_logged(self, tmp_path, caplog):
        """Test that a file that cannot be removed is logged and skipped."""
        _make_logs(str(tmp_path), 2)

        with patch("prlens.os.remove", side_effect=OSError("busy")):
            with caplog.at_level(logging.WARNING, logger="prlens"):
                removed = cleanup_old_logs(str(tmp_path), 1)

        assert removed == 0
        assert "busy" in caplog.text


class TestGlobalExceptionHandler:
    """Test the uncaught exception hook."""

    def test_logs_and_delegates(self, caplog):
        """Test that uncaught exceptions are logged and passed to the default hook."""
        original = sys.excepthook
        try:
            install_global_exception_handler()
            error = ValueError("boom")
            with patch("sys.__excepthook__") as default_hook, caplog.at_level(logging.CRITICAL):
                sys.excepthook(ValueError, error, None)

            default_hook.assert_called_once_with(ValueError, error, None)
            assert "Uncaught ValueError: boom" in caplog.text

        finally:
            sys.excepthook = original

    def test_keyboard_interrupt_not_logged(self, caplog):
        """Test that Ctrl-C is passed through silently."""
        original = sys.excepthook
        try:
            install_global_exception_handler()
            with patch("sys.__excepthook__"), caplog.at_level(logging.CRITICAL):
                sys.excepthook(KeyboardInterrupt, KeyboardInterrupt(), None)

            assert caplog.text == ""

        finally:
            sys.excepthook = original
