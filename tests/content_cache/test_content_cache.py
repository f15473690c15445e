"""Tests for the content-addressed disk cache."""

import json
import os
from unittest.mock import patch

import pytest

from content_cache.content_cache import ContentCache, format_size
from content_cache.content_cache_namespace import CacheNamespace


class TestFormatSize:
    """Test byte count formatting."""

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5.0 MB"),
    ])
    def test_format(self, size, expected):
        """Test the unit boundaries."""
        assert format_size(size) == expected


class TestContentCacheReadWrite:
    """Test get and put."""

    def test_miss_on_empty_cache(self, cache):
        """Test reading a key that was never written."""
        assert cache.get(CacheNamespace.ANALYSIS, "abc") is None

    def test_put_then_get(self, cache):
        """Test that a stored payload is returned unchanged."""
        payload = {"result": {"groups": []}, "engineLog": "ok\n"}
        cache.put(CacheNamespace.ANALYSIS, "abc", payload)

        assert cache.get(CacheNamespace.ANALYSIS, "abc") == payload

    def test_namespaces_are_separate(self, cache):
        """Test that the same key in two namespaces is two entries."""
        cache.put(CacheNamespace.ANALYSIS, "abc", 1)
        cache.put(CacheNamespace.REFINE, "abc", 2)

        assert cache.get(CacheNamespace.ANALYSIS, "abc") == 1
        assert cache.get(CacheNamespace.REFINE, "abc") == 2
        assert cache.get(CacheNamespace.SPLIT, "abc") is None

    def test_namespace_given_as_string(self, cache):
        """Test that namespace values are accepted in place of members."""
        cache.put("diff", "abc", "diff text")

        assert cache.get(CacheNamespace.DIFF, "abc") == "diff text"

    def test_put_overwrites(self, cache):
        """Test that a second put replaces the entry."""
        cache.put(CacheNamespace.DIFF, "abc", "one")
        cache.put(CacheNamespace.DIFF, "abc", "two")

        assert cache.get(CacheNamespace.DIFF, "abc") == "two"

    def test_entry_file_format(self, cache):
        """Test the on-disk entry layout."""
        cache.put(CacheNamespace.SPLIT, "abc", [1, 2])
        path = os.path.join(cache.root_dir(), "split", "abc.json")

        with open(path, 'r', encoding='utf-8') as f:
            entry = json.load(f)

        assert entry["key"] == "abc"
        assert entry["payload"] == [1, 2]
        assert "storedAt" in entry

    def test_no_temp_files_left_behind(self, cache):
        """Test that successful writes leave only entry files."""
        cache.put(CacheNamespace.ANALYSIS, "abc", {"a": 1})
        cache.put(CacheNamespace.ANALYSIS, "def", {"b": 2})

        names = os.listdir(os.path.join(cache.root_dir(), "analysis"))
        assert sorted(names) == ["abc.json", "def.json"]


class TestContentCacheFailures:
    """Test that failures never propagate."""

    def test_corrupt_entry_is_a_miss(self, cache):
        """Test reading an entry that is not valid JSON."""
        cache.put(CacheNamespace.ANALYSIS, "abc", {"a": 1})
        path = os.path.join(cache.root_dir(), "analysis", "abc.json")
        with open(path, 'w', encoding='utf-8') as f:
            f.write("{not json")

        assert cache.get(CacheNamespace.ANALYSIS, "abc") is None

    def test_entry_for_other_key_is_a_miss(self, cache):
        """Test an entry whose stored key does not match its file name."""
        directory = os.path.join(cache.root_dir(), "analysis")
        os.makedirs(directory)
        with open(os.path.join(directory, "abc.json"), 'w', encoding='utf-8') as f:
            json.dump({"key": "other", "payload": 1}, f)

        assert cache.get(CacheNamespace.ANALYSIS, "abc") is None

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
    def test_unsafe_keys(self, cache, key):
        """Test that keys unsafe as file names are ignored."""
        cache.put(CacheNamespace.ANALYSIS, key, 1)

        assert cache.get(CacheNamespace.ANALYSIS, key) is None
        assert cache.size_bytes() == 0

    def test_unserializable_payload(self, cache):
        """Test that a payload JSON cannot encode is dropped."""
        cache.put(CacheNamespace.ANALYSIS, "abc", {"value": object()})

        assert cache.get(CacheNamespace.ANALYSIS, "abc") is None

    def test_write_failure_cleans_up(self, cache):
        """Test that a failed rename is logged and leaves no temp file."""
        with patch("content_cache.content_cache.os.replace", side_effect=OSError("disk full")):
            cache.put(CacheNamespace.ANALYSIS, "abc", {"a": 1})

        assert cache.get(CacheNamespace.ANALYSIS, "abc") is None
        assert os.listdir(os.path.join(cache.root_dir(), "analysis")) == []

    def test_root_is_a_file(self, tmp_path):
        """Test a cache whose root cannot be created."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        cache = ContentCache(str(blocker))

        cache.put(CacheNamespace.DIFF, "abc", "text")

        assert cache.get(CacheNamespace.DIFF, "abc") is None


class TestContentCacheSizeAndClear:
    """Test size accounting and clearing."""

    def test_size_of_empty_cache(self, cache):
        """Test that a cache that was never written has size 0."""
        assert cache.size_bytes() == 0

    def test_size_counts_entries(self, cache):
        """Test that the size is the sum of entry file sizes."""
        cache.put(CacheNamespace.ANALYSIS, "abc", {"a": 1})
        cache.put(CacheNamespace.DIFF, "def", "x" * 100)
        expected = sum(
            os.path.getsize(os.path.join(cache.root_dir(), namespace, name))
            for namespace, name in [("analysis", "abc.json"), ("diff", "def.json")]
        )

        assert cache.size_bytes() == expected

    def test_put_then_clear(self, cache):
        """Test that clearing removes every entry."""
        cache.put(CacheNamespace.ANALYSIS, "abc", {"a": 1})
        cache.put(CacheNamespace.SPLIT, "def", {"b": 2})

        cache.clear()

        assert cache.get(CacheNamespace.ANALYSIS, "abc") is None
        assert cache.get(CacheNamespace.SPLIT, "def") is None
        assert cache.size_bytes() == 0

    def test_clear_removes_tombstones(self, cache, tmp_path):
        """Test that clearing leaves nothing next to the root."""
        cache.put(CacheNamespace.ANALYSIS, "abc", {"a": 1})
        cache.clear()

        assert os.listdir(tmp_path) == []

    def test_clear_empty_cache(self, cache):
        """Test clearing a cache that was never written."""
        cache.clear()

        assert cache.size_bytes() == 0

    def test_usable_after_clear(self, cache):
        """Test writing again after a clear."""
        cache.put(CacheNamespace.ANALYSIS, "abc", 1)
        cache.clear()
        cache.put(CacheNamespace.ANALYSIS, "abc", 2)

        assert cache.get(CacheNamespace.ANALYSIS, "abc") == 2
