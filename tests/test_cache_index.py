"""Tests for the local cache index."""

from __future__ import annotations

import json
from pathlib import Path

from northbase import CacheEntry, CacheIndex


class TestLoad:
    """Tests for reading the index."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """Test that a missing index means no history."""
        index = CacheIndex(tmp_path / "index.json")

        assert index.load() == {}
        assert index.get("a.md") is None

    def test_corrupt_file_is_empty(self, tmp_path: Path) -> None:
        """Test that unparsable JSON degrades to an empty index."""
        path = tmp_path / "index.json"
        path.write_text("{not json")

        assert CacheIndex(path).load() == {}

    def test_wrong_shape_is_empty(self, tmp_path: Path) -> None:
        """Test that a JSON document without a files mapping is ignored."""
        path = tmp_path / "index.json"
        path.write_text(json.dumps(["a.md"]))

        assert CacheIndex(path).load() == {}

    def test_reads_entries(self, tmp_path: Path) -> None:
        """Test that stored entries come back as CacheEntry objects."""
        path = tmp_path / "index.json"
        path.write_text(
            json.dumps({"files": {"a.md": {"updated_at": "m1", "bytes": 3}}})
        )

        index = CacheIndex(path)

        assert index.get("a.md") == CacheEntry(path="a.md", marker="m1", byte_size=3)

    def test_malformed_entries_are_dropped(self, tmp_path: Path) -> None:
        """Test that a bad entry does not poison the rest of the index."""
        path = tmp_path / "index.json"
        path.write_text(
            json.dumps(
                {
                    "files": {
                        "good.md": {"updated_at": "m1", "bytes": 3},
                        "bad.md": "oops",
                        "worse.md": {"updated_at": "m2", "bytes": "many"},
                    }
                }
            )
        )

        assert list(CacheIndex(path).load()) == ["good.md"]


class TestSave:
    """Tests for writing the index."""

    def test_round_trips_through_disk(self, tmp_path: Path) -> None:
        """Test that put then save persists the snapshot."""
        path = tmp_path / "nested" / "index.json"
        index = CacheIndex(path)
        index.put(CacheEntry(path="a/b.md", marker="m1", byte_size=10))
        index.save()

        data = json.loads(path.read_text())
        assert data == {"files": {"a/b.md": {"updated_at": "m1", "bytes": 10}}}
        assert CacheIndex(path).get("a/b.md") == CacheEntry("a/b.md", "m1", 10)

    def test_save_with_mapping_replaces_snapshot(self, tmp_path: Path) -> None:
        """Test that save(mapping) writes exactly the given mapping."""
        path = tmp_path / "index.json"
        index = CacheIndex(path)
        index.put(CacheEntry(path="old.md", marker="m0", byte_size=1))

        index.save({"new.md": CacheEntry(path="new.md", marker="m1", byte_size=2)})

        assert set(CacheIndex(path).load()) == {"new.md"}
        assert index.get("old.md") is None

    def test_save_leaves_no_temp_files(self, tmp_path: Path) -> None:
        """Test that the atomic write cleans up after itself."""
        index = CacheIndex(tmp_path / "index.json")
        index.put(CacheEntry(path="a.md", marker="m1", byte_size=1))
        index.save()

        assert [p.name for p in tmp_path.iterdir()] == ["index.json"]

    def test_put_replaces_existing_entry(self, tmp_path: Path) -> None:
        """Test that put overwrites the entry for the same path."""
        index = CacheIndex(tmp_path / "index.json")
        index.put(CacheEntry(path="a.md", marker="m1", byte_size=1))
        index.put(CacheEntry(path="a.md", marker="m2", byte_size=2))

        assert index.get("a.md") == CacheEntry(path="a.md", marker="m2", byte_size=2)
        assert len(index) == 1
