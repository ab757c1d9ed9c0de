"""Tests for change-aware output writing."""

import os
from pathlib import Path

import pytest

from sfcforge.core.errors import ComponentIOError
from sfcforge.core.writer import WriteOutcome, remove_stale, write_if_changed


class TestWriteIfChanged:
    def test_creates_file_and_parents(self, tmp_path: Path):
        path = tmp_path / "out" / "Hello.vue.js"

        outcome = write_if_changed(path, "app.component('Hello', {})\n")

        assert outcome == WriteOutcome.CREATED
        assert outcome.written
        assert path.read_text(encoding="utf-8") == "app.component('Hello', {})\n"
        assert path.stat().st_mode & 0o777 == 0o644

    def test_unchanged_content_is_not_rewritten(self, tmp_path: Path):
        path = tmp_path / "Hello.vue.js"
        write_if_changed(path, "same")
        os.utime(path, ns=(1_000_000_000, 1_000_000_000))

        outcome = write_if_changed(path, "same")

        assert outcome == WriteOutcome.UNCHANGED
        assert not outcome.written
        assert path.stat().st_mtime_ns == 1_000_000_000

    def test_changed_content_is_replaced(self, tmp_path: Path):
        path = tmp_path / "Hello.vue.js"
        write_if_changed(path, "old")
        path.chmod(0o600)

        outcome = write_if_changed(path, "new")

        assert outcome == WriteOutcome.UPDATED
        assert path.read_text(encoding="utf-8") == "new"
        assert path.stat().st_mode & 0o777 == 0o600

    def test_no_temporary_files_left(self, tmp_path: Path):
        write_if_changed(tmp_path / "a.js", "a")
        write_if_changed(tmp_path / "a.js", "b")

        assert [p.name for p in tmp_path.iterdir()] == ["a.js"]

    def test_utf8_output(self, tmp_path: Path):
        path = tmp_path / "de.json"

        write_if_changed(path, '{"bye": "Tschüss"}')

        assert path.read_bytes() == '{"bye": "Tschüss"}'.encode()

    def test_unwritable_location(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(ComponentIOError) as exc_info:
            write_if_changed(blocker / "Hello.vue.js", "x")

        assert exc_info.value.path == blocker / "Hello.vue.js"


class TestRemoveStale:
    def test_removes_existing_file(self, tmp_path: Path):
        path = tmp_path / "Hello.vue.css"
        path.write_text(".a {}")

        assert remove_stale(path)
        assert not path.exists()

    def test_missing_file(self, tmp_path: Path):
        assert not remove_stale(tmp_path / "Hello.vue.css")

    def test_undeletable_path(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(ComponentIOError, match="cannot remove stale output"):
            remove_stale(blocker / "Hello.vue.css")
