"""Tests for the note file walker."""

from pathlib import Path

import pytest

from notetags_mcp.tags.walker import FileInfo, compute_hash, normalize_extensions, walk_notes_root


class TestComputeHash:
    def test_computes_sha256(self):
        result = compute_hash("hello world")
        assert result == "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"

    def test_different_content_different_hash(self):
        assert compute_hash("foo") != compute_hash("bar")

    def test_same_content_same_hash(self):
        assert compute_hash("same") == compute_hash("same")


class TestNormalizeExtensions:
    def test_adds_dot_and_lowercases(self):
        assert normalize_extensions(["md", ".TXT", " org "]) == (".md", ".txt", ".org")

    def test_skips_blank_entries(self):
        assert normalize_extensions(["md", "", " "]) == (".md",)


class TestWalkNotesRoot:
    @pytest.fixture
    def fixtures_root(self) -> Path:
        return Path(__file__).parent.parent / "fixtures" / "notes"

    def test_discovers_note_files(self, fixtures_root: Path):
        files = [f.relative_path for f in walk_notes_root(fixtures_root)]
        assert files == ["inbox.md", "journal.txt", "projects/backend.md", "projects/website.md"]

    def test_file_info_has_required_fields(self, fixtures_root: Path):
        f = next(walk_notes_root(fixtures_root))
        assert isinstance(f, FileInfo)
        assert f.path.exists()
        assert f.relative_path == "inbox.md"
        assert f.mtime > 0

    def test_skips_hidden_directories(self, fixtures_root: Path):
        files = [f.relative_path for f in walk_notes_root(fixtures_root)]
        assert not any(".obsidian" in path for path in files)

    def test_filters_by_extension(self, fixtures_root: Path):
        files = [f.relative_path for f in walk_notes_root(fixtures_root, ["txt"])]
        assert files == ["journal.txt"]

    def test_skips_hidden_files(self, tmp_path: Path):
        (tmp_path / ".draft.md").write_text("#a")
        (tmp_path / "visible.md").write_text("#a")

        files = [f.relative_path for f in walk_notes_root(tmp_path)]
        assert files == ["visible.md"]

    def test_extension_match_is_case_insensitive(self, tmp_path: Path):
        (tmp_path / "LOUD.MD").write_text("#a")
        assert [f.relative_path for f in walk_notes_root(tmp_path)] == ["LOUD.MD"]

    def test_missing_root_yields_nothing(self, tmp_path: Path):
        assert list(walk_notes_root(tmp_path / "nope")) == []

    def test_skips_directories_named_like_notes(self, tmp_path: Path):
        (tmp_path / "folder.md").mkdir()
        (tmp_path / "folder.md" / "inner.md").write_text("#a")

        files = [f.relative_path for f in walk_notes_root(tmp_path)]
        assert files == ["folder.md/inner.md"]
