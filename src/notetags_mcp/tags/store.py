"""File stores: where note text is listed, read and atomically rewritten.

The tag core only talks to the FileStore protocol. ``LocalFileStore`` backs
it with a directory on disk; ``MemoryFileStore`` keeps everything in a dict
and is handy for embedding and tests.

Both implement the same all-or-nothing contract for ``apply_atomic_edits``:
every file is checked against the content hash its edits were computed from,
and every span must still hold the text it is expected to replace. If any
check fails, nothing is written and the first offending file is reported.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
import tempfile
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Protocol

from notetags_mcp.tags.models import ApplyResult, FileEdits, TextEdit
from notetags_mcp.tags.walker import (
    DEFAULT_EXTENSIONS,
    compute_hash,
    normalize_extensions,
    walk_notes_root,
)

logger = logging.getLogger(__name__)


class FileStore(Protocol):
    """Storage the tag index is built from and renames are written to."""

    async def list_files(self) -> list[str]: ...

    async def read_text(self, file_path: str) -> str: ...

    async def apply_atomic_edits(self, edits: Sequence[FileEdits]) -> ApplyResult: ...

    async def stat_files(self) -> dict[str, float]: ...


class EditConflict(Exception):
    """A file no longer matches the edits computed for it."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(f"{file_path}: {reason}")
        self.file_path = file_path
        self.reason = reason


def line_offsets(text: str) -> list[int]:
    """Return the character offset at which each line starts."""
    return [0] + [m.end() for m in re.finditer("\n", text)]


def apply_text_edits(text: str, edits: Iterable[TextEdit]) -> str:
    """
    Apply single-line span replacements to text.

    Raises:
        ValueError: If a span is out of range, overlaps another edit, or no
            longer holds its expected text
    """
    offsets = line_offsets(text)
    result = text
    previous_start: int | None = None

    # Back to front so earlier offsets stay valid
    for edit in sorted(edits, key=lambda e: (e.line, e.character), reverse=True):
        if edit.line >= len(offsets):
            raise ValueError(f"line {edit.line + 1} does not exist")
        line_end = offsets[edit.line + 1] - 1 if edit.line + 1 < len(offsets) else len(text)
        start = offsets[edit.line] + edit.character
        end = start + edit.length
        if end > line_end:
            raise ValueError(f"span at line {edit.line + 1} runs past end of line")
        if previous_start is not None and end > previous_start:
            raise ValueError(f"overlapping edits at line {edit.line + 1}")
        if text[start:end] != edit.expected:
            raise ValueError(
                f"line {edit.line + 1} no longer contains '{edit.expected}' "
                f"at column {edit.character + 1}"
            )
        result = result[:start] + edit.replacement + result[end:]
        previous_start = start

    return result


def prepare_edits(
    originals: Mapping[str, str], edits: Sequence[FileEdits]
) -> dict[str, str]:
    """
    Compute new contents for every edited file, verifying each first.

    Raises:
        EditConflict: For the first file whose hash or spans do not match
    """
    new_contents: dict[str, str] = {}
    for file_edits in edits:
        text = originals[file_edits.file_path]
        if (
            file_edits.expected_hash is not None
            and compute_hash(text) != file_edits.expected_hash
        ):
            raise EditConflict(file_edits.file_path, "file changed since it was indexed")
        try:
            new_contents[file_edits.file_path] = apply_text_edits(text, file_edits.edits)
        except ValueError as e:
            raise EditConflict(file_edits.file_path, str(e)) from e
    return new_contents


class LocalFileStore:
    """FileStore over a directory of note files."""

    def __init__(self, root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        self.root = root
        self.extensions = normalize_extensions(extensions)

    def resolve(self, file_path: str) -> Path:
        """
        Resolve a store-relative path to an absolute path inside root.

        Raises:
            ValueError: If the path escapes the notes root
        """
        path = (self.root / file_path).resolve()
        root = self.root.resolve()
        if not str(path).startswith(str(root) + os.sep):
            raise ValueError(f"Path outside notes root: {file_path}")
        return path

    async def list_files(self) -> list[str]:
        return await asyncio.to_thread(
            lambda: [f.relative_path for f in walk_notes_root(self.root, self.extensions)]
        )

    async def read_text(self, file_path: str) -> str:
        return await asyncio.to_thread(self._read, self.resolve(file_path))

    async def stat_files(self) -> dict[str, float]:
        return await asyncio.to_thread(
            lambda: {
                f.relative_path: f.mtime for f in walk_notes_root(self.root, self.extensions)
            }
        )

    async def apply_atomic_edits(self, edits: Sequence[FileEdits]) -> ApplyResult:
        return await asyncio.to_thread(self._apply_atomic_edits, list(edits))

    @staticmethod
    def _read(path: Path) -> str:
        # newline="" keeps \r\n intact so offsets and rewrites match the disk
        with path.open(encoding="utf-8", newline="") as f:
            return f.read()

    @staticmethod
    def _stage(path: Path, text: str) -> Path:
        """Write text to a temp file next to path, ready for os.replace."""
        with tempfile.NamedTemporaryFile(
            "w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
            newline="",
        ) as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = Path(tmp.name)
        try:
            shutil.copymode(path, tmp_path)
        except OSError:
            pass  # keep default permissions
        return tmp_path

    def _apply_atomic_edits(self, edits: list[FileEdits]) -> ApplyResult:
        originals: dict[str, str] = {}
        paths: dict[str, Path] = {}
        for file_edits in edits:
            try:
                path = self.resolve(file_edits.file_path)
                originals[file_edits.file_path] = self._read(path)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                return ApplyResult(ok=False, conflict_path=file_edits.file_path, reason=str(e))
            paths[file_edits.file_path] = path

        try:
            new_contents = prepare_edits(originals, edits)
        except EditConflict as e:
            logger.warning("Edit conflict in %s: %s", e.file_path, e.reason)
            return ApplyResult(ok=False, conflict_path=e.file_path, reason=e.reason)

        staged: dict[str, Path] = {}
        try:
            for file_path, text in new_contents.items():
                staged[file_path] = self._stage(paths[file_path], text)
        except OSError as e:
            self._discard(staged.values())
            return ApplyResult(ok=False, conflict_path=file_path, reason=f"cannot stage write: {e}")

        replaced: list[str] = []
        for file_path, tmp_path in staged.items():
            try:
                os.replace(tmp_path, paths[file_path])
            except OSError as e:
                logger.error("Write failed for %s, rolling back %d file(s)", file_path, len(replaced))
                self._rollback(replaced, paths, originals)
                self._discard(p for fp, p in staged.items() if fp not in replaced)
                return ApplyResult(ok=False, conflict_path=file_path, reason=f"write failed: {e}")
            replaced.append(file_path)

        logger.debug("Applied edits to %d file(s)", len(replaced))
        return ApplyResult(ok=True, written=tuple(replaced))

    def _rollback(
        self, replaced: list[str], paths: dict[str, Path], originals: dict[str, str]
    ) -> None:
        for file_path in replaced:
            try:
                os.replace(self._stage(paths[file_path], originals[file_path]), paths[file_path])
            except OSError:
                logger.exception("Rollback failed for %s", file_path)

    @staticmethod
    def _discard(tmp_paths: Iterable[Path]) -> None:
        for tmp_path in tmp_paths:
            try:
                tmp_path.unlink()
            except OSError:
                pass


class MemoryFileStore:
    """FileStore that keeps note text in memory."""

    def __init__(self, files: Mapping[str, str] | None = None):
        self._files: dict[str, str] = dict(files or {})
        self._versions: dict[str, float] = {path: 1.0 for path in self._files}

    def write_text(self, file_path: str, text: str) -> None:
        self._files[file_path] = text
        self._versions[file_path] = self._versions.get(file_path, 0.0) + 1.0

    def delete(self, file_path: str) -> None:
        self._files.pop(file_path, None)
        self._versions.pop(file_path, None)

    def get(self, file_path: str) -> str | None:
        return self._files.get(file_path)

    async def list_files(self) -> list[str]:
        return sorted(self._files)

    async def read_text(self, file_path: str) -> str:
        try:
            return self._files[file_path]
        except KeyError:
            raise FileNotFoundError(file_path) from None

    async def stat_files(self) -> dict[str, float]:
        return dict(self._versions)

    async def apply_atomic_edits(self, edits: Sequence[FileEdits]) -> ApplyResult:
        for file_edits in edits:
            if file_edits.file_path not in self._files:
                return ApplyResult(
                    ok=False, conflict_path=file_edits.file_path, reason="file not found"
                )
        try:
            new_contents = prepare_edits(self._files, edits)
        except EditConflict as e:
            logger.warning("Edit conflict in %s: %s", e.file_path, e.reason)
            return ApplyResult(ok=False, conflict_path=e.file_path, reason=e.reason)

        for file_path, text in new_contents.items():
            self.write_text(file_path, text)
        return ApplyResult(ok=True, written=tuple(new_contents))
