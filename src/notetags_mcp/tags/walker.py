"""File walker for discovering note files under the notes root."""

import hashlib
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".md", ".txt")


@dataclass
class FileInfo:
    """Information about a discovered file."""

    path: Path  # Absolute path
    relative_path: str  # POSIX path relative to the notes root
    mtime: float


def compute_hash(content: str) -> str:
    """Compute SHA-256 hash of text content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def normalize_extensions(extensions: Iterable[str]) -> tuple[str, ...]:
    """Lower-case extensions and make sure each starts with a dot."""
    result = []
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        result.append(ext if ext.startswith(".") else f".{ext}")
    return tuple(result)


def walk_notes_root(
    notes_root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS
) -> Iterator[FileInfo]:
    """
    Walk the notes directory and yield FileInfo for each note file.

    Hidden files and anything inside a hidden directory (.git, .obsidian, ...)
    are skipped. Files are yielded in sorted path order.
    """
    if not notes_root.exists():
        return

    wanted = normalize_extensions(extensions)

    for file_path in sorted(notes_root.rglob("*")):
        if file_path.suffix.lower() not in wanted:
            continue

        relative_parts = file_path.relative_to(notes_root).parts
        if any(part.startswith(".") for part in relative_parts):
            continue

        try:
            if not file_path.is_file():
                continue
            mtime = file_path.stat().st_mtime
        except OSError as e:
            # Deleted or unreadable between listing and stat
            logger.debug("Skipping %s: %s", file_path, e)
            continue

        yield FileInfo(
            path=file_path,
            relative_path=file_path.relative_to(notes_root).as_posix(),
            mtime=mtime,
        )
