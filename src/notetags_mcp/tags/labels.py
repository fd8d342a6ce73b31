"""Tag label rules: normalization, validation and hierarchy helpers."""

import re
from collections.abc import Iterable

from notetags_mcp.tags.errors import InvalidTagError

# One or more [A-Za-z0-9_-] segments joined by single slashes
LABEL_BODY = r"[A-Za-z0-9_-]+(?:/[A-Za-z0-9_-]+)*"
LABEL_PATTERN = re.compile(rf"^{LABEL_BODY}$")

SEPARATOR = "/"


def strip_hash(text: str) -> str:
    """Trim whitespace and drop a single leading '#'."""
    text = text.strip()
    if text.startswith("#"):
        text = text[1:]
    return text


def normalize_tag(text: str) -> str:
    """Return the comparison key for a tag: trimmed, no '#', case-folded."""
    return strip_hash(text).casefold()


def is_valid_label(text: str) -> bool:
    """Check whether text (without '#') is a well-formed tag label."""
    return bool(text) and LABEL_PATTERN.match(text) is not None


def validate_label(text: str) -> str:
    """
    Validate a user supplied tag label.

    Args:
        text: Label, optionally prefixed with '#'

    Returns:
        The cleaned label with its case preserved

    Raises:
        InvalidTagError: If the label is empty or has illegal characters
    """
    label = strip_hash(text)
    if not label:
        raise InvalidTagError("Tag name cannot be empty")
    if not is_valid_label(label):
        raise InvalidTagError(
            f"Invalid tag name '{label}'. Tags may contain only letters, numbers, "
            "underscores and hyphens, with '/' separating hierarchy levels."
        )
    return label


def get_parent_tag(key: str) -> str | None:
    """Return the parent of a hierarchical tag, e.g. 'a/b' -> 'a'."""
    if SEPARATOR not in key:
        return None
    return key.rsplit(SEPARATOR, 1)[0]


def get_child_tags(keys: Iterable[str], parent: str) -> list[str]:
    """Return every key nested under parent (any depth), sorted."""
    prefix = parent + SEPARATOR
    return sorted(k for k in keys if k.startswith(prefix))
