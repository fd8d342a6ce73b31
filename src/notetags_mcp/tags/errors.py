"""Exceptions raised by the tag core."""


class TagError(Exception):
    """Base class for tag errors reported to the user."""


class InvalidTagError(TagError, ValueError):
    """Raised when a label does not satisfy the tag character rules."""


class TagNotFoundError(TagError, LookupError):
    """Raised when a tag has no occurrences in the index."""

    def __init__(self, tag: str):
        super().__init__(f"Tag not found: #{tag}")
        self.tag = tag


class HierarchicalRenameDisabledError(TagError):
    """Raised when a cascading rename is requested but not enabled."""
