"""
Tag core for notetags-mcp.

Scans note files for inline hashtags and frontmatter tag lists, keeps an
in-memory index of every occurrence, derives the tag -> file -> reference
view, and renames or merges tags across files in one atomic edit.
"""

from notetags_mcp.tags.errors import (
    HierarchicalRenameDisabledError,
    InvalidTagError,
    TagError,
    TagNotFoundError,
)
from notetags_mcp.tags.hierarchy import HierarchyBuilder
from notetags_mcp.tags.index import TagIndex
from notetags_mcp.tags.labels import normalize_tag, validate_label
from notetags_mcp.tags.models import (
    EncodingKind,
    FileNode,
    Location,
    ReferenceNode,
    Renamed,
    RenameConflict,
    RenameResult,
    RequiresConfirmation,
    Tag,
    TagNode,
    TagOccurrence,
    TreeNode,
)
from notetags_mcp.tags.patterns import compile_pattern, pattern_for
from notetags_mcp.tags.rename import TagRenamer
from notetags_mcp.tags.scanner import scan
from notetags_mcp.tags.store import FileStore, LocalFileStore, MemoryFileStore
from notetags_mcp.tags.surfaces import ConfirmationPrompt, NavigationSurface

__all__ = [
    "ConfirmationPrompt",
    "EncodingKind",
    "FileNode",
    "FileStore",
    "HierarchicalRenameDisabledError",
    "HierarchyBuilder",
    "InvalidTagError",
    "LocalFileStore",
    "Location",
    "MemoryFileStore",
    "NavigationSurface",
    "ReferenceNode",
    "RenameConflict",
    "RenameResult",
    "Renamed",
    "RequiresConfirmation",
    "Tag",
    "TagError",
    "TagIndex",
    "TagNode",
    "TagNotFoundError",
    "TagOccurrence",
    "TagRenamer",
    "TreeNode",
    "compile_pattern",
    "normalize_tag",
    "pattern_for",
    "scan",
    "validate_label",
]
