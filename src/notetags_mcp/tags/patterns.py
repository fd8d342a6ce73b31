"""Search patterns that find a tag in any of its encodings."""

import re

from notetags_mcp.tags.labels import strip_hash
from notetags_mcp.tags.models import Tag

# Characters that would continue a tag; a match must not be followed by one
TAG_CONTINUATION = r"(?![\w/-])"


def pattern_for(tag: Tag | str) -> str:
    """
    Build one regular expression matching a tag in every encoding.

    Matches, case-insensitively:
    - inline ``#tag`` not glued to a preceding word character
    - an entry of a ``tags: [a, tag]`` flow list
    - a ``- tag`` block list item

    The tag text is escaped, so labels are matched literally. Python ``re``
    syntax with inline flags; block list items are matched wherever they
    appear since a line-based search can't see the enclosing key.
    """
    label = re.escape(tag.label if isinstance(tag, Tag) else strip_hash(tag))
    inline = rf"(?<![\w#])#{label}{TAG_CONTINUATION}"
    flow = rf"^tags[ \t]*:[ \t]*\[[^\]\n]*?(?<![^\s\[,'\"]){label}{TAG_CONTINUATION}"
    block = rf"^[ \t]*-[ \t]+(?:['\"]#?)?{label}['\"]?[ \t]*(?:#[^\r\n]*)?\r?$"
    return rf"(?im)(?:{inline}|{flow}|{block})"


def compile_pattern(tag: Tag | str) -> re.Pattern[str]:
    """Compiled form of pattern_for(tag)."""
    return re.compile(pattern_for(tag))
