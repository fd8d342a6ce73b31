"""Scanner that extracts tags with exact positions from one file's text.

Three encodings are recognized:

- inline hashtags anywhere in the body: ``#tag`` or ``#project/frontend``
- YAML flow lists in frontmatter: ``tags: [alpha, beta]``
- YAML block lists in frontmatter::

      tags:
        - alpha
        - beta

Every location points at the tag text itself. The ``#`` of an inline tag and
the quotes around a YAML entry are outside the span, so a rename replaces
exactly ``length`` characters at ``(line, character)``.
"""

import logging
import re

import yaml

from notetags_mcp.tags.labels import LABEL_BODY, is_valid_label
from notetags_mcp.tags.models import EncodingKind, Location, TagOccurrence

logger = logging.getLogger(__name__)

# '#' not glued to a word character or another '#': skips color#fff and ## headings
INLINE_TAG_PATTERN = re.compile(rf"(?<![\w#])#({LABEL_BODY})")

FRONTMATTER_START = re.compile(r"^---\s*$")
FRONTMATTER_END = re.compile(r"^(?:---|\.\.\.)\s*$")

# Top-level key only; indented 'tags:' belongs to some nested mapping
TAGS_KEY_PATTERN = re.compile(r"^tags[ \t]*:(.*)$")
BLOCK_ITEM_PATTERN = re.compile(r"^([ \t]*)-(?:[ \t]+|$)(.*)$")

QUOTES = "'\""
BLANK = " \t\r"


def find_frontmatter(lines: list[str]) -> tuple[int, int] | None:
    """
    Locate a frontmatter block at the top of a file.

    Returns:
        (first_line, closing_line) of the block contents, i.e. the lines
        strictly between the two delimiters are lines[first_line:closing_line].
        None when there is no block or it is never closed.
    """
    if not lines or not FRONTMATTER_START.match(lines[0].lstrip("\ufeff")):
        return None
    for i in range(1, len(lines)):
        if FRONTMATTER_END.match(lines[i]):
            return 1, i
    return None


def scan(file_path: str, text: str) -> list[TagOccurrence]:
    """
    Extract every tag occurrence from a file.

    Args:
        file_path: Path recorded in each Location
        text: Full file content

    Returns:
        Occurrences ordered by (line, character)
    """
    lines = text.split("\n")
    occurrences: list[TagOccurrence] = []
    body_start = 0

    block = find_frontmatter(lines)
    if block is not None:
        first, closing = block
        occurrences.extend(_scan_frontmatter(file_path, lines, first, closing))
        body_start = closing + 1
    elif lines and FRONTMATTER_START.match(lines[0].lstrip("\ufeff")):
        logger.debug("Unterminated frontmatter in %s, scanning as body", file_path)

    for line_no in range(body_start, len(lines)):
        for match in INLINE_TAG_PATTERN.finditer(lines[line_no]):
            label = match.group(1)
            occurrences.append(
                TagOccurrence(
                    text=label,
                    location=Location(
                        file_path=file_path,
                        line=line_no,
                        character=match.start(1),
                        length=len(label),
                        encoding=EncodingKind.INLINE_HASH,
                    ),
                )
            )

    occurrences.sort(key=lambda o: (o.location.line, o.location.character))
    return occurrences


def _scan_frontmatter(
    file_path: str, lines: list[str], first: int, closing: int
) -> list[TagOccurrence]:
    """Extract tag list entries from the frontmatter lines[first:closing]."""
    try:
        raw = yaml.safe_load("\n".join(lines[first:closing]))
    except yaml.YAMLError as e:
        logger.debug("Invalid YAML frontmatter in %s: %s", file_path, e)
        return []

    if not isinstance(raw, dict) or "tags" not in raw:
        return []
    if not isinstance(raw["tags"], list):
        logger.debug("Frontmatter 'tags' in %s is not a list, skipping", file_path)
        return []

    for line_no in range(first, closing):
        match = TAGS_KEY_PATTERN.match(lines[line_no])
        if match:
            break
    else:
        return []

    value = match.group(1)
    stripped = value.strip()
    if stripped.startswith("["):
        bracket = match.start(1) + value.index("[")
        return _scan_flow_list(file_path, lines, line_no, bracket + 1, closing)
    if not stripped or stripped.startswith("#"):
        return _scan_block_list(file_path, lines, line_no + 1, closing)

    logger.debug("Unsupported 'tags' layout in %s, skipping", file_path)
    return []


def _scan_flow_list(
    file_path: str, lines: list[str], line_no: int, pos: int, closing: int
) -> list[TagOccurrence]:
    """Walk a flow list starting just after '[' until the matching ']'."""
    occurrences: list[TagOccurrence] = []

    while line_no < closing:
        line = lines[line_no]
        while pos < len(line):
            ch = line[pos]
            if ch in BLANK or ch == ",":
                pos += 1
                continue
            if ch == "]":
                return occurrences
            if ch == "#" and (pos == 0 or line[pos - 1] in BLANK):
                break  # comment runs to end of line
            if ch in QUOTES:
                end = line.find(ch, pos + 1)
                if end == -1:
                    return occurrences
                _add_entry(
                    occurrences, file_path, line[pos + 1 : end], line_no, pos + 1,
                    EncodingKind.YAML_FLOW_LIST_ENTRY, quoted=True,
                )
                pos = end + 1
                continue

            # Plain scalar runs to ',' or ']' or a ' #' comment
            end = pos
            while end < len(line) and line[end] not in ",]":
                if line[end] == "#" and line[end - 1] in BLANK:
                    break
                end += 1
            _add_entry(
                occurrences, file_path, line[pos:end].rstrip(BLANK), line_no, pos,
                EncodingKind.YAML_FLOW_LIST_ENTRY,
            )
            pos = end
        line_no += 1
        pos = 0

    return occurrences


def _scan_block_list(
    file_path: str, lines: list[str], line_no: int, closing: int
) -> list[TagOccurrence]:
    """Read '- entry' lines following a bare 'tags:' key."""
    occurrences: list[TagOccurrence] = []

    for current in range(line_no, closing):
        line = lines[current]
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        match = BLOCK_ITEM_PATTERN.match(line)
        if not match:
            break  # next key

        value = match.group(2)
        column = match.start(2)
        quoted = bool(value) and value[0] in QUOTES
        if quoted:
            end = value.find(value[0], 1)
            if end == -1:
                continue
            entry = value[1:end]
            column += 1
        elif value.startswith("#"):
            continue  # "- #x" is an empty item followed by a comment
        else:
            comment = re.search(r"[ \t]#", value)
            if comment:
                value = value[: comment.start()]
            entry = value.rstrip(BLANK)

        _add_entry(
            occurrences, file_path, entry, current, column,
            EncodingKind.YAML_BLOCK_LIST_ENTRY, quoted=quoted,
        )

    return occurrences


def _add_entry(
    occurrences: list[TagOccurrence],
    file_path: str,
    entry: str,
    line_no: int,
    column: int,
    encoding: EncodingKind,
    quoted: bool = False,
) -> None:
    # Unquoted, a leading "#" starts a YAML comment; quoted, it is part of the tag
    if quoted and entry.startswith("#"):
        entry = entry[1:]
        column += 1
    if not is_valid_label(entry):
        if entry:
            logger.debug("Skipping invalid tag entry %r in %s", entry, file_path)
        return
    occurrences.append(
        TagOccurrence(
            text=entry,
            location=Location(
                file_path=file_path,
                line=line_no,
                character=column,
                length=len(entry),
                encoding=encoding,
            ),
        )
    )
