"""Tests for tag search patterns."""

import pytest

from notetags_mcp.tags.models import Tag
from notetags_mcp.tags.patterns import compile_pattern, pattern_for
from notetags_mcp.tags.scanner import scan


class TestPatternFor:
    def test_uses_inline_flags(self):
        assert pattern_for("bug").startswith("(?im)")

    def test_hash_is_optional_in_input(self):
        assert pattern_for("#bug") == pattern_for("bug")

    def test_accepts_tag_object(self):
        assert pattern_for(Tag(key="bug", label="Bug")) == pattern_for("Bug")

    def test_label_is_escaped(self):
        assert not compile_pattern("a.b").search("#axb")
        assert compile_pattern("a.b").search("#a.b")


class TestInlineMatches:
    @pytest.mark.parametrize("text", ["#bug", "a #bug here", "(#bug)", "#BUG", "line\n#bug."])
    def test_matches(self, text):
        assert compile_pattern("bug").search(text)

    @pytest.mark.parametrize("text", ["#bugfix", "a#bug", "##bug", "#bug/ui", "#bug-2", "bug"])
    def test_no_match(self, text):
        assert not compile_pattern("bug").search(text)

    def test_hierarchical_tag(self):
        pattern = compile_pattern("project/frontend")
        assert pattern.search("see #project/frontend")
        assert not pattern.search("see #project")


class TestFrontmatterMatches:
    @pytest.mark.parametrize(
        "text",
        [
            "---\ntags: [bug]\n---",
            "tags: [alpha, bug, beta]",
            "tags: ['bug']",
            'tags: ["#bug"]',
            "tags:[Bug]",
        ],
    )
    def test_flow_list(self, text):
        assert compile_pattern("bug").search(text)

    @pytest.mark.parametrize("text", ["tags: [debug]", "tags: [bugs]", "title: [bug]"])
    def test_flow_list_no_match(self, text):
        assert not compile_pattern("bug").search(text)

    @pytest.mark.parametrize("text", ["tags:\n  - bug", "- 'bug'", "  - bug  # note", "-\tBUG"])
    def test_block_list(self, text):
        assert compile_pattern("bug").search(text)

    @pytest.mark.parametrize("text", ["  - bugs", "  - a bug", "-bug"])
    def test_block_list_no_match(self, text):
        assert not compile_pattern("bug").search(text)

    def test_block_list_with_crlf_line_endings(self):
        text = "---\r\ntags:\r\n  - bug\r\n  - 'web'  # site\r\n---\r\nbody\r\n"
        assert compile_pattern("bug").search(text)
        assert compile_pattern("web").search(text)

    def test_matches_every_indexed_block_entry(self):
        text = "---\r\ntags:\r\n  - bug\r\n  - '#web'\r\n---\r\n"
        occurrences = scan("n.md", text)
        assert [o.text for o in occurrences] == ["bug", "web"]
        for occurrence in occurrences:
            assert compile_pattern(occurrence.text).search(text)
