"""
notetags-mcp - MCP server for the tags in a folder of plain-text notes.

Indexes inline hashtags (#tag) and YAML frontmatter tag lists across a notes
directory, serves a tag -> file -> reference view, and renames or merges tags
across every file in one atomic edit.

Stack:
- Python + FastMCP (official SDK)
- In-memory tag index (rebuilt from disk each session)
- SSE (remote HTTP transport)
- Plain-text notes (source of truth)
"""

__version__ = "0.1.0"
