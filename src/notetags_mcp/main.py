"""Main entry point for the notetags-mcp server."""

import argparse
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from notetags_mcp import __version__
from notetags_mcp.auth import get_auth_provider
from notetags_mcp.config import Config
from notetags_mcp.sync import SyncManager
from notetags_mcp.tools import register_tools
from notetags_mcp.tools_write import register_tools_write
from notetags_mcp.workspace import TagWorkspace

logger = logging.getLogger(__name__)


def create_lifespan(config: Config, workspace: TagWorkspace):
    """Build the server lifespan: index on startup, poll for changes, close on exit."""

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[None]:
        logger.info("Building tag index for %s...", config.notes_root)
        file_count = await workspace.refresh()
        logger.info(
            "Initial index complete: %d tags in %d files",
            workspace.index.tag_count,
            file_count,
        )

        sync_mgr: SyncManager | None = None
        if config.sync_interval > 0:
            sync_mgr = SyncManager(workspace, config.sync_interval)
            sync_mgr.start()
        else:
            logger.info("Sync disabled, index updates only on refresh")

        try:
            yield
        finally:
            if sync_mgr is not None:
                await sync_mgr.stop()
            workspace.close()

    return lifespan


def create_server(config: Config, workspace: TagWorkspace | None = None) -> FastMCP:
    """Create and configure the MCP server with all components.

    Args:
        config: Configuration instance with all settings.
        workspace: Workspace session to serve; built from config if omitted.
    """
    if workspace is None:
        workspace = TagWorkspace.from_config(config)

    auth_provider = get_auth_provider(config)

    mcp = FastMCP(
        name="notetags",
        instructions=(
            "notetags gives access to the tags in a folder of plain-text notes: "
            "inline #hashtags and frontmatter tag lists. Use list_tags to see all "
            "tags, tag_files and tag_references to find where a tag is used, and "
            "rename_tag to rename or merge a tag across every note at once."
        ),
        auth=auth_provider,
        lifespan=create_lifespan(config, workspace),
    )

    logger.info("Registering read tools...")
    register_tools(mcp, workspace)

    logger.info("Registering write tools...")
    register_tools_write(mcp, config, workspace)

    logger.info("Server configured successfully")
    return mcp


def main() -> None:
    """Main function - starts the MCP server."""
    # Configure logging here to avoid side effects on import
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="notetags - MCP server for note tags")
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Run in read-only mode (disable rename tools)",
    )
    args = parser.parse_args()

    # CLI flag overrides env var
    config = Config.from_env(read_only_override=args.read_only if args.read_only else None)

    logger.info("=" * 50)
    logger.info("notetags-mcp %s starting...", __version__)
    logger.info("  NOTES ROOT:    %s", config.notes_root)
    logger.info("  PORT:          %s", config.port)
    logger.info("  EXTENSIONS:    %s", ", ".join(config.extensions))
    logger.info("  SYNC INTERVAL: %s", config.sync_interval or "disabled")
    logger.info("  HIER. RENAME:  %s", config.hierarchical_rename)
    logger.info("  AUTH:          %s", "enabled" if config.auth_token else "disabled")
    logger.info("  READ_ONLY:     %s", config.read_only)
    logger.info("=" * 50)

    try:
        mcp = create_server(config)
        logger.info("Starting MCP server on port %s...", config.port)
        mcp.run(transport="sse", host="0.0.0.0", port=config.port)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception:
        logger.exception("Server error")
        sys.exit(1)


if __name__ == "__main__":
    main()
