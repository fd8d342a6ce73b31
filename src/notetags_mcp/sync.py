"""Background sync manager that feeds file changes into the workspace.

Runs an asyncio task on the server's event loop that periodically compares
the store's modification times with the last poll and calls
``workspace.notify_file_changed`` for every file added, modified or deleted
outside the MCP tools.
"""

import asyncio
import logging

from notetags_mcp.workspace import TagWorkspace

logger = logging.getLogger(__name__)


class SyncManager:
    """Manages periodic polling of the file store for changes."""

    def __init__(self, workspace: TagWorkspace, interval: float):
        """Initialize the sync manager.

        Args:
            workspace: The workspace whose index is kept up to date.
            interval: Polling interval in seconds. Must be > 0.
        """
        if interval <= 0:
            raise ValueError(f"Sync interval must be positive, got {interval}")

        self._workspace = workspace
        self._interval = interval
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._known: dict[str, float] | None = None

    def start(self) -> None:
        """Start the polling task on the running event loop."""
        if self._task is not None and not self._task.done():
            logger.warning("Sync task already running")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._sync_loop(), name="notetags-sync")
        logger.info("Sync manager started (interval: %ss)", self._interval)

    async def stop(self) -> None:
        """Stop the polling task, waiting for an in-flight poll to finish."""
        if self._task is None or self._task.done():
            self._task = None
            return

        self._stop_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=self._interval + 1)
        except asyncio.TimeoutError:
            logger.warning("Sync task did not stop cleanly, cancelling")
            self._task.cancel()
        else:
            logger.info("Sync manager stopped")
        self._task = None

    async def sync_once(self) -> tuple[int, int, int]:
        """
        Poll the store once and notify the workspace of every change.

        The first call only records the current state.

        Returns:
            Tuple of (added, updated, deleted) counts.
        """
        current = await self._workspace.store.stat_files()
        if self._known is None:
            self._known = current
            return 0, 0, 0

        known = self._known
        added = [path for path in current if path not in known]
        updated = [path for path in current if path in known and current[path] != known[path]]
        deleted = [path for path in known if path not in current]

        for file_path in sorted(added + updated + deleted):
            await self._workspace.notify_file_changed(file_path)

        self._known = current
        return len(added), len(updated), len(deleted)

    async def _sync_loop(self) -> None:
        """Main sync loop - runs as a task on the event loop."""
        logger.debug("Sync loop started")

        while not self._stop_event.is_set():
            try:
                added, updated, deleted = await self.sync_once()
                if added or updated or deleted:
                    logger.info(
                        "Auto-sync: %d added, %d updated, %d deleted",
                        added,
                        updated,
                        deleted,
                    )
                else:
                    logger.debug("Auto-sync: no changes detected")
            except Exception:
                logger.exception("Error during auto-sync")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

        logger.debug("Sync loop stopped")
