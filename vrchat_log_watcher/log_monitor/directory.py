"""Directory watching using watchfiles."""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional

from watchfiles import Change, awatch

from ..config import WatchSettings, settings
from ..logger import logger

# watchfiles reports creates, deletes and renames as added/deleted
RENAME_CHANGES = frozenset({Change.added, Change.deleted})


class LogDirectoryWatcher:
    """Reports files created, deleted or renamed in a single directory."""

    def __init__(
        self,
        directory: Path,
        on_change: Callable[[str], Awaitable[None]],
        watch: Optional[WatchSettings] = None,
    ):
        """Initialize directory watcher.

        Args:
            directory: Directory to watch (not recursive)
            on_change: Awaited with the base name of every changed file
            watch: awatch tuning, defaults to settings.watch
        """
        self.directory = Path(directory)
        self.on_change = on_change
        self.watch = watch or settings.watch

        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self._task is not None:
            logger.warning(f"Already watching directory {self.directory}")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._watch_loop())
        self._task.add_done_callback(self._on_loop_done)
        logger.info(f"Started watching directory {self.directory}")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return

        self._stop_event.set()
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info(f"Stopped watching directory {self.directory}")

    async def wait(self) -> None:
        """Block until the watch loop ends, re-raising its failure."""
        task = self._task
        if task is None:
            return
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()

    async def _watch_loop(self) -> None:
        async for changes in awatch(
            self.directory,
            stop_event=self._stop_event,
            recursive=False,
            **self.watch.awatch_kwargs(),
        ):
            for change_type, changed_path in changes:
                if change_type not in RENAME_CHANGES:
                    continue
                filename = Path(changed_path).name
                logger.debug(f"Directory change {change_type.name}: {filename}")
                await self.on_change(filename)

    def _on_loop_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Directory watch for {self.directory} failed: {error}",
                exc_info=error,
            )
