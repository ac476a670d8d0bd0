"""Following a single log file from its end."""

import asyncio
import errno
from pathlib import Path
from typing import Callable, List, Optional

import aiofiles
from aiofiles import os as aioos
from watchfiles import Change, awatch

from ..config import WatchSettings, settings
from ..logger import logger

LineCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]


class LineTailer:
    """Delivers lines appended to a file after start(), one callback per line.

    Lines already in the file when the tailer starts are skipped. Once the
    tailer is stopped, or has failed, nothing more is delivered.
    """

    def __init__(
        self,
        path: Path,
        on_line: LineCallback,
        on_error: Optional[ErrorCallback] = None,
        watch: Optional[WatchSettings] = None,
    ):
        """Initialize tailer.

        Args:
            path: File to follow
            on_line: Called with every complete line, in append order
            on_error: Called once if the file can no longer be read
            watch: awatch tuning, defaults to settings.watch
        """
        self.path = Path(path)
        self.on_line = on_line
        self.on_error = on_error
        self.watch = watch or settings.watch

        self._position = 0
        self._partial = b""
        # Set when start() lands mid-line, the tail of that line is not ours
        self._skip_to_newline = False
        self._active = False
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def position(self) -> int:
        """Byte offset up to which the file has been read."""
        return self._position

    async def start(self) -> None:
        if self._active or self._task is not None:
            logger.warning(f"Already tailing {self.path}")
            return

        self._active = True
        try:
            self._position = await aioos.path.getsize(self.path)
            self._skip_to_newline = await self._ends_mid_line()
        except OSError as e:
            self._fail(e)
            return

        self._task = asyncio.create_task(self._watch_loop())
        logger.info(f"Started tailing {self.path} at offset {self._position}")

    async def stop(self) -> None:
        """Stop tailing. Safe to call repeatedly."""
        was_active = self._active
        self._active = False
        self._stop_event.set()

        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if was_active:
            logger.info(f"Stopped tailing {self.path}")

    async def _watch_loop(self) -> None:
        try:
            async for changes in awatch(
                self.path.parent,
                stop_event=self._stop_event,
                recursive=False,
                **self.watch.awatch_kwargs(),
            ):
                if not self._active:
                    break

                relevant = {
                    change_type
                    for change_type, changed_path in changes
                    if Path(changed_path).name == self.path.name
                }
                if not relevant:
                    continue

                if Change.deleted in relevant and not await aioos.path.exists(
                    self.path
                ):
                    raise FileNotFoundError(
                        errno.ENOENT, "Log file removed while tailing", str(self.path)
                    )

                if Change.added in relevant:
                    logger.info(f"Log file recreated: {self.path}")
                    self._position = 0
                    self._partial = b""
                    self._skip_to_newline = False

                await self._process_changes()

        except asyncio.CancelledError:
            logger.debug(f"Tail loop cancelled for {self.path}")
            raise
        except Exception as e:
            self._fail(e)

    async def _process_changes(self) -> None:
        """Read everything appended since the last call and deliver it."""
        for line in await self._read_new_lines():
            if not self._active:
                return
            self.on_line(line)

    async def _read_new_lines(self) -> List[str]:
        current_size = await aioos.path.getsize(self.path)

        if current_size < self._position:
            logger.info(f"Log file truncated: {self.path}, reading from beginning")
            self._position = 0
            self._partial = b""
            self._skip_to_newline = False

        if current_size == self._position:
            return []

        async with aiofiles.open(self.path, "rb") as f:
            await f.seek(self._position)
            chunk = await f.read()
            self._position = await f.tell()

        return self._split_lines(chunk)

    async def _ends_mid_line(self) -> bool:
        if self._position == 0:
            return False
        async with aiofiles.open(self.path, "rb") as f:
            await f.seek(self._position - 1)
            return await f.read(1) != b"\n"

    def _split_lines(self, chunk: bytes) -> List[str]:
        buffer = self._partial + chunk
        if self._skip_to_newline:
            newline = buffer.find(b"\n")
            if newline == -1:
                self._partial = b""
                return []
            buffer = buffer[newline + 1 :]
            self._skip_to_newline = False

        *complete, self._partial = buffer.split(b"\n")
        return [raw.decode("utf-8", errors="replace").rstrip("\r") for raw in complete]

    def _fail(self, error: Exception) -> None:
        # Only the first failure is reported
        if not self._active:
            return
        self._active = False
        self._stop_event.set()

        logger.warning(f"Stopped tailing {self.path} after error: {error}")
        if self.on_error is not None:
            self.on_error(error)
