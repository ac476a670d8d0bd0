"""Following the active VRChat log file and publishing parsed events."""

import asyncio
import functools
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..config import WatchSettings, settings
from ..events.base import RawLine
from ..events.bus import EventBus
from ..events.types import SEVERITY_EVENTS, EventType, Severity
from ..location import parse_location
from ..logger import logger
from ..utils.paths import get_vrchat_log_dir
from .directory import LogDirectoryWatcher
from .extractor import LocationParser, SpecialEventExtractor
from .files import get_latest_log_file, is_log_file
from .parser import LineClassifier
from .tailer import LineTailer


class WatcherState(str, Enum):
    UNINITIALIZED = "uninitialized"
    IDLE = "idle"
    TAILING = "tailing"
    RETARGETING = "retargeting"
    STOPPED = "stopped"


class VrchatLogWatcher:
    """Tails the newest log file in a directory and publishes its lines.

    Every line is published as ``raw``. Lines that parse are also published as
    ``data`` and under their severity, followed by any derived event.
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        log_dir: Optional[Path | str] = None,
        *,
        log_dir_resolver: Callable[[], Path | str] = get_vrchat_log_dir,
        location_parser: LocationParser = parse_location,
        file_prefix: Optional[str] = None,
        watch: Optional[WatchSettings] = None,
    ):
        """Initialize log watcher.

        Args:
            event_bus: Bus to publish to, a new one is created when omitted
            log_dir: Directory to watch, falls back to settings.log_dir and
                then to log_dir_resolver()
            log_dir_resolver: Resolves the platform's log directory
            location_parser: Parses the location of world join lines
            file_prefix: Log filename prefix, defaults to settings.log_file_prefix
            watch: awatch tuning, defaults to settings.watch
        """
        self.event_bus = event_bus or EventBus()
        if log_dir is None:
            log_dir = settings.log_dir or log_dir_resolver()
        self.log_dir = Path(log_dir)
        self.file_prefix = (
            file_prefix if file_prefix is not None else settings.log_file_prefix
        )
        self.watch = watch or settings.watch

        self.classifier = LineClassifier()
        self.extractor = SpecialEventExtractor(location_parser)

        self._current_log_file: Optional[Path] = None
        self._tailer: Optional[LineTailer] = None
        # Bumped on every switch, line callbacks from older tailers are dropped
        self._generation = 0
        self._state = WatcherState.UNINITIALIZED
        self._lock = asyncio.Lock()

        self._directory_watcher = LogDirectoryWatcher(
            self.log_dir, self._on_directory_change, watch=self.watch
        )

    @property
    def current_log_file(self) -> Optional[Path]:
        return self._current_log_file

    @property
    def state(self) -> WatcherState:
        return self._state

    async def start(self) -> None:
        """Start tailing the newest log file and watching for new ones.

        Raises:
            OSError: If the log directory cannot be read
        """
        if self._state not in (WatcherState.UNINITIALIZED, WatcherState.STOPPED):
            logger.warning(f"Log watcher for {self.log_dir} already started")
            return

        logger.info(f"Starting log watcher in {self.log_dir}")
        async with self._lock:
            await self._switch_to(get_latest_log_file(self.log_dir, self.file_prefix))
        await self._directory_watcher.start()

    async def stop(self) -> None:
        await self._directory_watcher.stop()
        async with self._lock:
            await self._release_tailer()
            self._state = WatcherState.STOPPED
        logger.info(f"Stopped log watcher in {self.log_dir}")

    async def run(self) -> None:
        """Start and block until the directory watch ends."""
        await self.start()
        await self._directory_watcher.wait()

    async def __aenter__(self) -> "VrchatLogWatcher":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    def process_line(self, line: str) -> None:
        """Publish a tailed line and everything parsed from it."""
        self.event_bus.publish(
            EventType.RAW, RawLine(line=line, log_file=self._current_log_file)
        )

        entry = self.classifier.classify(line)
        if entry is None:
            return

        self.event_bus.publish(EventType.DATA, entry)
        if isinstance(entry.severity, Severity):
            self.event_bus.publish(SEVERITY_EVENTS[entry.severity], entry)
        else:
            logger.debug(f"No severity event for '{entry.severity}'")

        derived = self.extractor.extract(entry)
        if derived is not None:
            self.event_bus.publish(derived.event_type, derived)

    async def _on_directory_change(self, filename: str) -> None:
        if not is_log_file(filename, self.file_prefix):
            return

        async with self._lock:
            if self._state == WatcherState.STOPPED:
                return
            latest = get_latest_log_file(self.log_dir, self.file_prefix)
            if latest == self._current_log_file:
                logger.debug(f"Change to {filename}, still tailing {latest}")
                return
            logger.info(f"Newest log file changed: {self._current_log_file} -> {latest}")
            await self._switch_to(latest)

    async def _switch_to(self, log_file: Optional[Path]) -> None:
        """Replace the active tailer. Callers hold self._lock."""
        self._state = WatcherState.RETARGETING
        await self._release_tailer()

        self._generation += 1
        self._current_log_file = log_file

        if log_file is None:
            logger.info(f"No log file in {self.log_dir}, waiting for one")
            self._state = WatcherState.IDLE
            return

        generation = self._generation
        self._tailer = LineTailer(
            log_file,
            on_line=functools.partial(self._handle_line, generation),
            on_error=functools.partial(self._handle_tailer_error, generation),
            watch=self.watch,
        )
        self._state = WatcherState.TAILING
        await self._tailer.start()

    async def _release_tailer(self) -> None:
        tailer, self._tailer = self._tailer, None
        if tailer is not None:
            await tailer.stop()

    def _handle_line(self, generation: int, line: str) -> None:
        if generation != self._generation:
            logger.debug(f"Dropping line from replaced tailer: {line}")
            return
        self.process_line(line)

    def _handle_tailer_error(self, generation: int, error: Exception) -> None:
        if generation != self._generation:
            return
        # Keep current_log_file so only a different newest file retargets
        logger.warning(
            f"Lost log file {self._current_log_file}: {error}, "
            "waiting for the next log file"
        )
        self._tailer = None
        self._state = WatcherState.IDLE
