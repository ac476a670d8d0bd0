"""Watch VRChat's rotating log files and publish parsed events."""

from .events import EventBus, EventType, LogEntry, Severity
from .location import ParsedLocation, parse_location
from .log_monitor import VrchatLogWatcher
from .utils import get_vrchat_log_dir

__all__ = [
    "EventBus",
    "EventType",
    "LogEntry",
    "ParsedLocation",
    "Severity",
    "VrchatLogWatcher",
    "get_vrchat_log_dir",
    "parse_location",
]
