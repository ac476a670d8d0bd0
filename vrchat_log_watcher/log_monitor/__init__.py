"""
Log monitoring for the VRChat log watcher.

Finds the newest VRChat log file, tails it and turns its lines into events.
"""

from .directory import LogDirectoryWatcher
from .extractor import SpecialEventExtractor
from .files import get_latest_log_file, is_log_file
from .monitor import VrchatLogWatcher, WatcherState
from .parser import LineClassifier, classify_line
from .tailer import LineTailer

__all__ = [
    "LineClassifier",
    "LineTailer",
    "LogDirectoryWatcher",
    "SpecialEventExtractor",
    "VrchatLogWatcher",
    "WatcherState",
    "classify_line",
    "get_latest_log_file",
    "is_log_file",
]
