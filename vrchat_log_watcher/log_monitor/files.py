"""Locating the newest VRChat log file in a directory."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..config import settings

DEFAULT_LOG_FILE_PREFIX = "output_log_"


@dataclass(frozen=True)
class CandidateFile:
    filename: str
    created_at_ms: int


def is_log_file(filename: str, prefix: str = DEFAULT_LOG_FILE_PREFIX) -> bool:
    """Whether filename follows the log file naming convention."""
    return filename.startswith(prefix)


def _creation_time_ms(entry: os.DirEntry) -> int:
    # st_birthtime exists on Windows (3.12+) and macOS, Linux falls back to ctime
    stat = entry.stat()
    created = getattr(stat, "st_birthtime", None)
    if created is None:
        created = stat.st_ctime
    return int(created * 1000)


def get_latest_log_file(
    log_dir: Path | str, prefix: Optional[str] = None
) -> Optional[Path]:
    """Return the most recently created log file in log_dir.

    Files created at the same millisecond keep directory listing order.

    Args:
        log_dir: Directory to scan
        prefix: Filename prefix of log files, defaults to settings.log_file_prefix

    Returns:
        Path of the newest log file, or None when there is none

    Raises:
        OSError: If the directory cannot be listed
    """
    prefix = prefix if prefix is not None else settings.log_file_prefix

    candidates: List[CandidateFile] = []
    with os.scandir(log_dir) as entries:
        for entry in entries:
            if not is_log_file(entry.name, prefix):
                continue
            try:
                created_at_ms = _creation_time_ms(entry)
            except FileNotFoundError:
                # Removed between listing and stat
                continue
            candidates.append(
                CandidateFile(filename=entry.name, created_at_ms=created_at_ms)
            )

    if not candidates:
        return None

    candidates.sort(key=lambda c: c.created_at_ms, reverse=True)
    return Path(log_dir) / candidates[0].filename
