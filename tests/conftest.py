import asyncio
import time

import pytest

from vrchat_log_watcher.config import WatchSettings


@pytest.fixture
def fast_watch():
    """Polling watch settings that react quickly in tests."""
    return WatchSettings(
        debounce_ms=50, step_ms=10, force_polling=True, poll_delay_ms=50
    )


async def wait_until(predicate, timeout: float = 5.0, interval: float = 0.05):
    """Poll predicate until it is true or fail after timeout seconds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(interval)


def append_line(path, line: str) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write(line + "\n")
