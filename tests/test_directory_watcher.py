"""Tests for LogDirectoryWatcher."""

import asyncio

import pytest

from conftest import append_line, wait_until
from vrchat_log_watcher.log_monitor.directory import LogDirectoryWatcher


class TestLogDirectoryWatcher:
    @pytest.mark.asyncio
    async def test_reports_created_and_deleted_files(self, tmp_path, fast_watch):
        changes = []

        async def on_change(filename: str) -> None:
            changes.append(filename)

        watcher = LogDirectoryWatcher(tmp_path, on_change, watch=fast_watch)
        await watcher.start()
        try:
            await asyncio.sleep(0.3)
            (tmp_path / "output_log_new.txt").write_text("")
            await wait_until(lambda: "output_log_new.txt" in changes)

            (tmp_path / "output_log_new.txt").unlink()
            await wait_until(lambda: changes.count("output_log_new.txt") >= 2)
        finally:
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_ignores_modifications(self, tmp_path, fast_watch):
        existing = tmp_path / "output_log_existing.txt"
        existing.write_text("")
        changes = []

        async def on_change(filename: str) -> None:
            changes.append(filename)

        watcher = LogDirectoryWatcher(tmp_path, on_change, watch=fast_watch)
        await watcher.start()
        try:
            await asyncio.sleep(0.3)
            append_line(existing, "modified")
            await asyncio.sleep(0.5)

            assert changes == []
        finally:
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_start_twice_warns(self, tmp_path, fast_watch, caplog):
        async def on_change(filename: str) -> None:
            pass

        watcher = LogDirectoryWatcher(tmp_path, on_change, watch=fast_watch)
        await watcher.start()
        try:
            await watcher.start()

            assert watcher.is_running
            assert "Already watching directory" in caplog.text
        finally:
            await watcher.stop()

        assert not watcher.is_running

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, tmp_path, fast_watch):
        async def on_change(filename: str) -> None:
            pass

        watcher = LogDirectoryWatcher(tmp_path, on_change, watch=fast_watch)

        await watcher.stop()
        await watcher.start()
        await watcher.stop()
        await watcher.stop()

        assert not watcher.is_running

    @pytest.mark.asyncio
    async def test_callback_failure_is_raised_from_wait(self, tmp_path, fast_watch):
        async def on_change(filename: str) -> None:
            raise PermissionError("directory unreadable")

        watcher = LogDirectoryWatcher(tmp_path, on_change, watch=fast_watch)
        await watcher.start()
        try:
            await asyncio.sleep(0.3)
            (tmp_path / "output_log_new.txt").write_text("")

            with pytest.raises(PermissionError):
                await asyncio.wait_for(watcher.wait(), timeout=5)
        finally:
            await watcher.stop()
