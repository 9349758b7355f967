"""Tests for subprocess execution with timeout."""

import asyncio
import sys
import time

import pytest

from scanner.process import run_process


class TestRunProcess:
    """Tests for run_process()."""

    def test_collects_output_and_status(self, tmp_path):
        code = "import sys; print('out'); sys.stderr.write('err'); sys.exit(3)"
        result = asyncio.run(run_process([sys.executable, "-c", code], cwd=str(tmp_path), timeout=10))
        assert result.returncode == 3
        assert result.stdout.strip() == "out"
        assert result.stderr == "err"

    def test_runs_in_working_directory(self, tmp_path):
        code = "import os; print(os.getcwd())"
        result = asyncio.run(run_process([sys.executable, "-c", code], cwd=str(tmp_path), timeout=10))
        assert result.stdout.strip() == str(tmp_path.resolve())

    def test_large_output_does_not_stall(self, tmp_path):
        code = "import sys; sys.stdout.write('x' * 2000000); sys.stderr.write('y' * 200000)"
        result = asyncio.run(run_process([sys.executable, "-c", code], cwd=str(tmp_path), timeout=20))
        assert result.returncode == 0
        assert len(result.stdout) == 2000000
        assert len(result.stderr) == 200000

    def test_timeout_raises_and_stops_process(self, tmp_path):
        code = "import time; print('partial', flush=True); time.sleep(30)"
        start = time.monotonic()
        with pytest.raises(TimeoutError):
            asyncio.run(run_process([sys.executable, "-c", code], cwd=str(tmp_path), timeout=0.5))
        assert time.monotonic() - start < 10

    def test_process_ignoring_terminate_is_killed(self, tmp_path):
        code = (
            "import signal, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
            "time.sleep(30)\n"
        )
        start = time.monotonic()
        with pytest.raises(TimeoutError):
            asyncio.run(
                run_process([sys.executable, "-c", code], cwd=str(tmp_path), timeout=1.0, grace=0.1)
            )
        assert time.monotonic() - start < 10

    def test_missing_executable_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            asyncio.run(run_process([str(tmp_path / "no-such-binary")], cwd=str(tmp_path), timeout=5))

    def test_timeout_does_not_affect_sibling(self, tmp_path):
        slow = [sys.executable, "-c", "import time; time.sleep(30)"]
        fast = [sys.executable, "-c", "import time; time.sleep(0.2); print('done')"]

        async def _both():
            return await asyncio.gather(
                run_process(slow, cwd=str(tmp_path), timeout=0.5),
                run_process(fast, cwd=str(tmp_path), timeout=10),
                return_exceptions=True,
            )

        slow_result, fast_result = asyncio.run(_both())
        assert isinstance(slow_result, TimeoutError)
        assert fast_result.stdout.strip() == "done"

    def test_cancellation_stops_process_and_leaves_no_tasks(self, tmp_path):
        code = "import time; print('started', flush=True); time.sleep(30)"

        async def _cancel():
            task = asyncio.ensure_future(run_process([sys.executable, "-c", code], cwd=str(tmp_path), timeout=30))
            await asyncio.sleep(0.5)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return asyncio.all_tasks() - {asyncio.current_task()}

        start = time.monotonic()
        leftover = asyncio.run(_cancel())
        assert leftover == set()
        assert time.monotonic() - start < 10
