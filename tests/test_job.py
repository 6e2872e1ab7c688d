from __future__ import annotations

import os
import shutil
import threading
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from lazyjj_panel.host.handles import BufferId
from lazyjj_panel.runtime import TerminalBuffer, TerminalJob, spawn_interactive

pytestmark = pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX shell")


class Collector:
    def __init__(self) -> None:
        self.output: list[str] = []
        self.stderr: list[str] = []
        self.events: list[str] = []
        self.status: Optional[int] = None
        self.done = threading.Event()

    def on_output(self, data: str) -> None:
        self.output.append(data)

    def on_stderr_line(self, line: str) -> None:
        self.stderr.append(line)
        self.events.append(f"stderr:{line}")

    def on_exit(self, status: Optional[int]) -> None:
        self.status = status
        self.events.append("exit")
        self.done.set()


def run(command: str, **kwargs: Any) -> Collector:
    collector = Collector()
    job = TerminalJob(
        command,
        on_output=collector.on_output,
        on_exit=collector.on_exit,
        on_stderr_line=collector.on_stderr_line,
        **kwargs,
    ).start()
    assert job.wait(10)
    assert collector.done.is_set()
    return collector


def test_stderr_is_split_from_terminal_output() -> None:
    collector = run("sh -c 'echo visible; echo Error: boom >&2; echo second >&2; exit 3'")

    assert "visible" in "".join(collector.output)
    assert "boom" not in "".join(collector.output)
    assert collector.stderr == ["Error: boom", "second"]
    assert collector.status == 3


def test_exit_arrives_after_stderr_lines() -> None:
    collector = run("sh -c 'echo late >&2'")

    assert collector.events == ["stderr:late", "exit"]
    assert collector.status == 0


def test_job_runs_in_requested_directory(tmp_path: Path) -> None:
    collector = run("sh -c pwd", cwd=str(tmp_path))

    assert os.path.realpath(str(tmp_path)) in "".join(collector.output)


def test_closed_job_delivers_nothing() -> None:
    collector = Collector()
    job = TerminalJob("sh -c 'sleep 5'", on_exit=collector.on_exit).start()

    job.close()

    assert job.wait(10)
    assert not collector.done.is_set()


@pytest.mark.skipif(not os.path.isdir("/proc/self/fd"), reason="needs /proc")
def test_finished_jobs_release_their_descriptors() -> None:
    run("sh -c 'exit 0'")
    before = len(os.listdir("/proc/self/fd"))

    collectors = [run("sh -c 'exit 0'") for _ in range(5)]

    assert all(collector.status == 0 for collector in collectors)
    assert len(os.listdir("/proc/self/fd")) <= before


def test_finished_job_is_not_running() -> None:
    job = TerminalJob("sh -c 'exit 0'").start()

    assert job.wait(10)
    assert not job.is_running
    job.write("ignored")
    job.resize(100, 30)


def test_write_before_start_is_an_error() -> None:
    with pytest.raises(RuntimeError):
        TerminalJob("sh").write("x")


class DirectHost:
    """Runs callbacks inline instead of on an event loop."""

    def __init__(self) -> None:
        self.buffer = TerminalBuffer(BufferId(1), cols=40, rows=6)
        self.dispatched = 0

    def get_buffer(self, buffer_id: BufferId) -> TerminalBuffer:
        assert buffer_id == self.buffer.id
        return self.buffer

    def call_from_thread(self, callback: Callable[..., Any], *args: Any) -> Any:
        self.dispatched += 1
        return callback(*args)


def test_spawn_interactive_reports_exit_in_buffer(tmp_path: Path) -> None:
    host = DirectHost()
    exited = threading.Event()
    statuses: list[Optional[int]] = []
    lines: list[str] = []

    def on_exit(status: Optional[int]) -> None:
        statuses.append(status)
        exited.set()

    job = spawn_interactive(
        host,
        BufferId(1),
        "sh -c 'echo hello; echo Error: nope >&2'",
        cwd=str(tmp_path),
        on_exit=on_exit,
        on_error_line=lines.append,
    )

    assert exited.wait(10)
    assert host.buffer.job is job
    assert statuses == [0]
    assert lines == ["Error: nope"]
    screen = "\n".join(host.buffer.display())
    assert "hello" in screen
    assert "[Process exited 0]" in screen
    assert host.dispatched >= 2
