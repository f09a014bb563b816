"""Pytest configuration and shared fakes for hierbench tests."""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path
from typing import Any

import pytest

# Make `hierbench` importable without installing the package.
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from hierbench.backends.base import DatabaseBackend  # noqa: E402
from hierbench.common.errors import BackendConnectionError  # noqa: E402
from hierbench.common.instrumentation import MeasurementHandle, PowerMonitor  # noqa: E402
from hierbench.common.scheduler import WorkloadTarget  # noqa: E402


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

FAKE_SAMPLER_SOURCE = textwrap.dedent(
    """
    import signal
    import sys
    import time

    interval = float(sys.argv[1])
    output = sys.argv[2].split("=", 1)[1]
    running = True


    def _stop(signum, frame):
        global running
        running = False


    signal.signal(signal.SIGTERM, _stop)

    with open(output, "w", encoding="utf-8") as handle:
        handle.write("timestamp,package_joules\\n")
        handle.flush()
        while running:
            handle.write(f"{time.time()},1.0\\n")
            handle.flush()
            time.sleep(interval)
    """
)


class RecordingMonitor(PowerMonitor):
    """Power monitor that records window events instead of spawning a sampler."""

    def __init__(self, output_dir: str | Path, events: list | None = None):
        super().__init__(command=["true"], output_dir=output_dir)
        self.events = events if events is not None else []

    def open(self, label: str) -> MeasurementHandle:
        self.events.append(("open", label))
        return MeasurementHandle(label=label, artifact=self.artifact_path(label), process=None)

    def close(self, handle: MeasurementHandle) -> None:
        self.events.append(("close", handle.label))


class RecordingTarget(WorkloadTarget):
    """Workload target that logs ``"R"``/``"W"`` per executed operation."""

    def __init__(self, events: list | None = None, fail_on: int | None = None):
        self.events = events if events is not None else []
        self.fail_on = fail_on

    def _record(self, op: str) -> None:
        if self.fail_on is not None and len(self.events) == self.fail_on:
            raise RuntimeError(f"operation {self.fail_on} failed")
        self.events.append(op)

    async def execute_read(self) -> None:
        self._record("R")

    async def execute_write(self) -> None:
        self._record("W")


class InMemoryBackend(DatabaseBackend):
    """Backend that stores documents in a list and logs every call."""

    def __init__(self, monitor, name: str = "Fake", refuse_connection: bool = False):
        super().__init__(monitor)
        self._name = name
        self.refuse_connection = refuse_connection
        self.connected = False
        self.documents: list[dict[str, Any]] = []
        self.calls: list[Any] = []
        self.target = RecordingTarget()

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_connected(self) -> bool:
        return self.connected

    @classmethod
    def from_config(cls, config, monitor):
        return cls(monitor)

    async def connect(self) -> None:
        self.calls.append("connect")
        if self.refuse_connection:
            raise BackendConnectionError(self.name, "refused")
        self.connected = True

    async def disconnect(self) -> None:
        self.calls.append("disconnect")
        self.connected = False

    async def clean(self) -> None:
        self.calls.append("clean")
        self.documents = []

    async def insert(self, batch_size, documents) -> None:
        self.calls.append(("insert", batch_size))
        self.documents.extend(documents)

    async def create_index(self, depth) -> None:
        self.calls.append(("create_index", depth))

    async def prepare_workload(self, depth, doc_count):
        return self.target


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_sampler_command(tmp_path: Path) -> list[str]:
    """Sampler command template running a Python script that mimics ``pcm``."""
    script = tmp_path / "fake_pcm.py"
    script.write_text(FAKE_SAMPLER_SOURCE, encoding="utf-8")
    return [sys.executable, str(script), "{interval}", "-csv={output}"]


@pytest.fixture
def recording_monitor(tmp_path: Path) -> RecordingMonitor:
    return RecordingMonitor(tmp_path / "energy")
