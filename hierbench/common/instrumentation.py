"""Measurement windows around an external power sampler.

The sampler (Intel PCM by default) is started as a child process that writes
a CSV of energy samples at a fixed interval until it is told to stop. A
:class:`MeasurementWindow` owns one sampler process for its whole lifetime
and always stops it on exit, including when the measured work raises.

The sampler command is a template; ``{interval}`` and ``{output}`` are
substituted per window::

    pcm 0.1 -r -silent -csv=energy_benchmarks/MongoDB_read_heavy_depth_3_epoch_1.csv
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import InstrumentationError

if TYPE_CHECKING:
    from hierbench.config.config_loader import InstrumentationConfig

logger = logging.getLogger(__name__)

DEFAULT_SAMPLER_COMMAND: tuple[str, ...] = ("pcm", "{interval}", "-r", "-silent", "-csv={output}")
DEFAULT_SAMPLING_INTERVAL_S = 0.1
IDLE_BASELINE_DURATION_S = 30 * 60


@dataclass
class MeasurementHandle:
    """A running sampler process and the artifact it writes."""

    label: str
    artifact: Path
    process: subprocess.Popen
    started_at: float = field(default_factory=time.monotonic)

    @property
    def running(self) -> bool:
        return self.process.poll() is None


class PowerMonitor:
    """Starts and stops the external power sampler."""

    def __init__(
        self,
        command: list[str] | tuple[str, ...] = DEFAULT_SAMPLER_COMMAND,
        interval_s: float = DEFAULT_SAMPLING_INTERVAL_S,
        output_dir: str | Path = "energy_benchmarks",
        ready_timeout_s: float = 5.0,
        stop_timeout_s: float = 10.0,
    ):
        if not command:
            raise InstrumentationError("sampler command must not be empty")
        self.command = list(command)
        self.interval_s = interval_s
        self.output_dir = Path(output_dir)
        self.ready_timeout_s = ready_timeout_s
        self.stop_timeout_s = stop_timeout_s

    @classmethod
    def from_config(cls, config: InstrumentationConfig) -> PowerMonitor:
        return cls(
            command=config.command,
            interval_s=config.interval_s,
            output_dir=config.output_dir,
            ready_timeout_s=config.ready_timeout_s,
            stop_timeout_s=config.stop_timeout_s,
        )

    def artifact_path(self, label: str) -> Path:
        return self.output_dir / label

    def build_command(self, artifact: Path) -> list[str]:
        return [
            part.format(interval=self.interval_s, output=str(artifact)) for part in self.command
        ]

    def open(self, label: str) -> MeasurementHandle:
        """Spawn the sampler writing to the artifact named by *label*.

        Blocks until the sampler has produced a non-empty artifact or
        ``ready_timeout_s`` elapses.

        Raises
        ------
        InstrumentationError
            If the sampler cannot be spawned or exits before the window is
            closed.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        artifact = self.artifact_path(label)
        command = self.build_command(artifact)

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            raise InstrumentationError(
                f"Failed to start power sampler {command[0]!r}: {exc}"
            ) from exc

        handle = MeasurementHandle(label=label, artifact=artifact, process=process)
        logger.info("Opened measurement window %s (pid=%d)", label, process.pid)
        self._wait_until_ready(handle)
        return handle

    def _wait_until_ready(self, handle: MeasurementHandle) -> None:
        deadline = time.monotonic() + self.ready_timeout_s
        while time.monotonic() < deadline:
            if not handle.running:
                raise InstrumentationError(
                    f"Power sampler exited with code {handle.process.returncode} "
                    f"before window {handle.label} was closed"
                )
            if handle.artifact.exists() and handle.artifact.stat().st_size > 0:
                return
            time.sleep(min(self.interval_s, 0.05))
        logger.warning(
            "Power sampler has not written %s after %.1fs; continuing",
            handle.artifact,
            self.ready_timeout_s,
        )

    def close(self, handle: MeasurementHandle) -> None:
        """Stop the sampler and wait for it to exit.

        The sampler gets SIGTERM so it can flush its CSV; if it is still
        running after ``stop_timeout_s`` it is killed. Once this returns the
        process has exited.
        """
        if handle.running:
            handle.process.terminate()
        try:
            returncode = handle.process.wait(timeout=self.stop_timeout_s)
        except subprocess.TimeoutExpired:
            logger.warning(
                "Power sampler for %s ignored SIGTERM for %.1fs; killing pid %d",
                handle.label,
                self.stop_timeout_s,
                handle.process.pid,
            )
            handle.process.kill()
            returncode = handle.process.wait()
        elapsed = time.monotonic() - handle.started_at
        logger.info(
            "Closed measurement window %s after %.3fs (exit=%s, artifact=%s)",
            handle.label,
            elapsed,
            returncode,
            handle.artifact,
        )

    def window(self, label: str) -> MeasurementWindow:
        return MeasurementWindow(self, label)


class MeasurementWindow:
    """Context manager that keeps the sampler running for its body.

    ``close`` runs on every exit path, so a failing workload never leaks a
    running sampler process. Use ``async with`` from coroutines: the blocking
    spawn, readiness poll and stop then run in a worker thread instead of on
    the event loop.
    """

    def __init__(self, monitor: PowerMonitor, label: str):
        self.monitor = monitor
        self.label = label
        self.handle: MeasurementHandle | None = None

    def _check_not_open(self) -> None:
        if self.handle is not None:
            raise InstrumentationError(f"Measurement window {self.label} is already open")

    def _release(self, exc: BaseException | None) -> MeasurementHandle | None:
        handle, self.handle = self.handle, None
        if exc is not None:
            logger.error("Measurement window %s aborted: %s", self.label, exc)
        return handle

    def __enter__(self) -> MeasurementHandle:
        self._check_not_open()
        self.handle = self.monitor.open(self.label)
        return self.handle

    def __exit__(self, exc_type, exc, tb) -> None:
        handle = self._release(exc)
        if handle is not None:
            self.monitor.close(handle)

    async def __aenter__(self) -> MeasurementHandle:
        self._check_not_open()
        self.handle = await asyncio.to_thread(self.monitor.open, self.label)
        return self.handle

    async def __aexit__(self, exc_type, exc, tb) -> None:
        handle = self._release(exc)
        if handle is not None:
            await asyncio.to_thread(self.monitor.close, handle)


async def measure_idle(
    monitor: PowerMonitor,
    label: str,
    duration_s: float = IDLE_BASELINE_DURATION_S,
) -> Path:
    """Hold a window open for *duration_s* with no workload activity.

    Returns the path of the idle baseline artifact.
    """
    logger.info("Idle baseline %s: sampling for %.1fs", label, duration_s)
    async with monitor.window(label) as handle:
        await asyncio.sleep(duration_s)
    return handle.artifact
