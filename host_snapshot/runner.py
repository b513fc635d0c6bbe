"""Sequence the collection sections, time them and write the report file."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
from pathlib import Path
import time
from typing import Callable, List, Optional, Protocol, TypeVar

from .diagnostics import Alert, evaluate
from .formatting import Report, SectionTiming, assemble_report, render_report
from .network import (
    PING_COUNT,
    PING_TARGET,
    NetworkAdapterStatus,
    NetworkInterfaceStat,
    PingResult,
    PsutilNetworkReader,
    SubprocessPingProber,
)
from .ranking import ProcessRanking, rank_processes
from .system_state import (
    DiskUsage,
    HardwareSummary,
    MetricSnapshot,
    ProcessInfo,
    PsutilMetricsReader,
    PsutilProcessLister,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SystemMetricsReader(Protocol):
    def read_metrics(self) -> MetricSnapshot: ...

    def read_hardware(self) -> HardwareSummary: ...

    def read_disk_usage(self) -> List[DiskUsage]: ...


class ProcessLister(Protocol):
    def list_processes(self) -> List[ProcessInfo]: ...


class NetworkReader(Protocol):
    def read_usage(self) -> List[NetworkInterfaceStat]: ...

    def read_adapters(self) -> List[NetworkAdapterStatus]: ...


class PingProber(Protocol):
    def probe(self, address: str = PING_TARGET, count: int = PING_COUNT) -> List[PingResult]: ...


@dataclass(frozen=True)
class RunContext:
    hostname: str
    started_at: datetime


@dataclass
class RunResult:
    report: Report
    text: str
    timings: List[SectionTiming] = field(default_factory=list)
    alerts: Optional[List[Alert]] = None

    @property
    def failed_sections(self) -> List[str]:
        return [timing.name for timing in self.timings if timing.error]


class DiagnosticRunner:
    """Runs every section once, in order, isolating failures per section."""

    def __init__(
        self,
        metrics_reader: Optional[SystemMetricsReader] = None,
        process_lister: Optional[ProcessLister] = None,
        network_reader: Optional[NetworkReader] = None,
        ping_prober: Optional[PingProber] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.metrics_reader = metrics_reader or PsutilMetricsReader()
        self.process_lister = process_lister or PsutilProcessLister()
        self.network_reader = network_reader or PsutilNetworkReader()
        self.ping_prober = ping_prober or SubprocessPingProber()
        self._clock = clock

    def run(self, context: RunContext) -> RunResult:
        started = self._clock()
        timings: List[SectionTiming] = []

        def timed(name: str, call: Callable[[], T]) -> Optional[T]:
            return self._timed(timings, name, call)

        hardware = timed("Hardware", self.metrics_reader.read_hardware)
        metrics = timed("System metrics", self.metrics_reader.read_metrics)
        disks = timed("Disk usage", self.metrics_reader.read_disk_usage)
        processes = timed("Processes", self.process_lister.list_processes)
        ranking: Optional[ProcessRanking] = None
        if processes is not None:
            ranking = timed("Process ranking", lambda: rank_processes(processes))
        interfaces = timed("Network usage", self.network_reader.read_usage)
        adapters = timed("Network adapters", self.network_reader.read_adapters)
        pings = timed("Ping", self.ping_prober.probe)
        alerts = timed("Alerts", lambda: evaluate(metrics, interfaces or [], adapters or [], pings or []))

        report = assemble_report(
            hostname=context.hostname,
            captured_at=context.started_at,
            hardware=hardware,
            metrics=metrics,
            disks=disks,
            ranking=ranking,
            interfaces=interfaces,
            adapters=adapters,
            pings=pings,
            alerts=alerts,
            timings=timings,
            total_elapsed=self._clock() - started,
        )
        return RunResult(report=report, text=render_report(report), timings=timings, alerts=alerts)

    def _timed(self, timings: List[SectionTiming], name: str, call: Callable[[], T]) -> Optional[T]:
        started = self._clock()
        error: Optional[str] = None
        result: Optional[T] = None
        try:
            result = call()
        except Exception as exc:
            error = str(exc) or type(exc).__name__
            logger.warning("section %r failed: %s", name, error, exc_info=logger.isEnabledFor(logging.DEBUG))
        elapsed = self._clock() - started
        logger.debug("section %r took %.3f s", name, elapsed)
        timings.append(SectionTiming(name=name, elapsed_seconds=elapsed, error=error))
        return result


def report_filename(context: RunContext) -> str:
    return f"SystemReport-{context.hostname}-{context.started_at:%Y%m%d_%H%M%S}.txt"


def write_report(text: str, context: RunContext, directory: Path) -> Path:
    """Write the report once; an existing file with the same name is an error."""
    path = Path(directory) / report_filename(context)
    with open(path, "x", encoding="utf-8") as handle:
        handle.write(text)
    logger.debug("report written to %s", path)
    return path
