"""Collect system counters, process table, hardware inventory and disk usage."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
import platform
import subprocess
import sys
import time
from typing import Iterable, List

import psutil

from .errors import CollectionError

logger = logging.getLogger(__name__)

MB = 1024**2
GB = 1024**3

SAMPLE_INTERVAL = 1.0
PROCESS_PRIME_INTERVAL = 0.1
TYPEPERF_TIMEOUT = 10
PROCESSOR_QUEUE_COUNTER = r"\System\Processor Queue Length"


@dataclass(frozen=True)
class MetricSnapshot:
    timestamp: datetime
    cpu_load_percent: float
    processor_queue_length: int
    available_ram_mb: int
    commit_charge_percent: float
    disk_active_percent: float
    disk_queue_length: float

    @classmethod
    def from_raw(
        cls,
        *,
        timestamp: datetime,
        cpu_load_percent: float,
        processor_queue_length: float,
        available_ram_mb: float,
        commit_charge_percent: float,
        disk_active_percent: float,
        disk_queue_length: float,
    ) -> "MetricSnapshot":
        """Clamp negatives and round every field to its reporting precision."""
        return cls(
            timestamp=timestamp,
            cpu_load_percent=round(max(cpu_load_percent, 0.0), 2),
            processor_queue_length=int(round(max(processor_queue_length, 0))),
            available_ram_mb=int(round(max(available_ram_mb, 0))),
            commit_charge_percent=round(max(commit_charge_percent, 0.0), 2),
            disk_active_percent=round(max(disk_active_percent, 0.0), 2),
            disk_queue_length=round(max(disk_queue_length, 0.0), 2),
        )


@dataclass(frozen=True)
class ProcessInfo:
    name: str
    pid: int
    memory_bytes: int
    cpu_seconds: float
    cpu_percent: float = 0.0


@dataclass(frozen=True)
class HardwareSummary:
    cpu_model: str
    logical_cores: int
    total_ram_gb: float


@dataclass(frozen=True)
class DiskUsage:
    mount_point: str
    total_gb: float
    used_gb: float
    percent: float


class PsutilMetricsReader:
    """Reads system-wide counters, hardware inventory and disk usage via psutil."""

    def __init__(self, sample_interval: float = SAMPLE_INTERVAL) -> None:
        self.sample_interval = sample_interval

    def read_metrics(self) -> MetricSnapshot:
        try:
            disk_before = psutil.disk_io_counters()
            started = time.perf_counter()
            cpu_percent = psutil.cpu_percent(interval=self.sample_interval)
            window = time.perf_counter() - started
            disk_after = psutil.disk_io_counters()
            memory = psutil.virtual_memory()
            swap = psutil.swap_memory()
        except (psutil.Error, OSError) as exc:
            raise CollectionError("system metrics", exc) from exc

        cores = psutil.cpu_count() or 1
        queue_length = _processor_queue_length(cores)
        disk_active, disk_queue = _disk_activity(disk_before, disk_after, window)
        return MetricSnapshot.from_raw(
            timestamp=datetime.now(),
            cpu_load_percent=cpu_percent,
            processor_queue_length=queue_length,
            available_ram_mb=memory.available / MB,
            commit_charge_percent=_commit_charge(memory, swap),
            disk_active_percent=disk_active,
            disk_queue_length=disk_queue,
        )

    def read_hardware(self) -> HardwareSummary:
        try:
            cores = psutil.cpu_count(logical=True) or 0
            total = psutil.virtual_memory().total
        except (psutil.Error, OSError) as exc:
            raise CollectionError("hardware", exc) from exc
        return HardwareSummary(
            cpu_model=_cpu_model(),
            logical_cores=cores,
            total_ram_gb=round(total / GB, 2),
        )

    def read_disk_usage(self) -> List[DiskUsage]:
        try:
            partitions = psutil.disk_partitions(all=False)
        except (psutil.Error, OSError) as exc:
            raise CollectionError("disk usage", exc) from exc

        disk_usages: List[DiskUsage] = []
        for partition in partitions:
            if "rw" not in partition.opts.split(","):
                continue
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except PermissionError:
                logger.debug("skipping unreadable mount point %s", partition.mountpoint)
                continue
            disk_usages.append(
                DiskUsage(
                    mount_point=partition.mountpoint,
                    total_gb=round(usage.total / GB, 2),
                    used_gb=round(usage.used / GB, 2),
                    percent=usage.percent,
                )
            )
        return disk_usages


class PsutilProcessLister:
    """Enumerates live processes with CPU normalised by logical core count."""

    def __init__(self, prime_interval: float = PROCESS_PRIME_INTERVAL) -> None:
        self.prime_interval = prime_interval

    def list_processes(self) -> List[ProcessInfo]:
        try:
            processes = list(psutil.process_iter())
            cores = psutil.cpu_count() or 1
        except (psutil.Error, OSError) as exc:
            raise CollectionError("processes", exc) from exc
        _prime_cpu_percent(processes)
        time.sleep(self.prime_interval)
        return _process_info(processes, cores)


def _processor_queue_length(cores: int) -> float:
    """Threads waiting for a CPU.

    Windows exposes the counter through typeperf. psutil reports every
    non-suspended Windows process as running, so the runnable count minus
    cores is a POSIX-only estimate.
    """
    if sys.platform.startswith("win"):
        return _typeperf_counter(PROCESSOR_QUEUE_COUNTER)
    try:
        return _count_runnable() - cores
    except (psutil.Error, OSError) as exc:
        raise CollectionError("system metrics", exc) from exc


def _typeperf_counter(path: str) -> float:
    cmd = ["typeperf", path, "-sc", "1"]
    try:
        r = subprocess.run(cmd, capture_output=True, text=True, timeout=TYPEPERF_TIMEOUT)
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise CollectionError("system metrics", exc) from exc
    if r.returncode != 0:
        raise CollectionError("system metrics", r.stderr.strip() or r.stdout.strip() or "typeperf failed")
    value = parse_typeperf(r.stdout)
    if value is None:
        raise CollectionError("system metrics", f"no sample for {path}")
    return value


def parse_typeperf(output: str) -> float | None:
    """Return the first sampled value from ``typeperf`` CSV output."""
    for line in output.splitlines():
        cells = [cell.strip().strip('"') for cell in line.split(",")]
        if len(cells) < 2 or cells[0].startswith("(PDH-CSV"):
            continue
        try:
            return float(cells[-1])
        except ValueError:
            continue
    return None


def _count_runnable() -> int:
    count = 0
    for proc in psutil.process_iter(["status"]):
        if proc.info.get("status") == psutil.STATUS_RUNNING:
            count += 1
    return count


def _commit_charge(memory, swap) -> float:
    limit = memory.total + swap.total
    if not limit:
        return 0.0
    committed = (memory.total - memory.available) + swap.used
    return committed / limit * 100


def _disk_activity(before, after, window: float) -> tuple[float, float]:
    """Return (active time %, average queue length) between two counter samples."""
    if before is None or after is None or window <= 0:
        return 0.0, 0.0
    window_ms = window * 1000
    io_ms = (after.read_time + after.write_time) - (before.read_time + before.write_time)
    if hasattr(after, "busy_time"):
        busy_ms = after.busy_time - before.busy_time
    else:
        busy_ms = io_ms
    active = min(busy_ms / window_ms * 100, 100.0)
    return active, io_ms / window_ms


def _cpu_model() -> str:
    model = platform.processor()
    if model and model != platform.machine():
        return model
    try:
        with open("/proc/cpuinfo", encoding="utf-8") as cpuinfo:
            for line in cpuinfo:
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
    except OSError:
        pass
    return model or platform.machine() or "Unknown"


def _prime_cpu_percent(processes: Iterable[psutil.Process]) -> None:
    for proc in processes:
        try:
            proc.cpu_percent(None)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue


def _process_info(processes: Iterable[psutil.Process], cores: int) -> List[ProcessInfo]:
    infos: List[ProcessInfo] = []
    for proc in processes:
        try:
            with proc.oneshot():
                cpu = proc.cpu_percent(None)
                times = proc.cpu_times()
                infos.append(
                    ProcessInfo(
                        name=proc.name(),
                        pid=proc.pid,
                        memory_bytes=proc.memory_info().rss,
                        cpu_seconds=round(times.user + times.system, 2),
                        cpu_percent=round(cpu / cores, 2),
                    )
                )
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
    return infos

