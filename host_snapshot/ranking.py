"""Top-N process views by CPU, by memory and by executable name."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .system_state import MB, ProcessInfo

TOP_N = 10


@dataclass(frozen=True)
class RankedCpuEntry:
    name: str
    pid: int
    cpu_percent: float
    memory_mb: float


@dataclass(frozen=True)
class RankedMemoryEntry:
    name: str
    pid: int
    memory_mb: float
    cpu_seconds: float


@dataclass(frozen=True)
class AggregatedMemoryEntry:
    name: str
    instances: int
    memory_mb: float


@dataclass(frozen=True)
class ProcessRanking:
    top_cpu: List[RankedCpuEntry] = field(default_factory=list)
    top_memory: List[RankedMemoryEntry] = field(default_factory=list)
    by_name: List[AggregatedMemoryEntry] = field(default_factory=list)


def rank_processes(processes: Sequence[ProcessInfo], limit: int = TOP_N) -> ProcessRanking:
    """Build the three ranked views. Ties fall back to pid (or name) ascending."""
    by_cpu = sorted(processes, key=lambda p: (-p.cpu_percent, p.pid))[:limit]
    by_memory = sorted(processes, key=lambda p: (-p.memory_bytes, p.pid))[:limit]

    return ProcessRanking(
        top_cpu=[
            RankedCpuEntry(name=p.name, pid=p.pid, cpu_percent=p.cpu_percent, memory_mb=_to_mb(p.memory_bytes))
            for p in by_cpu
        ],
        top_memory=[
            RankedMemoryEntry(name=p.name, pid=p.pid, memory_mb=_to_mb(p.memory_bytes), cpu_seconds=p.cpu_seconds)
            for p in by_memory
        ],
        by_name=aggregate_by_name(processes)[:limit],
    )


def aggregate_by_name(processes: Sequence[ProcessInfo]) -> List[AggregatedMemoryEntry]:
    totals: Dict[str, List[int]] = {}
    for proc in processes:
        entry = totals.setdefault(proc.name, [0, 0])
        entry[0] += 1
        entry[1] += proc.memory_bytes

    ordered = sorted(totals.items(), key=lambda item: (-item[1][1], item[0]))
    return [
        AggregatedMemoryEntry(name=name, instances=count, memory_mb=_to_mb(memory))
        for name, (count, memory) in ordered
    ]


def _to_mb(num_bytes: int) -> float:
    return round(num_bytes / MB, 2)
