"""Network interface throughput, adapter status and ICMP latency probes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import re
import subprocess
import sys
import time
from typing import Dict, Iterable, List, Optional, Tuple

import psutil

from .errors import CollectionError

logger = logging.getLogger(__name__)

PING_TARGET = "8.8.8.8"
PING_COUNT = 2
PING_TIMEOUT_SECONDS = 1
SAMPLE_INTERVAL = 1.0

_RTT_PATTERN = re.compile(r"time[=<]\s*([\d.]+)\s*ms", re.IGNORECASE)


class AdapterState(str, Enum):
    UP = "Up"
    DOWN = "Down"
    DISCONNECTED = "Disconnected"


@dataclass(frozen=True)
class NetworkInterfaceStat:
    name: str
    sent_kbps: float
    received_kbps: float


@dataclass(frozen=True)
class NetworkAdapterStatus:
    name: str
    status: str
    speed_mbps: int


@dataclass(frozen=True)
class PingResult:
    address: str
    round_trip_ms: Optional[float]


class PsutilNetworkReader:
    """Samples per-interface throughput and lists adapter link state."""

    def __init__(self, sample_interval: float = SAMPLE_INTERVAL) -> None:
        self.sample_interval = sample_interval

    def read_usage(self) -> List[NetworkInterfaceStat]:
        try:
            before = psutil.net_io_counters(pernic=True)
            started = time.perf_counter()
            time.sleep(self.sample_interval)
            after = psutil.net_io_counters(pernic=True)
            window = time.perf_counter() - started
        except (psutil.Error, OSError) as exc:
            raise CollectionError("network usage", exc) from exc

        samples = []
        for name, counters in after.items():
            previous = before.get(name)
            if previous is None:
                continue
            samples.append(
                (
                    name,
                    (counters.bytes_sent - previous.bytes_sent) / window,
                    (counters.bytes_recv - previous.bytes_recv) / window,
                )
            )
        return interface_rates(samples)

    def read_adapters(self) -> List[NetworkAdapterStatus]:
        try:
            stats = psutil.net_if_stats()
        except (psutil.Error, OSError) as exc:
            raise CollectionError("network adapters", exc) from exc
        return [
            NetworkAdapterStatus(name=name, status=adapter_state(info).value, speed_mbps=info.speed)
            for name, info in sorted(stats.items())
        ]


def interface_rates(samples: Iterable[Tuple[str, float, float]]) -> List[NetworkInterfaceStat]:
    """Group raw (name, bytes/s sent, bytes/s received) samples by interface.

    Rates are converted to KB/s and rounded to 2 decimals. Interfaces whose
    counters did not move during the window are dropped.
    """
    grouped: Dict[str, List[float]] = {}
    for name, sent, received in samples:
        totals = grouped.setdefault(name, [0.0, 0.0])
        totals[0] += max(sent, 0.0)
        totals[1] += max(received, 0.0)

    stats: List[NetworkInterfaceStat] = []
    for name, (sent, received) in grouped.items():
        if not sent and not received:
            continue
        stats.append(
            NetworkInterfaceStat(
                name=name,
                sent_kbps=round(sent / 1024, 2),
                received_kbps=round(received / 1024, 2),
            )
        )
    return stats


def adapter_state(info) -> AdapterState:
    if not info.isup:
        return AdapterState.DOWN
    # `flags` is only reported by newer psutil releases.
    flags = getattr(info, "flags", "")
    if flags and "running" not in flags.split(","):
        return AdapterState.DISCONNECTED
    return AdapterState.UP


class SubprocessPingProber:
    """Sends ICMP echo requests through the system ``ping`` binary."""

    def __init__(self, timeout: int = PING_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout

    def probe(self, address: str = PING_TARGET, count: int = PING_COUNT) -> List[PingResult]:
        return [PingResult(address=address, round_trip_ms=self._echo(address)) for _ in range(count)]

    def _echo(self, address: str) -> Optional[float]:
        cmd = _ping_command(address, self.timeout)
        try:
            r = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout + 2)
        except FileNotFoundError as exc:
            raise CollectionError("ping", exc) from exc
        except subprocess.TimeoutExpired:
            logger.debug("ping to %s timed out", address)
            return None
        if r.returncode != 0:
            logger.debug("ping to %s failed: %s", address, r.stdout.strip() or r.stderr.strip())
            return None
        return parse_round_trip(r.stdout)


def _ping_command(address: str, timeout: int) -> List[str]:
    if sys.platform.startswith("win"):
        return ["ping", "-n", "1", "-w", str(timeout * 1000), address]
    # macOS takes the -W reply wait in milliseconds.
    if sys.platform == "darwin":
        return ["ping", "-c", "1", "-W", str(timeout * 1000), address]
    return ["ping", "-c", "1", "-W", str(timeout), address]


def parse_round_trip(output: str) -> Optional[float]:
    """Extract the round-trip time in milliseconds from ``ping`` output."""
    match = _RTT_PATTERN.search(output)
    if not match:
        return None
    return float(match.group(1))
