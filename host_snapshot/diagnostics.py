"""Evaluate a snapshot against fixed thresholds and report likely bottlenecks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from .network import AdapterState, NetworkAdapterStatus, NetworkInterfaceStat, PingResult
from .system_state import MetricSnapshot

CPU_LOAD_LIMIT = 85.0
PROCESSOR_QUEUE_LIMIT = 2
AVAILABLE_RAM_FLOOR_MB = 500
COMMIT_CHARGE_LIMIT = 85.0
DISK_ACTIVE_LIMIT = 80.0
DISK_QUEUE_LIMIT = 2.0
THROUGHPUT_LIMIT_KBPS = 5000.0
LATENCY_LIMIT_MS = 100.0


class AlertCategory(str, Enum):
    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"
    NETWORK_THROUGHPUT = "network-throughput"
    ADAPTER = "adapter"
    LATENCY = "latency"


@dataclass(frozen=True)
class Alert:
    category: AlertCategory
    message: str


def evaluate(
    metrics: Optional[MetricSnapshot],
    interfaces: Sequence[NetworkInterfaceStat],
    adapters: Sequence[NetworkAdapterStatus],
    pings: Sequence[PingResult],
) -> List[Alert]:
    """Apply every threshold rule in a fixed order and return the alerts raised.

    ``metrics`` may be ``None`` when system counters could not be collected;
    the counter rules are then skipped and only network rules apply.
    """
    alerts: List[Alert] = []

    if metrics is not None:
        alerts.extend(_diagnose_cpu(metrics))
        alerts.extend(_diagnose_memory(metrics))
        alerts.extend(_diagnose_disk(metrics))
    alerts.extend(_diagnose_throughput(interfaces))
    alerts.extend(_diagnose_adapters(adapters))
    alerts.extend(_diagnose_latency(pings))

    return alerts


def alert_messages(alerts: Sequence[Alert]) -> List[str]:
    return [alert.message for alert in alerts]


def _diagnose_cpu(metrics: MetricSnapshot) -> List[Alert]:
    findings: List[Alert] = []
    if metrics.cpu_load_percent > CPU_LOAD_LIMIT:
        findings.append(Alert(AlertCategory.CPU, f"High CPU load: {metrics.cpu_load_percent:.2f}%"))
    if metrics.processor_queue_length > PROCESSOR_QUEUE_LIMIT:
        findings.append(
            Alert(
                AlertCategory.CPU,
                f"Processor queue length is high ({metrics.processor_queue_length} threads waiting)",
            )
        )
    return findings


def _diagnose_memory(metrics: MetricSnapshot) -> List[Alert]:
    findings: List[Alert] = []
    if metrics.available_ram_mb < AVAILABLE_RAM_FLOOR_MB:
        findings.append(Alert(AlertCategory.MEMORY, f"Low available RAM: {metrics.available_ram_mb} MB"))
    if metrics.commit_charge_percent > COMMIT_CHARGE_LIMIT:
        findings.append(
            Alert(AlertCategory.MEMORY, f"High commit charge: {metrics.commit_charge_percent:.2f}%")
        )
    return findings


def _diagnose_disk(metrics: MetricSnapshot) -> List[Alert]:
    findings: List[Alert] = []
    if metrics.disk_active_percent > DISK_ACTIVE_LIMIT:
        findings.append(Alert(AlertCategory.DISK, f"High disk active time: {metrics.disk_active_percent:.2f}%"))
    if metrics.disk_queue_length > DISK_QUEUE_LIMIT:
        findings.append(Alert(AlertCategory.DISK, f"High disk queue length: {metrics.disk_queue_length:.2f}"))
    return findings


def _diagnose_throughput(interfaces: Sequence[NetworkInterfaceStat]) -> List[Alert]:
    return [
        Alert(
            AlertCategory.NETWORK_THROUGHPUT,
            f"High network usage on {iface.name}: "
            f"sent {iface.sent_kbps:.2f} KB/s, received {iface.received_kbps:.2f} KB/s",
        )
        for iface in interfaces
        if iface.sent_kbps > THROUGHPUT_LIMIT_KBPS or iface.received_kbps > THROUGHPUT_LIMIT_KBPS
    ]


def _diagnose_adapters(adapters: Sequence[NetworkAdapterStatus]) -> List[Alert]:
    return [
        Alert(AlertCategory.ADAPTER, f"Network adapter {adapter.name} is {adapter.status}")
        for adapter in adapters
        if adapter.status != AdapterState.UP.value
    ]


def _diagnose_latency(pings: Sequence[PingResult]) -> List[Alert]:
    return [
        Alert(AlertCategory.LATENCY, f"High latency to {ping.address}: {ping.round_trip_ms:.2f} ms")
        for ping in pings
        if ping.round_trip_ms is not None and ping.round_trip_ms > LATENCY_LIMIT_MS
    ]
