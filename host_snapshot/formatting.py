"""Assemble the snapshot into a structured report and render it as plain text."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from .diagnostics import Alert
from .errors import RenderError
from .network import NetworkAdapterStatus, NetworkInterfaceStat, PingResult
from .ranking import ProcessRanking
from .system_state import DiskUsage, HardwareSummary, MetricSnapshot

NOT_AVAILABLE = "N/A"
NO_DATA = "No data."
NO_ALERTS = "None detected."


@dataclass(frozen=True)
class SectionTiming:
    name: str
    elapsed_seconds: float
    error: Optional[str] = None


@dataclass
class ReportSection:
    """A titled block holding either a table (headers + rows) or free lines."""

    title: str
    headers: Sequence[str] = ()
    rows: List[List[str]] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)
    placeholder: Optional[str] = None

    @property
    def is_table(self) -> bool:
        return bool(self.headers)


@dataclass
class Report:
    sections: List[ReportSection] = field(default_factory=list)

    def section(self, title: str) -> ReportSection:
        for section in self.sections:
            if section.title == title:
                return section
        raise KeyError(title)


def assemble_report(
    *,
    hostname: str,
    captured_at: datetime,
    hardware: Optional[HardwareSummary],
    metrics: Optional[MetricSnapshot],
    disks: Optional[Sequence[DiskUsage]],
    ranking: Optional[ProcessRanking],
    interfaces: Optional[Sequence[NetworkInterfaceStat]],
    adapters: Optional[Sequence[NetworkAdapterStatus]],
    pings: Optional[Sequence[PingResult]],
    alerts: Optional[Sequence[Alert]],
    timings: Sequence[SectionTiming],
    total_elapsed: float,
) -> Report:
    """Build every report section in its fixed order.

    ``None`` for any collected input means that section failed and renders as
    ``N/A``; an empty sequence renders the section with ``No data.``.
    """
    if not hostname or captured_at is None:
        raise RenderError("report header needs a hostname and capture time")
    if timings is None:
        raise RenderError("section timings are missing")

    sections = [
        ReportSection("System Report", lines=[f"Host: {hostname}", f"Captured: {captured_at:%Y-%m-%d %H:%M:%S}"]),
        _hardware_section(hardware),
        _metrics_section(metrics),
        _table(
            "Disk Usage",
            ["Mount", "Used / Total", "Used %"],
            disks,
            lambda d: [d.mount_point, f"{d.used_gb:.2f} / {d.total_gb:.2f} GB", f"{d.percent:.1f}%"],
        ),
        _table(
            "Top Processes by CPU",
            ["Name", "PID", "CPU %", "Memory MB"],
            ranking.top_cpu if ranking else None,
            lambda p: [p.name, str(p.pid), f"{p.cpu_percent:.2f}", f"{p.memory_mb:.2f}"],
        ),
        _table(
            "Top Processes by RAM",
            ["Name", "PID", "Memory MB", "CPU Seconds"],
            ranking.top_memory if ranking else None,
            lambda p: [p.name, str(p.pid), f"{p.memory_mb:.2f}", f"{p.cpu_seconds:.2f}"],
        ),
        _table(
            "Memory by Process Name",
            ["Name", "Instances", "Memory MB"],
            ranking.by_name if ranking else None,
            lambda p: [p.name, str(p.instances), f"{p.memory_mb:.2f}"],
        ),
        _table(
            "Network Usage",
            ["Interface", "Sent KB/s", "Received KB/s"],
            interfaces,
            lambda i: [i.name, f"{i.sent_kbps:.2f}", f"{i.received_kbps:.2f}"],
        ),
        _table(
            "Network Adapters",
            ["Adapter", "Status", "Link Speed"],
            adapters,
            lambda a: [a.name, a.status, f"{a.speed_mbps} Mbps" if a.speed_mbps else NOT_AVAILABLE],
        ),
        _table(
            "Ping Results",
            ["Address", "Round Trip"],
            pings,
            lambda p: [p.address, f"{p.round_trip_ms:.1f} ms" if p.round_trip_ms is not None else "timed out"],
        ),
        _alerts_section(alerts),
        _table(
            "Section Timings",
            ["Section", "Elapsed", "Status"],
            timings,
            lambda t: [t.name, f"{t.elapsed_seconds:.3f} s", f"failed: {t.error}" if t.error else "ok"],
        ),
        ReportSection("Total Elapsed", lines=[f"{total_elapsed:.3f} s"]),
    ]
    return Report(sections=sections)


def render_report(report: Report) -> str:
    blocks = []
    for section in report.sections:
        blocks.append(f"=== {section.title} ===\n{render_section_body(section)}")
    return "\n\n".join(blocks) + "\n"


def render_section_body(section: ReportSection) -> str:
    if section.placeholder is not None:
        return section.placeholder
    if section.is_table:
        table = render_table(section.headers, section.rows)
        return table if section.rows else f"{table}\n{NO_DATA}"
    return "\n".join(section.lines)


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [len(h) for h in headers]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))
    lines = []
    lines.append(_format_row(headers, widths))
    lines.append(_format_row(["-" * w for w in widths], widths))
    for row in rows:
        lines.append(_format_row(row, widths))
    return "\n".join(lines)


def _hardware_section(hardware: Optional[HardwareSummary]) -> ReportSection:
    if hardware is None:
        return ReportSection("Hardware", placeholder=NOT_AVAILABLE)
    return ReportSection(
        "Hardware",
        lines=[
            f"CPU: {hardware.cpu_model}",
            f"Logical cores: {hardware.logical_cores}",
            f"Total RAM: {hardware.total_ram_gb:.2f} GB",
        ],
    )


def _metrics_section(metrics: Optional[MetricSnapshot]) -> ReportSection:
    if metrics is None:
        return ReportSection("Live Metrics", placeholder=NOT_AVAILABLE)
    return ReportSection(
        "Live Metrics",
        lines=[
            f"Sampled: {metrics.timestamp:%Y-%m-%d %H:%M:%S}",
            f"CPU load: {metrics.cpu_load_percent:.2f}%",
            f"Processor queue length: {metrics.processor_queue_length}",
            f"Available RAM: {metrics.available_ram_mb} MB",
            f"Commit charge: {metrics.commit_charge_percent:.2f}%",
            f"Disk active time: {metrics.disk_active_percent:.2f}%",
            f"Disk queue length: {metrics.disk_queue_length:.2f}",
        ],
    )


def _alerts_section(alerts: Optional[Sequence[Alert]]) -> ReportSection:
    if alerts is None:
        return ReportSection("Alerts", placeholder=NOT_AVAILABLE)
    if not alerts:
        return ReportSection("Alerts", lines=[NO_ALERTS])
    return ReportSection("Alerts", lines=[f"- {alert.message}" for alert in alerts])


def _table(title, headers, items, to_row) -> ReportSection:
    if items is None:
        return ReportSection(title, headers=headers, placeholder=NOT_AVAILABLE)
    return ReportSection(title, headers=headers, rows=[to_row(item) for item in items])


def _format_row(row: Sequence[str], widths: Sequence[int]) -> str:
    padded = [cell.ljust(width) for cell, width in zip(row, widths)]
    return " | ".join(padded)
