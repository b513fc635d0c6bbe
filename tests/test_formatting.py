from datetime import datetime

import pytest

from host_snapshot.diagnostics import Alert, AlertCategory
from host_snapshot.errors import RenderError
from host_snapshot.formatting import (
    SectionTiming,
    assemble_report,
    render_report,
    render_table,
)
from host_snapshot.network import NetworkAdapterStatus, NetworkInterfaceStat, PingResult
from host_snapshot.ranking import AggregatedMemoryEntry, ProcessRanking, RankedCpuEntry, RankedMemoryEntry
from host_snapshot.system_state import DiskUsage, HardwareSummary, MetricSnapshot

SECTION_ORDER = [
    "System Report",
    "Hardware",
    "Live Metrics",
    "Disk Usage",
    "Top Processes by CPU",
    "Top Processes by RAM",
    "Memory by Process Name",
    "Network Usage",
    "Network Adapters",
    "Ping Results",
    "Alerts",
    "Section Timings",
    "Total Elapsed",
]


def make_report(**overrides):
    inputs = dict(
        hostname="build-01",
        captured_at=datetime(2024, 5, 6, 7, 8, 9),
        hardware=HardwareSummary(cpu_model="Example CPU", logical_cores=8, total_ram_gb=15.5),
        metrics=MetricSnapshot.from_raw(
            timestamp=datetime(2024, 5, 6, 7, 8, 10),
            cpu_load_percent=42.5,
            processor_queue_length=1,
            available_ram_mb=2048,
            commit_charge_percent=60,
            disk_active_percent=3.25,
            disk_queue_length=0.05,
        ),
        disks=[DiskUsage(mount_point="/", total_gb=100.0, used_gb=40.0, percent=40.0)],
        ranking=ProcessRanking(
            top_cpu=[RankedCpuEntry(name="python", pid=42, cpu_percent=12.5, memory_mb=100.0)],
            top_memory=[RankedMemoryEntry(name="python", pid=42, memory_mb=100.0, cpu_seconds=3.0)],
            by_name=[AggregatedMemoryEntry(name="python", instances=1, memory_mb=100.0)],
        ),
        interfaces=[NetworkInterfaceStat(name="eth0", sent_kbps=1.5, received_kbps=20.25)],
        adapters=[NetworkAdapterStatus(name="eth0", status="Up", speed_mbps=1000)],
        pings=[PingResult(address="8.8.8.8", round_trip_ms=14.2), PingResult(address="8.8.8.8", round_trip_ms=None)],
        alerts=[],
        timings=[SectionTiming(name="Hardware", elapsed_seconds=0.0123)],
        total_elapsed=2.5,
    )
    inputs.update(overrides)
    return assemble_report(**inputs)


def test_sections_follow_fixed_order():
    report = make_report()
    assert [s.title for s in report.sections] == SECTION_ORDER


def test_render_contains_values():
    text = render_report(make_report())
    assert "Host: build-01" in text
    assert "Captured: 2024-05-06 07:08:09" in text
    assert "CPU load: 42.50%" in text
    assert "Example CPU" in text
    assert "20.25" in text
    assert "14.2 ms" in text
    assert "timed out" in text
    assert "1000 Mbps" in text
    assert "0.012 s" in text
    assert text.rstrip().endswith("2.500 s")


def test_zero_alerts_render_none_detected():
    text = render_report(make_report(alerts=[]))
    assert "=== Alerts ===\nNone detected." in text


def test_alerts_render_as_list():
    alerts = [Alert(AlertCategory.CPU, "High CPU load: 90.00%")]
    text = render_report(make_report(alerts=alerts))
    assert "- High CPU load: 90.00%" in text
    assert "None detected." not in text


def test_empty_tables_keep_their_section():
    report = make_report(disks=[], ranking=ProcessRanking(), interfaces=[], adapters=[], pings=[])
    text = render_report(report)
    for title in SECTION_ORDER:
        assert f"=== {title} ===" in text
    assert report.section("Network Usage").rows == []
    assert text.count("No data.") == 7


def test_failed_sections_render_placeholder():
    report = make_report(hardware=None, metrics=None, ranking=None, pings=None, alerts=None)
    assert report.section("Hardware").placeholder == "N/A"
    assert report.section("Live Metrics").placeholder == "N/A"
    assert report.section("Top Processes by CPU").placeholder == "N/A"
    assert report.section("Ping Results").placeholder == "N/A"
    text = render_report(report)
    assert "=== Alerts ===\nN/A" in text


def test_failed_timing_is_marked():
    timings = [SectionTiming(name="Ping", elapsed_seconds=1.0, error="ping: not found")]
    text = render_report(make_report(timings=timings))
    assert "failed: ping: not found" in text


def test_missing_hostname_is_a_render_error():
    with pytest.raises(RenderError):
        make_report(hostname="")


def test_render_table_aligns_columns():
    table = render_table(["Name", "PID"], [["systemd", "1"], ["sh", "12345"]])
    lines = table.splitlines()
    assert lines[0] == "Name    | PID  "
    assert lines[1] == "------- | -----"
    assert lines[3] == "sh      | 12345"
