from datetime import datetime
from itertools import count

import pytest

from host_snapshot.errors import CollectionError
from host_snapshot.network import NetworkAdapterStatus, NetworkInterfaceStat, PingResult
from host_snapshot.runner import DiagnosticRunner
from host_snapshot.system_state import DiskUsage, HardwareSummary, MetricSnapshot, ProcessInfo

SAMPLED_AT = datetime(2024, 3, 4, 5, 6, 7)


class FakeMetricsReader:
    def __init__(self, cpu=10.0, fail=False):
        self.cpu = cpu
        self.fail = fail

    def read_metrics(self):
        if self.fail:
            raise CollectionError("system metrics", "counter unavailable")
        return MetricSnapshot.from_raw(
            timestamp=SAMPLED_AT,
            cpu_load_percent=self.cpu,
            processor_queue_length=0,
            available_ram_mb=4096,
            commit_charge_percent=30,
            disk_active_percent=1,
            disk_queue_length=0,
        )

    def read_hardware(self):
        return HardwareSummary(cpu_model="Fake CPU", logical_cores=4, total_ram_gb=8.0)

    def read_disk_usage(self):
        return [DiskUsage(mount_point="/", total_gb=50.0, used_gb=10.0, percent=20.0)]


class FakeProcessLister:
    def __init__(self, fail=False):
        self.fail = fail

    def list_processes(self):
        if self.fail:
            raise RuntimeError("process table exploded")
        return [
            ProcessInfo(name="chrome", pid=1, memory_bytes=100 * 1024**2, cpu_seconds=5, cpu_percent=3),
            ProcessInfo(name="chrome", pid=2, memory_bytes=50 * 1024**2, cpu_seconds=1, cpu_percent=1),
        ]


class FakeNetworkReader:
    def read_usage(self):
        return [NetworkInterfaceStat(name="eth0", sent_kbps=6000, received_kbps=1)]

    def read_adapters(self):
        return [NetworkAdapterStatus(name="wlan0", status="Disconnected", speed_mbps=0)]


class FakePingProber:
    def __init__(self):
        self.calls = []

    def probe(self, address="8.8.8.8", count=2):
        self.calls.append((address, count))
        return [PingResult(address=address, round_trip_ms=12.0) for _ in range(count)]


@pytest.fixture
def ping_prober():
    return FakePingProber()


@pytest.fixture
def make_runner(ping_prober):
    """Build a runner over fake sources; each section ticks a fixed 0.5 s clock."""

    def factory(cpu=10.0, metrics_fail=False, processes_fail=False):
        return DiagnosticRunner(
            metrics_reader=FakeMetricsReader(cpu=cpu, fail=metrics_fail),
            process_lister=FakeProcessLister(fail=processes_fail),
            network_reader=FakeNetworkReader(),
            ping_prober=ping_prober,
            clock=count(0.0, 0.5).__next__,
        )

    return factory
