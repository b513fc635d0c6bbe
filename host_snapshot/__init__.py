"""
Point-in-time diagnostic snapshot of a machine's health with bottleneck alerts.
"""

__all__ = ["system_state", "network", "ranking", "diagnostics", "formatting", "runner", "cli"]
__version__ = "0.1.0"
