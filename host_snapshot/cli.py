"""Entry point for the host-snapshot command line tool."""

from __future__ import annotations

import argparse
from datetime import datetime
import logging
from pathlib import Path
import socket
import sys
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .formatting import NO_ALERTS, NO_DATA, Report, ReportSection
from .runner import DiagnosticRunner, RunContext, write_report

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Take a diagnostic snapshot of this machine and flag likely bottlenecks.",
    )
    parser.add_argument("--output-dir", type=Path, default=Path("."), help="directory for the report file")
    parser.add_argument("--ui", action="store_true", help="render the console copy with Rich tables")
    parser.add_argument("--verbose", action="store_true", help="log section timings and probe details")
    args = parser.parse_args(argv)

    _setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        hostname = socket.gethostname()
    except OSError as exc:
        logger.error("cannot resolve hostname: %s", exc)
        return 1
    if not hostname:
        logger.error("cannot resolve hostname")
        return 1

    context = RunContext(hostname=hostname, started_at=datetime.now())
    result = DiagnosticRunner().run(context)

    console = Console()
    if args.ui:
        _render_rich(result.report, console)
    else:
        _render_plain(result.text, console)

    try:
        path = write_report(result.text, context, args.output_dir)
    except OSError as exc:
        logger.error("cannot write report: %s", exc)
        return 1

    console.print(f"\nReport saved to {path}", style="bold green")
    return 0


def _setup_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def _render_plain(text: str, console: Console) -> None:
    in_alerts = False
    for line in text.splitlines():
        if line.startswith("=== "):
            in_alerts = line == "=== Alerts ==="
            console.print(Text(line, style="bold cyan"), soft_wrap=True)
        elif in_alerts and line.startswith("- "):
            console.print(Text(line, style="bold red"), soft_wrap=True)
        elif in_alerts and line == NO_ALERTS:
            console.print(Text(line, style="bold green"), soft_wrap=True)
        else:
            console.print(Text(line), soft_wrap=True)


def _render_rich(report: Report, console: Console) -> None:
    for section in report.sections:
        if section.title == "Alerts":
            _render_alerts(section, console)
        elif section.is_table:
            console.print(_rich_table(section))
        elif section.placeholder is not None:
            console.print(Panel(section.placeholder, title=section.title, style="yellow"))
        else:
            console.print(Panel("\n".join(section.lines), title=section.title, style="bold cyan"))


def _render_alerts(section: ReportSection, console: Console) -> None:
    if section.placeholder is not None:
        console.print(Panel(section.placeholder, title="Alerts", style="yellow"))
    elif section.lines == [NO_ALERTS]:
        console.print(Panel(NO_ALERTS, title="Alerts", style="bold green"))
    else:
        console.print(Panel("\n".join(section.lines), title="Alerts", style="bold red"))


def _rich_table(section: ReportSection) -> Table:
    table = Table(title=section.title, box=box.SIMPLE_HEAD)
    for index, header in enumerate(section.headers):
        table.add_column(header, style="bold" if index == 0 else None, justify="left" if index == 0 else "right")

    if section.placeholder is not None:
        table.add_row(section.placeholder, *["-"] * (len(section.headers) - 1))
        return table
    if not section.rows:
        table.add_row(NO_DATA, *["-"] * (len(section.headers) - 1))
        return table

    for row in section.rows:
        table.add_row(*row)
    return table


if __name__ == "__main__":
    sys.exit(main())
