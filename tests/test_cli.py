import io
import socket

from rich.console import Console

from host_snapshot import cli


def test_main_writes_report_file(tmp_path, monkeypatch, capsys, make_runner):
    monkeypatch.setattr(cli, "DiagnosticRunner", make_runner)
    monkeypatch.setattr(socket, "gethostname", lambda: "lab-box")

    assert cli.main(["--output-dir", str(tmp_path)]) == 0

    files = list(tmp_path.glob("SystemReport-lab-box-*.txt"))
    assert len(files) == 1
    text = files[0].read_text(encoding="utf-8")
    assert "=== Alerts ===" in text
    assert "Report saved to" in capsys.readouterr().out


def test_main_rich_ui(tmp_path, monkeypatch, capsys, make_runner):
    monkeypatch.setattr(cli, "DiagnosticRunner", make_runner)

    assert cli.main(["--ui", "--output-dir", str(tmp_path)]) == 0
    assert "Network Adapters" in capsys.readouterr().out


def test_main_fails_when_report_cannot_be_written(tmp_path, monkeypatch, make_runner):
    monkeypatch.setattr(cli, "DiagnosticRunner", make_runner)

    assert cli.main(["--output-dir", str(tmp_path / "missing")]) == 1


def test_plain_output_keeps_wide_rows_intact():
    row = "very-long-process-name-" * 5 + "| 12345 | 99.99"
    text = f"=== Top Processes by CPU ===\n{row}\n\n=== Alerts ===\n- {row}\n"
    buffer = io.StringIO()

    cli._render_plain(text, Console(file=buffer, width=40, color_system=None))

    lines = buffer.getvalue().splitlines()
    assert row in lines
    assert f"- {row}" in lines
