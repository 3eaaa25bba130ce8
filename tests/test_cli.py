import json
from pathlib import Path

import pytest

from memsched_cli.cli import build_parser, main


def _workload(tmp_path: Path, processes, **header) -> Path:
    p = tmp_path / "w.json"
    payload = dict(header, processes=processes) if header else processes
    p.write_text(json.dumps(payload))
    return p


def test_run_prints_tables(tmp_path: Path, capsys):
    path = _workload(tmp_path, [
        {"arrival_time": 0, "burst_time": 10, "memory": 50},
        {"arrival_time": 0, "burst_time": 3, "memory": 50},
    ])
    assert main(["run", "-w", str(path), "-m", "100", "-p", "sjf"]) == 0
    out = capsys.readouterr().out
    assert "Per-process metrics" in out
    assert "System metrics" in out


def test_run_uses_memory_from_workload(tmp_path: Path, capsys):
    path = _workload(
        tmp_path,
        [{"arrival_time": 0, "burst_time": 2, "memory": 25}],
        total_memory=100,
        partitions=[60, 30, 10],
    )
    assert main(["run", "-w", str(path), "-s", "best-fit"]) == 0
    assert "@60" in capsys.readouterr().out


def test_run_reports_degenerate_run(tmp_path: Path, capsys):
    path = _workload(tmp_path, [{"arrival_time": 0, "burst_time": 5, "memory": 60}])
    assert main(["run", "-w", str(path), "-m", "50"]) == 0
    out = capsys.readouterr().out
    assert "Not completed" in out
    assert "No process completed" in out


def test_run_without_memory_fails(tmp_path: Path, capsys):
    path = _workload(tmp_path, [{"arrival_time": 0, "burst_time": 5, "memory": 60}])
    assert main(["run", "-w", str(path)]) == 1
    assert "Total memory is required" in capsys.readouterr().out


def test_run_bad_partitions_fail(tmp_path: Path):
    path = _workload(tmp_path, [{"arrival_time": 0, "burst_time": 5, "memory": 10}])
    assert main(["run", "-w", str(path), "-m", "100", "--partitions", "40,40"]) == 1


def test_partitions_argument_validated():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["run", "-w", "x.json", "--partitions", "10,-4"])


def test_compare_lists_every_pair(tmp_path: Path, capsys, monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    path = _workload(tmp_path, [
        {"arrival_time": 0, "burst_time": 5, "memory": 80},
        {"arrival_time": 0, "burst_time": 5, "memory": 80},
    ])
    assert main(["compare", "-w", str(path), "-m", "100", "--average-over", "all"]) == 0
    out = capsys.readouterr().out
    assert "comparison" in out
    assert "First-Fit" in out
    assert "Best-Fit" in out
    assert "averages over all" in out


def test_menu_runs_selected_policy(monkeypatch, capsys):
    answers = iter(["100", "two", "2", "0 10 50", "0 3", "0 3 50", "1", "2"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    assert main(["menu"]) == 0
    out = capsys.readouterr().out
    assert "Not a number" in out
    assert "Running SJF" in out
    assert "Per-process metrics" in out


def test_menu_exit(monkeypatch, capsys):
    answers = iter(["100", "1", "0 5 50", "2", "3"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    assert main(["menu"]) == 0
    assert "Running" not in capsys.readouterr().out


def test_run_plain_gantt(tmp_path: Path, capsys):
    path = _workload(tmp_path, [{"arrival_time": 0, "burst_time": 5, "memory": 50}])
    assert main(["run", "-w", str(path), "-m", "100", "--plain"]) == 0
    out = capsys.readouterr().out
    assert "Gantt Chart:" in out
    assert "|=====|" in out


def test_warnings_go_to_stderr(tmp_path: Path, capsys):
    path = _workload(tmp_path, [{"arrival_time": 0, "burst_time": 5, "memory": 60}])
    assert main(["run", "-w", str(path), "-m", "50"]) == 0
    captured = capsys.readouterr()
    assert "Not enough memory" not in captured.out
    assert "Not enough memory" in captured.err


def test_run_rejects_scalar_partitions(tmp_path: Path, capsys):
    path = _workload(
        tmp_path,
        [{"arrival_time": 0, "burst_time": 5, "memory": 10}],
        total_memory=100,
        partitions=100,
    )
    assert main(["run", "-w", str(path)]) == 1
    assert "partitions must be a list" in capsys.readouterr().out
