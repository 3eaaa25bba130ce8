from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .algorithms import run_simulation
from .errors import DegenerateRunError
from .gantt import build_rich_gantt, render_gantt
from .metrics import summarize_result
from .models import AllocationStrategy, AverageBasis, Process, SchedulingPolicy, SimulationResult
from .workload_io import load_workload, make_process

logger = logging.getLogger(__name__)


def _partitions(value: str) -> List[int]:
    try:
        sizes = [int(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid partition list: {value!r}") from exc
    if not sizes or any(size <= 0 for size in sizes):
        raise argparse.ArgumentTypeError(f"partition sizes must be positive: {value!r}")
    return sizes


def _add_memory_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    parser.add_argument(
        "--memory",
        "-m",
        type=int,
        default=None,
        help="Total memory size (overrides total_memory from a JSON workload).",
    )
    parser.add_argument(
        "--partitions",
        type=_partitions,
        default=None,
        help="Comma-separated fixed block sizes summing to the total memory (default: one block).",
    )
    parser.add_argument(
        "--average-over",
        choices=[b.value for b in AverageBasis],
        default=AverageBasis.COMPLETED.value,
        help="Divide average waiting/turnaround by completed processes or all processes (default: completed).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memsched-cli",
        description="CPU scheduling simulator with contiguous memory allocation (FCFS/SJF x First-Fit/Best-Fit).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every allocation and dispatch decision.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Simulate one policy and strategy on a workload file.")
    _add_memory_options(run_parser)
    run_parser.add_argument(
        "--policy",
        "-p",
        choices=[p.value for p in SchedulingPolicy],
        default=SchedulingPolicy.FCFS.value,
        help="Scheduling policy (default: fcfs).",
    )
    run_parser.add_argument(
        "--strategy",
        "-s",
        choices=[s.value for s in AllocationStrategy],
        default=AllocationStrategy.FIRST_FIT.value,
        help="Memory allocation strategy (default: first-fit).",
    )
    run_parser.add_argument(
        "--plain",
        action="store_true",
        help="Draw the Gantt chart as plain text instead of a colored panel.",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run every policy/strategy pair on the same workload and compare the metrics.",
    )
    _add_memory_options(compare_parser)

    subparsers.add_parser(
        "menu",
        help="Interactive prompts for memory size, processes, strategy and policy.",
    )

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _print_result(
    result: SimulationResult,
    average_basis: AverageBasis,
    console: Console,
    plain: bool = False,
) -> None:
    console.print(f"[bold]Policy:[/bold] {result.policy.label}")
    console.print(f"[bold]Memory:[/bold] {result.total_memory} ({result.strategy.label}, {len(result.blocks)} block(s))")
    console.print()

    if plain:
        console.print(render_gantt(result.timeline), markup=False, highlight=False)
    else:
        panel, time_marks = build_rich_gantt(result.timeline)
        console.print(panel)
        if time_marks:
            console.print(time_marks)

    console.print()

    if result.incomplete:
        names = ", ".join(f"P{pid}" for pid in result.incomplete)
        console.print(f"[yellow]Not completed:[/yellow] {names}")
    if result.stall_reason:
        console.print(f"[yellow]{result.stall_reason}[/yellow]")

    try:
        report = summarize_result(result, average_basis)
    except DegenerateRunError as exc:
        console.print(f"[red]{exc}[/red]")
        return

    headers = ["PID", "Arrive", "Burst", "Memory", "Block", "Start", "Complete", "Wait", "Turnaround"]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        proc_table.add_column(h, justify="center" if h == "PID" else "right")

    for p in report.rows:
        proc_table.add_row(
            f"P{p.pid}",
            str(p.arrival_time),
            str(p.burst_time),
            str(p.memory_required),
            "" if p.block_start is None else f"@{p.block_start}",
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
        )

    console.print(proc_table)
    console.print()

    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Completed", f"{report.completed_count}/{report.total_count}")
    sys_table.add_row(f"Avg waiting (over {report.average_basis.value})", f"{report.avg_waiting_time:.2f}")
    sys_table.add_row(f"Avg turnaround (over {report.average_basis.value})", f"{report.avg_turnaround_time:.2f}")
    sys_table.add_row("CPU utilization", f"{report.cpu_utilization:.2f}%")
    sys_table.add_row("Throughput (proc/time)", f"{report.throughput:.2f}")

    console.print(sys_table)


def _run_compare(
    processes: List[Process],
    total_memory: int,
    partitions: Optional[List[int]],
    average_basis: AverageBasis,
    console: Console,
) -> None:
    summary_table = Table(
        title=f"Policy / strategy comparison (averages over {average_basis.value})",
        box=box.SIMPLE_HEAVY,
    )
    summary_table.add_column("Policy", no_wrap=True)
    summary_table.add_column("Strategy", no_wrap=True)
    summary_table.add_column("Completed", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("CPU util", justify="right")
    summary_table.add_column("Throughput", justify="right")

    for policy in SchedulingPolicy:
        for strategy in AllocationStrategy:
            result = run_simulation(processes, total_memory, policy, strategy, partitions)
            try:
                report = summarize_result(result, average_basis)
            except DegenerateRunError:
                summary_table.add_row(
                    policy.name, strategy.label, f"0/{len(processes)}", "-", "-", "-", "-"
                )
                continue
            summary_table.add_row(
                policy.name,
                strategy.label,
                f"{report.completed_count}/{report.total_count}",
                f"{report.avg_waiting_time:.2f}",
                f"{report.avg_turnaround_time:.2f}",
                f"{report.cpu_utilization:.2f}%",
                f"{report.throughput:.2f}",
            )

    console.print(summary_table)


def _prompt_int(console: Console, prompt: str, minimum: int) -> int:
    while True:
        raw = input(prompt).strip()
        try:
            value = int(raw)
        except ValueError:
            console.print(f"[red]Not a number: {raw!r}[/red]")
            continue
        if value < minimum:
            console.print(f"[red]Must be at least {minimum}.[/red]")
            continue
        return value


def _prompt_choice(console: Console, title: str, options: List[str]) -> int:
    """
    Show a numbered list and return the 0-based index picked.
    """
    while True:
        console.print(f"\n[bold]{title}[/bold]")
        for idx, option in enumerate(options, start=1):
            console.print(f"  [yellow]{idx}[/yellow]. [white]{option}[/white]")
        choice = input(f"Choice [1-{len(options)}]: ").strip()
        try:
            idx = int(choice) - 1
        except ValueError:
            idx = -1
        if 0 <= idx < len(options):
            return idx
        console.print("[red]Invalid choice, try again.[/red]")


def _interactive_menu(console: Console) -> None:
    console.print("\n[bold cyan]Memory-aware Scheduler Menu[/bold cyan]")

    total_memory = _prompt_int(console, "Total memory size: ", minimum=1)
    count = _prompt_int(console, "Number of processes: ", minimum=1)

    processes: List[Process] = []
    while len(processes) < count:
        pid = len(processes) + 1
        raw = input(f"Arrival time, burst time and memory for P{pid}: ").split()
        try:
            arrival, burst, memory = (int(v) for v in raw)
            processes.append(make_process(pid, arrival, burst, memory))
        except ValueError as exc:
            console.print(f"[red]Invalid entry ({exc}); enter three integers.[/red]")

    strategies = list(AllocationStrategy)
    strategy = strategies[_prompt_choice(console, "Memory strategy:", [s.label for s in strategies])]

    policies = list(SchedulingPolicy)
    options = [p.label for p in policies] + ["Exit"]
    idx = _prompt_choice(console, "Scheduling:", options)
    if idx == len(policies):
        return

    policy = policies[idx]
    console.print(f"\nRunning {policy.label}...")
    result = run_simulation(processes, total_memory, policy, strategy)
    _print_result(result, AverageBasis.COMPLETED, console)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    if args.command == "menu":
        _interactive_menu(console)
        return 0

    try:
        workload = load_workload(Path(args.workload))
        logger.debug("Loaded %d process(es) from %s", len(workload.processes), args.workload)
        total_memory = args.memory if args.memory is not None else workload.total_memory
        if total_memory is None:
            raise ValueError("Total memory is required: pass --memory or set total_memory in the workload")
        partitions = args.partitions if args.partitions is not None else workload.partitions
        average_basis = AverageBasis(args.average_over)

        if args.command == "run":
            result = run_simulation(workload.processes, total_memory, args.policy, args.strategy, partitions)
            _print_result(result, average_basis, console, plain=args.plain)
            return 0

        if args.command == "compare":
            _run_compare(workload.processes, total_memory, partitions, average_basis, console)
            return 0
    except (OSError, ValueError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
