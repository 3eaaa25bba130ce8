from __future__ import annotations

from typing import List

from .errors import DegenerateRunError
from .models import AverageBasis, ProcessMetrics, ProcessRecord, Report, SimulationResult


def summarize(
    records: List[ProcessRecord],
    cpu_busy_time: int,
    elapsed_time: int,
    average_basis: AverageBasis = AverageBasis.COMPLETED,
) -> Report:
    """
    Build the report for a finished run.

    Rows cover completed processes only, in dispatch order. Averages divide
    by the completed count or by the whole batch, as `average_basis` says;
    utilization and throughput always use the completed processes.
    """
    completed = sorted((r for r in records if r.completed), key=lambda r: r.start_time)

    if not completed:
        raise DegenerateRunError("No process completed; utilization and throughput are undefined")
    if elapsed_time <= 0:
        raise DegenerateRunError(f"Elapsed time is {elapsed_time}; utilization and throughput are undefined")

    rows = [
        ProcessMetrics(
            pid=r.pid,
            arrival_time=r.arrival_time,
            burst_time=r.burst_time,
            start_time=r.start_time,
            completion_time=r.completion_time,
            waiting_time=r.waiting_time,
            turnaround_time=r.turnaround_time,
            memory_required=r.memory_required,
            block_start=r.block_start,
        )
        for r in completed
    ]

    divisor = len(completed) if average_basis is AverageBasis.COMPLETED else len(records)

    return Report(
        rows=rows,
        avg_waiting_time=sum(r.waiting_time for r in completed) / divisor,
        avg_turnaround_time=sum(r.turnaround_time for r in completed) / divisor,
        cpu_utilization=100 * cpu_busy_time / elapsed_time,
        throughput=len(completed) / elapsed_time,
        incomplete=sorted(r.pid for r in records if not r.completed),
        average_basis=average_basis,
        completed_count=len(completed),
        total_count=len(records),
    )


def summarize_result(
    result: SimulationResult, average_basis: AverageBasis = AverageBasis.COMPLETED
) -> Report:
    return summarize(result.records, result.cpu_busy_time, result.elapsed_time, average_basis)
