from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Union

from .errors import InsufficientMemoryError, SimulationError, StallError
from .memory import MemoryAllocator
from .models import (
    AllocationStrategy,
    MemoryBlock,
    Process,
    ProcessRecord,
    ScheduledSlice,
    SchedulingPolicy,
    SimulationResult,
)

logger = logging.getLogger(__name__)


def _build_records(processes: Iterable[Process]) -> List[ProcessRecord]:
    records = [ProcessRecord.from_process(p) for p in processes]
    pids = [r.pid for r in records]
    if len(set(pids)) != len(pids):
        raise ValueError(f"Process ids must be unique: {pids}")
    return records


def _dispatch(record: ProcessRecord, time: int, block: MemoryBlock) -> None:
    if record.completed:
        raise SimulationError(f"P{record.pid} was already dispatched")

    record.start_time = time
    record.completion_time = time + record.burst_time
    record.waiting_time = record.start_time - record.arrival_time
    record.turnaround_time = record.completion_time - record.arrival_time
    record.completed = True
    record.block_start = block.start
    logger.debug(
        "t=%d: dispatch P%s (burst %d) on block @%d, completes at %d",
        time,
        record.pid,
        record.burst_time,
        block.start,
        record.completion_time,
    )


def _release_finished(
    allocator: MemoryAllocator, holding: List[ProcessRecord], time: int
) -> List[ProcessRecord]:
    """
    Free the blocks of every process that completed at or before `time` and
    return the processes still holding memory.
    """
    still_holding = []
    for record in sorted(holding, key=lambda r: r.completion_time):
        if record.completion_time <= time:
            allocator.deallocate(record.pid)
        else:
            still_holding.append(record)
    return still_holding


def schedule_fcfs(
    processes: List[Process],
    total_memory: int,
    strategy: AllocationStrategy = AllocationStrategy.FIRST_FIT,
    partitions: Optional[Sequence[int]] = None,
) -> SimulationResult:
    """
    First-Come First-Serve (non-preemptive) with memory admission.

    Each process asks for memory once, at its arrival time. If no block is
    free then, it is skipped for good. An admitted process keeps its block
    until it completes.
    """
    allocator = MemoryAllocator(total_memory, strategy, partitions)
    records = _build_records(processes)

    time = 0
    cpu_busy_time = 0
    timeline: List[ScheduledSlice] = []
    holding: List[ProcessRecord] = []
    incomplete: List[int] = []

    # sorted() is stable: equal arrivals keep input order.
    for record in sorted(records, key=lambda r: r.arrival_time):
        holding = _release_finished(allocator, holding, record.arrival_time)
        try:
            block = allocator.require(record.pid, record.memory_required)
        except InsufficientMemoryError as exc:
            logger.warning("%s; skipping", exc)
            incomplete.append(record.pid)
            continue

        time = max(time, record.arrival_time)
        _dispatch(record, time, block)
        timeline.append(
            ScheduledSlice(pid=record.pid, start_time=record.start_time, end_time=record.completion_time)
        )
        holding.append(record)

        time = record.completion_time
        cpu_busy_time += record.burst_time

    _release_finished(allocator, holding, time)

    return SimulationResult(
        policy=SchedulingPolicy.FCFS,
        strategy=allocator.strategy,
        total_memory=total_memory,
        records=records,
        timeline=timeline,
        cpu_busy_time=cpu_busy_time,
        elapsed_time=time,
        incomplete=sorted(incomplete),
        blocks=allocator.blocks,
    )


def _next_clock(
    allocator: MemoryAllocator,
    ready: List[ProcessRecord],
    pending: List[ProcessRecord],
    time: int,
) -> int:
    """
    Clock value for the next decision when nothing could be dispatched at
    `time`. Raises StallError when the ready set can never drain.
    """
    if ready and not any(allocator.can_ever_fit(r.memory_required) for r in pending):
        raise StallError((r.pid for r in pending), time)

    # Memory and the ready set only change at arrivals, so jumping to the next
    # one gives the same schedule as ticking one unit at a time.
    return min((r.arrival_time for r in pending if r.arrival_time > time), default=time + 1)


def schedule_sjf(
    processes: List[Process],
    total_memory: int,
    strategy: AllocationStrategy = AllocationStrategy.FIRST_FIT,
    partitions: Optional[Sequence[int]] = None,
) -> SimulationResult:
    """
    Shortest Job First (non-preemptive), gated on memory.

    At each decision point, the arrived processes are tried in order of burst
    time (ties keep arrival order) and the first one that gets a block runs
    to completion. A shorter job that does not fit is passed over for a
    longer one that does.
    """
    allocator = MemoryAllocator(total_memory, strategy, partitions)
    records = _build_records(processes)

    time = 0
    cpu_busy_time = 0
    timeline: List[ScheduledSlice] = []
    holding: List[ProcessRecord] = []
    pending: List[ProcessRecord] = list(records)
    ready: List[ProcessRecord] = []
    stall_reason: Optional[str] = None

    while pending:
        holding = _release_finished(allocator, holding, time)

        in_ready = {r.pid for r in ready}
        ready.extend(r for r in pending if r.arrival_time <= time and r.pid not in in_ready)
        ready.sort(key=lambda r: r.burst_time)

        chosen: Optional[ProcessRecord] = None
        for record in ready:
            if allocator.allocate(record.pid, record.memory_required):
                chosen = record
                break

        if chosen is None:
            try:
                time = _next_clock(allocator, ready, pending, time)
            except StallError as exc:
                logger.warning("%s", exc)
                stall_reason = str(exc)
                break
            continue

        _dispatch(chosen, time, allocator.block_of(chosen.pid))
        timeline.append(
            ScheduledSlice(pid=chosen.pid, start_time=chosen.start_time, end_time=chosen.completion_time)
        )
        holding.append(chosen)
        ready = [r for r in ready if r.pid != chosen.pid]
        pending = [r for r in pending if r.pid != chosen.pid]

        time = chosen.completion_time
        cpu_busy_time += chosen.burst_time

    _release_finished(allocator, holding, time)

    return SimulationResult(
        policy=SchedulingPolicy.SJF,
        strategy=allocator.strategy,
        total_memory=total_memory,
        records=records,
        timeline=timeline,
        cpu_busy_time=cpu_busy_time,
        elapsed_time=time,
        incomplete=sorted(r.pid for r in pending),
        stall_reason=stall_reason,
        blocks=allocator.blocks,
    )


POLICIES = {
    SchedulingPolicy.FCFS: schedule_fcfs,
    SchedulingPolicy.SJF: schedule_sjf,
}


def run_simulation(
    processes: List[Process],
    total_memory: int,
    policy: Union[SchedulingPolicy, str] = SchedulingPolicy.FCFS,
    strategy: Union[AllocationStrategy, str] = AllocationStrategy.FIRST_FIT,
    partitions: Optional[Sequence[int]] = None,
) -> SimulationResult:
    """
    Dispatch to the requested policy. Names are accepted in any case
    ("fcfs", "SJF", "first-fit", "Best-Fit").
    """
    try:
        if isinstance(policy, str):
            policy = SchedulingPolicy(policy.lower())
        if isinstance(strategy, str):
            strategy = AllocationStrategy(strategy.lower())
    except ValueError as exc:
        raise ValueError(f"Unknown scheduling policy or allocation strategy: {exc}") from exc

    func = POLICIES[policy]
    return func(processes, total_memory, strategy=strategy, partitions=partitions)
