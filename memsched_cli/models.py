from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class AllocationStrategy(Enum):
    FIRST_FIT = "first-fit"
    BEST_FIT = "best-fit"

    @property
    def label(self) -> str:
        return "First-Fit" if self is AllocationStrategy.FIRST_FIT else "Best-Fit"


class SchedulingPolicy(Enum):
    FCFS = "fcfs"
    SJF = "sjf"

    @property
    def label(self) -> str:
        return "FCFS" if self is SchedulingPolicy.FCFS else "SJF (non-preemptive)"


class AverageBasis(Enum):
    """
    Divisor used for the average waiting and turnaround times.

    COMPLETED divides by the number of completed processes. ALL divides by the
    size of the whole batch, counting processes that never ran as zero.
    """

    COMPLETED = "completed"
    ALL = "all"


@dataclass(frozen=True)
class Process:
    pid: int
    arrival_time: int
    burst_time: int
    memory_required: int


@dataclass
class ProcessRecord:
    """
    Mutable per-run state of one process.
    """

    pid: int
    arrival_time: int
    burst_time: int
    memory_required: int
    start_time: Optional[int] = None
    completion_time: Optional[int] = None
    waiting_time: int = 0
    turnaround_time: int = 0
    completed: bool = False
    block_start: Optional[int] = None

    @classmethod
    def from_process(cls, process: Process) -> "ProcessRecord":
        return cls(
            pid=process.pid,
            arrival_time=process.arrival_time,
            burst_time=process.burst_time,
            memory_required=process.memory_required,
        )


@dataclass
class MemoryBlock:
    start: int
    size: int
    free: bool = True
    owner: Optional[int] = None

    @property
    def end(self) -> int:
        return self.start + self.size


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.
    """

    pid: int
    start_time: int
    end_time: int


@dataclass
class ProcessMetrics:
    pid: int
    arrival_time: int
    burst_time: int
    start_time: int
    completion_time: int
    waiting_time: int
    turnaround_time: int
    memory_required: int
    block_start: Optional[int] = None


@dataclass
class SimulationResult:
    policy: SchedulingPolicy
    strategy: AllocationStrategy
    total_memory: int
    records: List[ProcessRecord] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    cpu_busy_time: int = 0
    elapsed_time: int = 0
    incomplete: List[int] = field(default_factory=list)
    stall_reason: Optional[str] = None
    blocks: List[MemoryBlock] = field(default_factory=list)


@dataclass
class Report:
    rows: List[ProcessMetrics]
    avg_waiting_time: float
    avg_turnaround_time: float
    cpu_utilization: float
    throughput: float
    incomplete: List[int]
    average_basis: AverageBasis
    completed_count: int
    total_count: int
