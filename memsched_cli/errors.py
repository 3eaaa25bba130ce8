from __future__ import annotations

from typing import Iterable, List


class SimulationError(Exception):
    """
    Base class for errors raised by the simulator.
    """


class InsufficientMemoryError(SimulationError):
    """
    No free block can hold a process under the active allocation strategy.
    """

    def __init__(self, pid: int, size_needed: int) -> None:
        self.pid = pid
        self.size_needed = size_needed
        super().__init__(f"Not enough memory for process P{pid} (needs {size_needed})")


class DegenerateRunError(SimulationError):
    """
    Utilization and throughput are undefined: nothing ran, or no time elapsed.
    """


class StallError(SimulationError):
    """
    The ready set cannot make progress because no remaining process fits in
    any memory block.
    """

    def __init__(self, pids: Iterable[int], clock: int) -> None:
        self.pids: List[int] = sorted(pids)
        self.clock = clock
        names = ", ".join(f"P{pid}" for pid in self.pids)
        super().__init__(f"Stalled at t={clock}: {names} can never fit in memory")
