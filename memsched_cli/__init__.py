"""
Memory-aware scheduler CLI package.

Simulates non-preemptive CPU scheduling (FCFS, SJF) on top of contiguous
memory allocation (First-Fit, Best-Fit) and reports per-process and
system-wide metrics.
"""

__all__ = ["cli"]
