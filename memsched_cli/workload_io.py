from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .models import Process


@dataclass
class Workload:
    processes: List[Process] = field(default_factory=list)
    total_memory: Optional[int] = None
    partitions: Optional[List[int]] = None


def load_workload(path: str | Path) -> Workload:
    """
    Load a workload from a JSON or CSV file.

    Process ids are assigned in file order, starting at 1. A JSON file may
    also carry `total_memory` and `partitions` next to its `processes`.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return Workload(processes=_load_csv(path))

    raise ValueError(f"Unsupported workload format: {suffix} (use .json or .csv)")


def _load_json(path: Path) -> Workload:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, dict):
        entries = raw.get("processes")
        total_memory = _optional_positive(raw.get("total_memory"), "total_memory")
        partitions = raw.get("partitions")
        if partitions is not None:
            if not isinstance(partitions, list):
                raise ValueError("partitions must be a list of positive integers")
            partitions = [_positive(p, "partitions") for p in partitions]
    else:
        entries, total_memory, partitions = raw, None, None

    if not isinstance(entries, Iterable) or isinstance(entries, (str, dict)):
        raise ValueError("JSON workload must be a list of process objects or an object with 'processes'")

    return Workload(
        processes=build_processes(entries),
        total_memory=total_memory,
        partitions=partitions,
    )


def _load_csv(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return build_processes(reader)


def build_processes(entries: Iterable) -> List[Process]:
    return [_process_from_mapping(pid, entry) for pid, entry in enumerate(entries, start=1)]


def _process_from_mapping(pid: int, mapping) -> Process:
    try:
        arrival_time = int(mapping["arrival_time"])
        burst_time = int(mapping["burst_time"])
        memory = mapping.get("memory_required", mapping.get("memory"))
        memory_required = int(memory)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid process entry: {mapping!r}") from exc

    return make_process(pid, arrival_time, burst_time, memory_required)


def make_process(pid: int, arrival_time: int, burst_time: int, memory_required: int) -> Process:
    if arrival_time < 0:
        raise ValueError(f"P{pid}: arrival time must be >= 0, got {arrival_time}")
    if burst_time <= 0:
        raise ValueError(f"P{pid}: burst time must be > 0, got {burst_time}")
    if memory_required <= 0:
        raise ValueError(f"P{pid}: memory must be > 0, got {memory_required}")

    return Process(
        pid=pid,
        arrival_time=arrival_time,
        burst_time=burst_time,
        memory_required=memory_required,
    )


def _positive(value, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid {name}: {value!r}") from exc
    if number <= 0:
        raise ValueError(f"{name} must be positive, got {number}")
    return number


def _optional_positive(value, name: str) -> Optional[int]:
    return None if value is None else _positive(value, name)
