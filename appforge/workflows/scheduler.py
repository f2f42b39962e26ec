"""Dependency-ordered dispatch of planned subtasks.

Subtasks are sorted by priority and walked exactly once. A subtask runs only
if every dependency was dispatched earlier in the same walk; otherwise it is
skipped for good. A dependency that sorts *after* its dependent therefore
blocks it permanently. This mirrors the behaviour callers already rely on;
switching to a full topological sort would change which subtasks run.
"""

from __future__ import annotations

import logging
import math
import numbers
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from appforge.agents.base import Worker
from appforge.errors import PlanError
from appforge.schemas.messages import Message, Result, Task, WorkerType

logger = logging.getLogger(__name__)

# Priority given to a subtask the planner left unprioritized (lowest on the 1-10 scale).
DEFAULT_PRIORITY = 10

SubtaskSpec = Dict[str, Any]
Lookup = Callable[[Any], Optional[Worker]]


@dataclass
class DispatchRecord:
    task: Task
    worker: Worker
    delegation: Message
    result: Result


Dispatch = Callable[[SubtaskSpec, Worker, Dict[str, Result]], DispatchRecord]
OnRecord = Optional[Callable[[DispatchRecord], None]]


@dataclass
class ScheduleOutcome:
    """Every dispatch in dispatch order; skipped subtasks leave no trace."""

    records: List[DispatchRecord]

    @property
    def results(self) -> Dict[str, Result]:
        results: Dict[str, Result] = {}
        for record in self.records:
            results[record.task.id] = record.result
        return results


def priority_of(spec: SubtaskSpec) -> float:
    """Numeric priority of a subtask; numeric strings are accepted.

    Anything else that does not convert (including booleans) is treated like
    a missing priority.
    """
    value = spec.get("priority")
    if value is None or isinstance(value, bool):
        return DEFAULT_PRIORITY
    try:
        priority = value if isinstance(value, numbers.Real) else float(value)
    except (TypeError, ValueError):
        logger.debug("Subtask %r has unusable priority %r", spec.get("id"), value)
        return DEFAULT_PRIORITY
    # NaN would break the sort order
    if math.isnan(priority):
        return DEFAULT_PRIORITY
    return priority


def dependencies_of(spec: SubtaskSpec) -> List[str]:
    deps = spec.get("dependencies")
    if deps is None:
        return []
    if not isinstance(deps, list):
        raise PlanError(f"subtask {spec.get('id')!r} has dependencies that are not a list")
    return [str(dep) for dep in deps]


def sort_subtasks(subtasks: List[SubtaskSpec]) -> List[SubtaskSpec]:
    """Stable sort by ascending priority; ties keep plan order."""
    return sorted(subtasks, key=priority_of)


def build_subtask(
    spec: SubtaskSpec,
    worker_type: WorkerType,
    previous_results: Dict[str, Result],
) -> Task:
    """Task for one planned subtask, carrying a snapshot of earlier results."""
    raw_input = spec.get("input")
    if raw_input is None:
        raw_input = {}
    if not isinstance(raw_input, dict):
        raise PlanError(f"subtask {spec.get('id')!r} input must be an object, got {type(raw_input).__name__}")
    description = spec.get("description")
    return Task(
        id=str(spec["id"]),
        type=worker_type,
        description="" if description is None else str(description),
        input={**raw_input, "previousResults": dict(previous_results)},
        dependencies=dependencies_of(spec),
        priority=priority_of(spec),
    )


def run_single_pass(
    ordered: List[SubtaskSpec],
    lookup: Lookup,
    dispatch: Dispatch,
    on_record: OnRecord = None,
) -> ScheduleOutcome:
    completed: set[str] = set()
    results: Dict[str, Result] = {}
    records: List[DispatchRecord] = []

    for spec in ordered:
        task_id = str(spec["id"])
        missing = [dep for dep in dependencies_of(spec) if dep not in completed]
        if missing:
            logger.debug("Skipping %s: dependencies %s not completed yet", task_id, missing)
            continue
        worker = lookup(spec.get("agent"))
        if worker is None:
            logger.debug("Skipping %s: no worker for agent %r", task_id, spec.get("agent"))
            continue

        record = dispatch(spec, worker, dict(results))
        records.append(record)
        results[task_id] = record.result
        if on_record is not None:
            on_record(record)
        # failed subtasks still count as resolved for their dependents
        completed.add(task_id)

    return ScheduleOutcome(records=records)


def plan_waves(ordered: List[SubtaskSpec], lookup: Lookup) -> List[List[Tuple[SubtaskSpec, Worker]]]:
    """Group the subtasks a single pass would dispatch into dependency levels.

    Nothing runs here. Level 0 holds subtasks without dependencies; every
    other subtask sits one level above its deepest dependency.
    """
    levels: Dict[str, int] = {}
    waves: List[List[Tuple[SubtaskSpec, Worker]]] = []

    for spec in ordered:
        deps = dependencies_of(spec)
        if any(dep not in levels for dep in deps):
            continue
        worker = lookup(spec.get("agent"))
        if worker is None:
            continue
        level = max((levels[dep] + 1 for dep in deps), default=0)
        levels[str(spec["id"])] = level
        while len(waves) <= level:
            waves.append([])
        waves[level].append((spec, worker))

    return waves


def run_waves(
    ordered: List[SubtaskSpec],
    lookup: Lookup,
    dispatch: Dispatch,
    max_concurrency: int,
    on_record: OnRecord = None,
) -> ScheduleOutcome:
    """Fan each wave out over a bounded thread pool and wait for all of it.

    Dispatches the same subtasks as :func:`run_single_pass`. Records come
    back wave by wave, priority order inside a wave; ``previousResults``
    holds only what earlier waves produced.
    """
    results: Dict[str, Result] = {}
    records: List[DispatchRecord] = []

    for number, wave in enumerate(plan_waves(ordered, lookup)):
        snapshot = dict(results)
        logger.debug("Wave %d: %s", number, [str(spec["id"]) for spec, _ in wave])
        pool_size = max(1, min(max_concurrency, len(wave)))
        with ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="dispatch") as pool:
            wave_records = list(pool.map(lambda item: dispatch(item[0], item[1], snapshot), wave))
        for (spec, _), record in zip(wave, wave_records):
            records.append(record)
            results[str(spec["id"])] = record.result
            if on_record is not None:
                on_record(record)

    return ScheduleOutcome(records=records)
