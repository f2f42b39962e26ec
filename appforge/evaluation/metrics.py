from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from appforge.schemas.messages import Result


@dataclass
class SubtaskOutcome:
    task_id: str
    success: bool
    error: Optional[str] = None


def collect_outcomes(result: Union[Result, Mapping[str, Any]]) -> List[SubtaskOutcome]:
    """Per-subtask outcomes from a coordinator result or its ``to_dict()`` dump."""
    output = result.output if isinstance(result, Result) else result.get("output") or {}
    sub_results = output.get("results") or {}
    outcomes: List[SubtaskOutcome] = []
    for task_id, sub in sub_results.items():
        if isinstance(sub, Result):
            outcomes.append(SubtaskOutcome(task_id=task_id, success=sub.success, error=sub.error))
        else:
            outcomes.append(
                SubtaskOutcome(task_id=task_id, success=bool(sub.get("success")), error=sub.get("error"))
            )
    return outcomes


def success_rate(outcomes: List[SubtaskOutcome]) -> float:
    if not outcomes:
        return 0.0
    successes = sum(1 for o in outcomes if o.success)
    return successes / len(outcomes)


def failed_outcomes(outcomes: List[SubtaskOutcome]) -> Dict[str, Optional[str]]:
    return {o.task_id: o.error for o in outcomes if not o.success}
