from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from appforge.agents.base import Worker
from appforge.agents.registry import WorkerRegistry
from appforge.errors import PlanError
from appforge.memory.artifacts import aggregate_artifacts
from appforge.schemas.messages import (
    CoordinatorPhase,
    Message,
    Result,
    Task,
    WorkerState,
    WorkerType,
)
from appforge.utils.json_text import best_effort_decode
from appforge.utils.llm_clients import LLMClient
from appforge.workflows.scheduler import (
    DispatchRecord,
    ScheduleOutcome,
    SubtaskSpec,
    build_subtask,
    run_single_pass,
    run_waves,
    sort_subtasks,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are the Coordinator Agent for AppForge, an AI application builder.
You:
1. Break the user's requirements down into concrete tasks
2. Pick the specialized agent for each task
3. Order the tasks with explicit dependencies
4. Keep track of progress and errors
5. Combine what the agents produce into one result

Available agents:
- research: gathers information, best practices and documentation
- coder: writes frontend (React/TypeScript) and backend (FastAPI/Python) code
- database: designs schemas and writes migrations
- security: implements authentication, authorization and hardening
- reporter: writes documentation and deployment guides
- browser: tests the UI and automates the browser

Reply with the task plan as JSON, shaped like this:
{
  "tasks": [
    {
      "id": "task_1",
      "agent": "research|coder|database|security|reporter|browser",
      "description": "What to do",
      "input": { ... },
      "dependencies": ["task_id"],
      "priority": 1-10
    }
  ],
  "summary": "One-paragraph summary of the plan"
}"""

PLAN_GUIDANCE = (
    "Analyze this request and produce a detailed task plan. Consider:",
    "1. What needs to be researched?",
    "2. Which code components need to be generated?",
    "3. Which database schemas are required?",
    "4. Which security measures apply?",
    "5. What documentation should be written?",
    "",
    "Provide the task plan as JSON.",
)


@dataclass
class DispatchPolicy:
    # 1 keeps the strictly sequential single pass
    max_concurrency: int = 1


def parse_plan(response: str) -> Dict[str, Any]:
    """Decode the planner reply into ``{"tasks": [...], "summary": ...}``.

    Unparseable text becomes an empty plan. A ``tasks`` value that is not a
    list, or an entry that is not an object, raises :class:`PlanError`.
    Entries without an id get a positional one (``task_1``, ``task_2``...).
    """
    plan = best_effort_decode(response, lambda raw: {"tasks": [], "summary": raw})
    tasks = plan.get("tasks")
    if tasks is None:
        tasks = []
    if not isinstance(tasks, list):
        raise PlanError(f"plan tasks must be a list, got {type(tasks).__name__}")

    normalized: List[SubtaskSpec] = []
    for position, entry in enumerate(tasks, start=1):
        if not isinstance(entry, dict):
            raise PlanError(f"plan entry {position} is not an object")
        if entry.get("id") is None:
            entry = {**entry, "id": f"task_{position}"}
        normalized.append(entry)
    return {**plan, "tasks": normalized}


class Coordinator(Worker):
    """Plans a request, dispatches the subtasks, and folds their artifacts.

    Subtask failures never fail the coordinator; only errors in its own
    planning, dispatch or aggregation code do. Callers wanting partial
    failure detail should scan ``output["results"][*].success``.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        system_prompt: Optional[str] = None,
        *,
        registry: Optional[WorkerRegistry] = None,
        policy: Optional[DispatchPolicy] = None,
        max_steps: Optional[int] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        super().__init__(
            name="Coordinator",
            type=WorkerType.COORDINATOR,
            description=(
                "Orchestrates the application building process by breaking down "
                "requirements and delegating tasks to specialized agents"
            ),
            system_prompt=system_prompt or SYSTEM_PROMPT,
            llm_client=llm_client,
            max_steps=max_steps,
            timeout_s=timeout_s,
        )
        self.registry = registry if registry is not None else WorkerRegistry()
        self.policy = policy or DispatchPolicy()
        self.phase = CoordinatorPhase.IDLE

    def register_worker(self, worker: Worker) -> None:
        self.registry.register(worker)

    def reset(self) -> None:
        super().reset()
        self.phase = CoordinatorPhase.IDLE

    def run(self, task: Task, messages: List[Message]) -> Result:
        try:
            self.phase = CoordinatorPhase.PLANNING
            plan = self.plan(task, messages)

            self.phase = CoordinatorPhase.EXECUTING
            self.state = WorkerState.WAITING
            outcome = self.dispatch_plan(plan["tasks"], messages)
            self.state = WorkerState.RUNNING

            self.phase = CoordinatorPhase.AGGREGATING
            results = outcome.results
            artifacts = aggregate_artifacts(record.result for record in outcome.records)
        except Exception:
            self.phase = CoordinatorPhase.ERROR
            raise

        self.phase = CoordinatorPhase.COMPLETED
        failed = [task_id for task_id, result in results.items() if not result.success]
        logger.info(
            "Task %s finished: %d dispatched, %d failed, %d files",
            task.id,
            len(outcome.records),
            len(failed),
            len(artifacts.files),
        )
        return Result(
            success=True,
            output={"plan": plan, "results": results},
            messages=messages,
            artifacts=artifacts,
        )

    def plan(self, task: Task, messages: List[Message]) -> Dict[str, Any]:
        prompt = self.build_prompt("User Request", task, PLAN_GUIDANCE, context_label="Additional Context")
        response = self.think(prompt)
        messages.append(self.agent_message("Task plan created", metadata={"plan": response}))
        plan = parse_plan(response)
        logger.info("Planned %d subtasks for task %s", len(plan["tasks"]), task.id)
        return plan

    def dispatch_plan(self, subtasks: List[SubtaskSpec], messages: List[Message]) -> ScheduleOutcome:
        ordered = sort_subtasks(subtasks)

        def on_record(record: DispatchRecord) -> None:
            messages.append(record.delegation)
            messages.extend(record.result.messages)

        if self.policy.max_concurrency > 1:
            return run_waves(ordered, self.worker_for, self._dispatch, self.policy.max_concurrency, on_record)
        return run_single_pass(ordered, self.worker_for, self._dispatch, on_record)

    def worker_for(self, agent: Any) -> Optional[Worker]:
        """Registered worker for a plan's ``agent`` value; never the coordinator itself."""
        worker_type = WorkerType.parse(agent)
        if worker_type is None or worker_type is WorkerType.COORDINATOR:
            return None
        worker = self.registry.get(worker_type)
        if worker is self:
            return None
        return worker

    def _dispatch(self, spec: SubtaskSpec, worker: Worker, previous: Dict[str, Result]) -> DispatchRecord:
        subtask = build_subtask(spec, worker.type, previous)
        delegation = self.agent_message(f"Delegating to {worker.name}: {subtask.description}")
        logger.info("Dispatching %s to %s", subtask.id, worker.name)
        result = worker.execute(subtask)
        if not result.success:
            logger.warning("Subtask %s failed in %s: %s", subtask.id, worker.name, result.error)
        return DispatchRecord(task=subtask, worker=worker, delegation=delegation, result=result)
