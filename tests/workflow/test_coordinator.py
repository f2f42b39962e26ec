import json
from typing import Dict, List, Optional

from appforge.agents.base import Worker
from appforge.agents.coordinator import Coordinator, DispatchPolicy, parse_plan
from appforge.schemas.messages import (
    ArtifactBundle,
    CoordinatorPhase,
    FileArtifact,
    Result,
    Task,
    WorkerState,
    WorkerType,
)
from appforge.utils.llm_clients import ScriptedLLMClient
from appforge.workflows.system import create_agent_system


class RecordingWorker(Worker):
    """Worker stand-in that records the tasks it receives."""

    def __init__(
        self,
        worker_type: WorkerType,
        fail: bool = False,
        artifacts: Optional[Dict[str, ArtifactBundle]] = None,
    ) -> None:
        super().__init__(
            name=worker_type.value.title(),
            type=worker_type,
            description="test worker",
            system_prompt="",
            llm_client=ScriptedLLMClient(),
        )
        self.fail = fail
        self.artifacts = artifacts or {}
        self.tasks: List[Task] = []

    def run(self, task, messages):
        self.tasks.append(task)
        messages.append(self.agent_message(f"ran {task.id}"))
        if self.fail:
            raise RuntimeError(f"{task.id} broke")
        return Result(
            success=True,
            output={"id": task.id},
            messages=messages,
            artifacts=self.artifacts.get(task.id),
        )


def plan(*tasks, summary: str = "plan") -> str:
    return json.dumps({"tasks": list(tasks), "summary": summary})


def build_coordinator(plan_text: str, *workers: Worker, policy: DispatchPolicy = None) -> Coordinator:
    coordinator = Coordinator(ScriptedLLMClient([plan_text]), policy=policy)
    for worker in workers:
        coordinator.register_worker(worker)
    return coordinator


def top_task(description: str = "build a todo app") -> Task:
    return Task(id="root", type=WorkerType.COORDINATOR, description=description, input={"appType": "web"})


def test_dependency_runs_after_and_sees_previous_result():
    research = RecordingWorker(WorkerType.RESEARCH)
    coder = RecordingWorker(WorkerType.CODER)
    coordinator = build_coordinator(
        plan(
            {"id": "a", "agent": "research", "description": "x", "input": {}, "priority": 1},
            {"id": "b", "agent": "coder", "description": "y", "input": {}, "dependencies": ["a"], "priority": 2},
        ),
        research,
        coder,
    )

    result = coordinator.execute(top_task())

    assert result.success is True
    assert list(result.output["results"]) == ["a", "b"]
    previous = coder.tasks[0].input["previousResults"]
    assert previous["a"] is result.output["results"]["a"]
    assert research.tasks[0].input["previousResults"] == {}
    assert coordinator.phase is CoordinatorPhase.COMPLETED
    assert coordinator.state is WorkerState.COMPLETED


def test_concrete_scenario_with_real_workers():
    llm = ScriptedLLMClient(
        [
            plan(
                {"id": "a", "agent": "research", "description": "x", "input": {}, "priority": 1},
                {"id": "b", "agent": "coder", "description": "y", "input": {}, "dependencies": ["a"], "priority": 2},
            ),
            '{"findings": [], "architecture": "spa"}',
            '{"files": [{"path": "Login.tsx", "content": "...", "type": "frontend"}], "instructions": "done"}',
        ]
    )
    coordinator = create_agent_system(llm)

    result = coordinator.execute(top_task("add a login form"))

    assert result.success is True
    assert [call[0]["content"] for call in llm.calls[1:]] == [
        coordinator.registry.get("research").system_prompt,
        coordinator.registry.get("coder").system_prompt,
    ]
    coder_prompt = llm.calls[2][-1]["content"]
    assert '"previousResults"' in coder_prompt
    assert '"a": {' in coder_prompt
    assert [f.path for f in result.artifacts.files] == ["Login.tsx"]


def test_subtask_with_later_dependency_is_skipped():
    # known limitation of the single pass: "b" sorts before the "a" it needs
    research = RecordingWorker(WorkerType.RESEARCH)
    coder = RecordingWorker(WorkerType.CODER)
    coordinator = build_coordinator(
        plan(
            {"id": "b", "agent": "coder", "description": "y", "dependencies": ["a"], "priority": 1},
            {"id": "a", "agent": "research", "description": "x", "priority": 2},
        ),
        research,
        coder,
    )

    result = coordinator.execute(top_task())

    assert result.success is True
    assert list(result.output["results"]) == ["a"]
    assert coder.tasks == []


def test_subtasks_without_dependencies_always_run():
    research = RecordingWorker(WorkerType.RESEARCH)
    coordinator = build_coordinator(
        plan(
            {"id": "r3", "agent": "research", "description": "c", "priority": 3},
            {"id": "r1", "agent": "research", "description": "a", "priority": 1},
            {"id": "r2", "agent": "research", "description": "b", "dependencies": [], "priority": 1},
        ),
        research,
    )

    result = coordinator.execute(top_task())

    assert [t.id for t in research.tasks] == ["r1", "r2", "r3"]
    assert len(result.output["results"]) == 3


def test_unknown_agent_is_skipped_with_its_dependents():
    research = RecordingWorker(WorkerType.RESEARCH)
    coordinator = build_coordinator(
        plan(
            {"id": "x", "agent": "designer", "description": "logo", "priority": 1},
            {"id": "y", "agent": "research", "description": "after logo", "dependencies": ["x"], "priority": 2},
            {"id": "z", "agent": "research", "description": "independent", "priority": 3},
        ),
        research,
    )

    result = coordinator.execute(top_task())

    assert result.success is True
    assert list(result.output["results"]) == ["z"]


def test_unregistered_known_type_is_skipped():
    coordinator = build_coordinator(
        plan({"id": "a", "agent": "database", "description": "schema", "priority": 1}),
        RecordingWorker(WorkerType.RESEARCH),
    )

    result = coordinator.execute(top_task())

    assert result.success is True
    assert result.output["results"] == {}


def test_failed_dependency_still_unblocks_dependents():
    research = RecordingWorker(WorkerType.RESEARCH, fail=True)
    coder = RecordingWorker(WorkerType.CODER)
    coordinator = build_coordinator(
        plan(
            {"id": "a", "agent": "research", "description": "x", "priority": 1},
            {"id": "b", "agent": "coder", "description": "y", "dependencies": ["a"], "priority": 2},
        ),
        research,
        coder,
    )

    result = coordinator.execute(top_task())

    assert result.success is True
    results = result.output["results"]
    assert results["a"].success is False
    assert results["a"].error == "a broke"
    assert results["b"].success is True
    assert coder.tasks[0].input["previousResults"]["a"].success is False


def test_artifacts_are_concatenated_in_dispatch_order():
    f1 = FileArtifact(path="one.ts", content="1", type="frontend")
    f2 = FileArtifact(path="two.py", content="2", type="backend")
    f3 = FileArtifact(path="one.ts", content="3", type="frontend")
    coder = RecordingWorker(
        WorkerType.CODER,
        artifacts={
            "t1": ArtifactBundle(files=[f1]),
            "t2": ArtifactBundle(files=[]),
            "t3": ArtifactBundle(files=[f2, f3]),
        },
    )
    coordinator = build_coordinator(
        plan(
            {"id": "t1", "agent": "coder", "description": "a", "priority": 1},
            {"id": "t2", "agent": "coder", "description": "b", "priority": 2},
            {"id": "t3", "agent": "coder", "description": "c", "priority": 3},
        ),
        coder,
    )

    result = coordinator.execute(top_task())

    assert result.artifacts.files == [f1, f2, f3]
    assert result.artifacts.schemas == []
    assert result.artifacts.docs == []


def test_unparseable_plan_is_an_empty_plan():
    coordinator = build_coordinator("I would start with research.", RecordingWorker(WorkerType.RESEARCH))

    result = coordinator.execute(top_task())

    assert result.success is True
    assert result.output["plan"] == {"tasks": [], "summary": "I would start with research."}
    assert result.output["results"] == {}
    assert result.artifacts.is_empty()


def test_message_log_order():
    coordinator = build_coordinator(
        plan(
            {"id": "a", "agent": "research", "description": "x", "priority": 1},
            {"id": "b", "agent": "coder", "description": "y", "priority": 2},
        ),
        RecordingWorker(WorkerType.RESEARCH),
        RecordingWorker(WorkerType.CODER),
    )

    result = coordinator.execute(top_task())

    assert [m.content for m in result.messages] == [
        "Task plan created",
        "Delegating to Research: x",
        "ran a",
        "Delegating to Coder: y",
        "ran b",
    ]
    assert result.messages[0].metadata["plan"].startswith('{"tasks"')


def test_planning_backend_failure_fails_the_run():
    coordinator = Coordinator(ScriptedLLMClient([ConnectionError("backend down")]))

    result = coordinator.execute(top_task())

    assert result.success is False
    assert result.error == "backend down"
    assert coordinator.state is WorkerState.ERROR
    assert coordinator.phase is CoordinatorPhase.ERROR


def test_malformed_subtask_input_fails_the_run():
    coordinator = build_coordinator(
        plan({"id": "a", "agent": "research", "description": "x", "input": "not an object", "priority": 1}),
        RecordingWorker(WorkerType.RESEARCH),
    )

    result = coordinator.execute(top_task())

    assert result.success is False
    assert "input must be an object" in result.error
    assert result.output == {}
    assert result.messages[0].content == "Task plan created"


def test_coordinator_subtasks_are_not_dispatched_to_itself():
    research = RecordingWorker(WorkerType.RESEARCH)
    coordinator = build_coordinator(
        plan(
            {"id": "loop", "agent": "coordinator", "description": "plan again", "priority": 1},
            {"id": "a", "agent": "research", "description": "x", "priority": 2},
        ),
        research,
    )
    coordinator.register_worker(coordinator)

    result = coordinator.execute(top_task())

    assert list(result.output["results"]) == ["a"]


def test_parallel_waves_keep_single_pass_selection():
    research = RecordingWorker(WorkerType.RESEARCH)
    coder = RecordingWorker(WorkerType.CODER)
    coordinator = build_coordinator(
        plan(
            {"id": "a", "agent": "research", "description": "x", "priority": 1},
            {"id": "b", "agent": "coder", "description": "y", "dependencies": ["a"], "priority": 2},
            {"id": "c", "agent": "coder", "description": "z", "priority": 3},
            {"id": "d", "agent": "coder", "description": "w", "dependencies": ["e"], "priority": 4},
            {"id": "e", "agent": "research", "description": "v", "priority": 5},
        ),
        research,
        coder,
        policy=DispatchPolicy(max_concurrency=3),
    )

    result = coordinator.execute(top_task())

    assert result.success is True
    assert list(result.output["results"]) == ["a", "c", "e", "b"]
    b_task = next(t for t in coder.tasks if t.id == "b")
    assert set(b_task.input["previousResults"]) == {"a", "c", "e"}


def test_parse_plan_normalizes_entries():
    parsed = parse_plan('{"tasks": [{"agent": "coder"}, {"id": "x", "agent": "research"}], "summary": "s"}')
    assert [t["id"] for t in parsed["tasks"]] == ["task_1", "x"]
    assert parse_plan('{"summary": "nothing to do"}') == {"summary": "nothing to do", "tasks": []}


def test_numeric_string_priorities_still_dispatch():
    research = RecordingWorker(WorkerType.RESEARCH)
    coder = RecordingWorker(WorkerType.CODER)
    coordinator = build_coordinator(
        plan(
            {"id": "b", "agent": "coder", "description": "y", "dependencies": ["a"], "priority": "2"},
            {"id": "a", "agent": "research", "description": "x", "priority": "1"},
            {"id": "c", "agent": "coder", "description": "z", "priority": "soon"},
        ),
        research,
        coder,
    )

    result = coordinator.execute(top_task())

    assert result.success is True
    assert list(result.output["results"]) == ["a", "b", "c"]
    assert coder.tasks[0].priority == 2.0


def test_malformed_artifacts_fail_aggregation():
    coder = RecordingWorker(WorkerType.CODER, artifacts={"a": ArtifactBundle(files=("x",))})
    coordinator = build_coordinator(
        plan({"id": "a", "agent": "coder", "description": "x", "priority": 1}),
        coder,
    )

    result = coordinator.execute(top_task())

    assert result.success is False
    assert "must be a list" in result.error
    assert coordinator.state is WorkerState.ERROR
    assert coordinator.phase is CoordinatorPhase.ERROR
    assert [t.id for t in coder.tasks] == ["a"]
