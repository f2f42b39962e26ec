from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from appforge.errors import BackendTimeout, StepLimitExceeded
from appforge.memory.transcript import Transcript
from appforge.schemas.messages import (
    ArtifactBundle,
    Message,
    MessageRole,
    Result,
    Task,
    WorkerState,
    WorkerType,
    to_jsonable,
)
from appforge.utils.json_text import best_effort_decode
from appforge.utils.llm_clients import ChatMessages, LLMClient

logger = logging.getLogger(__name__)


class Worker(ABC):
    """Base contract for every worker: ``execute(task) -> Result``.

    A worker instance keeps conversation memory between calls, so two
    overlapping ``execute`` calls on the same instance are serialized.
    """

    name: str
    type: WorkerType

    def __init__(
        self,
        name: str,
        type: WorkerType,
        description: str,
        system_prompt: str,
        llm_client: LLMClient,
        *,
        max_steps: Optional[int] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.name = name
        self.type = type
        self.description = description
        self.system_prompt = system_prompt
        self.llm_client = llm_client
        self.max_steps = max_steps
        self.timeout_s = timeout_s
        self.state = WorkerState.IDLE
        self.memory = Transcript()
        self.current_step = 0
        self._lock = threading.Lock()

    def execute(self, task: Task) -> Result:
        with self._lock:
            self.state = WorkerState.RUNNING
            messages: List[Message] = []
            try:
                result = self.run(task, messages)
            except Exception as exc:
                self.state = WorkerState.ERROR
                error = str(exc) or type(exc).__name__
                logger.warning("%s failed on task %s: %s", self.name, task.id, error)
                return Result.failure(error, messages)
            self.state = WorkerState.COMPLETED
            return result

    @abstractmethod
    def run(self, task: Task, messages: List[Message]) -> Result:
        """Do the work for ``task``; messages appended here survive a failure."""

    def think(self, user_message: str, timeout: Optional[float] = None) -> str:
        """Send system prompt, replayed memory and ``user_message`` to the backend."""
        if self.max_steps is not None and self.current_step >= self.max_steps:
            raise StepLimitExceeded(self.name, self.max_steps)

        chat: ChatMessages = [{"role": MessageRole.SYSTEM.value, "content": self.system_prompt}]
        chat.extend({"role": m.role.value, "content": m.content} for m in self.memory.all())
        chat.append({"role": MessageRole.USER.value, "content": user_message})

        deadline = timeout if timeout is not None else self.timeout_s
        logger.debug("%s thinking (step %d, %d messages)", self.name, self.current_step + 1, len(chat))
        content = call_with_deadline(self.llm_client, chat, deadline)
        if not isinstance(content, str):
            content = ""

        self.memory.append(Message(role=MessageRole.USER, content=user_message))
        self.memory.append(Message(role=MessageRole.ASSISTANT, content=content, agent_name=self.name))
        self.current_step += 1
        return content

    def reset(self) -> None:
        self.state = WorkerState.IDLE
        self.memory.reset()
        self.current_step = 0

    def agent_message(self, content: str, metadata: Optional[Dict[str, Any]] = None) -> Message:
        return Message(role=MessageRole.AGENT, content=content, agent_name=self.name, metadata=metadata)

    @staticmethod
    def build_prompt(heading: str, task: Task, guidance: Iterable[str], context_label: str = "Context") -> str:
        lines = [
            f"{heading}: {task.description}",
            "",
            f"{context_label}:",
            json.dumps(to_jsonable(task.input), indent=2, default=str),
            "",
        ]
        lines.extend(guidance)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, state={self.state.value})"


def call_with_deadline(client: LLMClient, chat: ChatMessages, timeout: Optional[float]) -> str:
    """Invoke the backend, giving up after ``timeout`` seconds when one is set."""
    if timeout is None:
        return client.invoke(chat)
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="llm-call")
    try:
        future = pool.submit(client.invoke, chat, timeout=timeout)
        try:
            return future.result(timeout=timeout)
        except FutureTimeout as exc:
            future.cancel()
            raise BackendTimeout(timeout) from exc
    finally:
        # an abandoned call keeps running in the background thread
        pool.shutdown(wait=False)


def load_prompt(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8")


class SpecialistWorker(Worker):
    """Single-shot worker: one ``think`` call, reply decoded into a Result.

    Subclasses supply the prompts, the fallback shape used when the reply
    holds no JSON object, and which part of the output becomes artifacts.
    """

    worker_type: WorkerType
    display_name: str
    summary: str
    SYSTEM_PROMPT: str
    heading: str
    guidance: Iterable[str] = ()
    progress_text: str = "Task completed"
    context_label: str = "Context"

    def __init__(
        self,
        llm_client: LLMClient,
        system_prompt: Optional[str] = None,
        *,
        max_steps: Optional[int] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        super().__init__(
            name=self.display_name,
            type=self.worker_type,
            description=self.summary,
            system_prompt=system_prompt or self.SYSTEM_PROMPT,
            llm_client=llm_client,
            max_steps=max_steps,
            timeout_s=timeout_s,
        )

    def run(self, task: Task, messages: List[Message]) -> Result:
        response = self.think(self.build_prompt(self.heading, task, self.guidance, self.context_label))
        messages.append(self.progress_message(response))
        output = best_effort_decode(response, self.fallback)
        return Result(
            success=True,
            output=output,
            messages=messages,
            artifacts=self.extract_artifacts(output),
        )

    def progress_message(self, response: str) -> Message:
        return self.agent_message(self.progress_text)

    @abstractmethod
    def fallback(self, raw: str) -> Dict[str, Any]:
        """Output used when the reply carries no parseable JSON object."""

    def extract_artifacts(self, output: Dict[str, Any]) -> Optional[ArtifactBundle]:
        return None


def entries(output: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """Object entries under ``output[key]``; anything else is dropped."""
    value = output.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def text_field(entry: Dict[str, Any], key: str) -> str:
    value = entry.get(key)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return str(value)
