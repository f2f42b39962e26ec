from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class WorkerType(str, Enum):
    """Closed set of worker kinds; decides which worker handles a task."""

    COORDINATOR = "coordinator"
    RESEARCH = "research"
    CODER = "coder"
    DATABASE = "database"
    SECURITY = "security"
    REPORTER = "reporter"
    BROWSER = "browser"

    @classmethod
    def parse(cls, value: Any) -> Optional["WorkerType"]:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class WorkerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    WAITING = "waiting"
    COMPLETED = "completed"
    ERROR = "error"


class CoordinatorPhase(str, Enum):
    """Where a coordinator is inside a single execute call."""

    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    ERROR = "error"


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    AGENT = "agent"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Task:
    """One unit of work handed to exactly one worker."""

    id: str
    type: WorkerType
    description: str
    input: Dict[str, Any] = field(default_factory=dict)
    dependencies: List[str] = field(default_factory=list)
    priority: int = 1


@dataclass
class Message:
    """Single log entry: worker memory and the visible execution trace."""

    role: MessageRole
    content: str
    agent_name: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)
    metadata: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class FileArtifact:
    path: str
    content: str
    type: str


@dataclass(frozen=True)
class SchemaArtifact:
    name: str
    definition: str


@dataclass(frozen=True)
class DocArtifact:
    title: str
    content: str


@dataclass
class ArtifactBundle:
    """Generated payloads destined for the persistence layer."""

    files: List[FileArtifact] = field(default_factory=list)
    schemas: List[SchemaArtifact] = field(default_factory=list)
    docs: List[DocArtifact] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.files or self.schemas or self.docs)


@dataclass
class Result:
    """Return value of every worker invocation, the coordinator's included."""

    success: bool
    output: Dict[str, Any] = field(default_factory=dict)
    messages: List[Message] = field(default_factory=list)
    artifacts: Optional[ArtifactBundle] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str, messages: Optional[List[Message]] = None) -> "Result":
        return cls(success=False, output={}, messages=list(messages or []), error=error)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready view; nested results inside ``output`` are converted too."""
        return to_jsonable(self)


def to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value
