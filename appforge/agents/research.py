from __future__ import annotations

from typing import Any, Dict

from appforge.agents.base import SpecialistWorker
from appforge.schemas.messages import Message, WorkerType

SYSTEM_PROMPT = """You are the Research Agent for AppForge.
You:
1. Research best practices for the requested kind of application
2. Identify the technologies and libraries it needs
3. Point to relevant documentation and examples
4. Recommend an architecture

Reply with JSON only, shaped like this:
{
  "findings": [
    {
      "topic": "Topic name",
      "summary": "Short summary",
      "recommendations": ["recommendation 1", "recommendation 2"],
      "resources": ["URL or reference"]
    }
  ],
  "techStack": {
    "frontend": "Recommended frontend stack",
    "backend": "Recommended backend stack",
    "database": "Recommended database",
    "deployment": "Recommended deployment approach"
  },
  "architecture": "Architecture recommendations"
}"""


class ResearchAgent(SpecialistWorker):
    """Gathers best practices and a recommended stack; produces no artifacts."""

    worker_type = WorkerType.RESEARCH
    display_name = "Research"
    summary = "Gathers information, best practices, and documentation for application development"
    SYSTEM_PROMPT = SYSTEM_PROMPT
    heading = "Research Task"
    guidance = (
        "Provide research findings covering:",
        "1. Best practices for this type of application",
        "2. A recommended technology stack",
        "3. Architectural patterns to follow",
        "4. Security considerations",
        "5. Performance tips",
    )

    def progress_message(self, response: str) -> Message:
        # the raw findings are the useful trace for this worker
        return self.agent_message(response)

    def fallback(self, raw: str) -> Dict[str, Any]:
        return {"findings": [], "summary": raw}
