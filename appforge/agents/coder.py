from __future__ import annotations

from typing import Any, Dict, Optional

from appforge.agents.base import SpecialistWorker, entries, text_field
from appforge.schemas.messages import ArtifactBundle, FileArtifact, Message, WorkerType

SYSTEM_PROMPT = """You are the Coder Agent for AppForge.
You:
1. Write production-ready code
2. Build React/TypeScript frontend components
3. Build FastAPI/Python backend endpoints
4. Follow established design patterns
5. Include error handling and validation

Reply with JSON only, shaped like this:
{
  "files": [
    {
      "path": "relative/path/to/file.tsx",
      "content": "// file content",
      "type": "frontend|backend|config",
      "description": "What the file is for"
    }
  ],
  "dependencies": {
    "frontend": ["package1", "package2"],
    "backend": ["package1", "package2"]
  },
  "instructions": "Setup and usage instructions"
}"""


class CoderAgent(SpecialistWorker):
    """Generates source files; every ``files`` entry becomes a FileArtifact."""

    worker_type = WorkerType.CODER
    display_name = "Coder"
    summary = "Generates frontend (React/TypeScript) and backend (FastAPI/Python) code"
    SYSTEM_PROMPT = SYSTEM_PROMPT
    heading = "Coding Task"
    guidance = (
        "Generate production-ready code that:",
        "1. Uses TypeScript with React function components on the frontend",
        "2. Uses Python with FastAPI on the backend",
        "3. Has proper type definitions",
        "4. Handles errors and validates input",
        "5. Comments only the non-obvious parts",
    )
    progress_text = "Code generation completed"
    context_label = "Context and Requirements"

    def progress_message(self, response: str) -> Message:
        return self.agent_message(self.progress_text, metadata={"codeLength": len(response)})

    def fallback(self, raw: str) -> Dict[str, Any]:
        return {"files": [], "instructions": raw}

    def extract_artifacts(self, output: Dict[str, Any]) -> Optional[ArtifactBundle]:
        files = [
            FileArtifact(
                path=text_field(item, "path"),
                content=text_field(item, "content"),
                type=text_field(item, "type"),
            )
            for item in entries(output, "files")
        ]
        return ArtifactBundle(files=files)
