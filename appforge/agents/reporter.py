from __future__ import annotations

from typing import Any, Dict, Optional

from appforge.agents.base import SpecialistWorker, entries, text_field
from appforge.schemas.messages import ArtifactBundle, DocArtifact, WorkerType

SYSTEM_PROMPT = """You are the Reporter Agent for AppForge.
You:
1. Write API documentation
2. Write user guides and tutorials
3. Write deployment instructions
4. Record architecture decisions
5. Write README files

Reply with JSON only, shaped like this:
{
  "docs": [
    {
      "title": "Document title",
      "type": "api|guide|readme|deployment",
      "content": "Markdown content",
      "audience": "developers|users|admins"
    }
  ],
  "apiSpec": {
    "openapi": "3.0.0",
    "paths": { ... }
  }
}"""


class ReporterAgent(SpecialistWorker):
    """Writes documentation.

    Unlike the other workers, an unstructured reply is still kept as a
    document, so the fallback output carries one doc artifact.
    """

    worker_type = WorkerType.REPORTER
    display_name = "Reporter"
    summary = "Creates documentation and deployment guides"
    SYSTEM_PROMPT = SYSTEM_PROMPT
    heading = "Documentation Task"
    guidance = (
        "Produce documentation including:",
        "1. API documentation with examples",
        "2. Setup and installation guide",
        "3. User guide with screenshot placeholders",
        "4. Deployment instructions",
        "5. Architecture overview",
    )
    progress_text = "Documentation generated"

    def fallback(self, raw: str) -> Dict[str, Any]:
        return {"docs": [{"title": "Documentation", "content": raw}]}

    def extract_artifacts(self, output: Dict[str, Any]) -> Optional[ArtifactBundle]:
        docs = [
            DocArtifact(title=text_field(item, "title"), content=text_field(item, "content"))
            for item in entries(output, "docs")
        ]
        return ArtifactBundle(docs=docs)
