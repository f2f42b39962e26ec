from __future__ import annotations

from typing import Any, Dict, Optional

from appforge.agents.base import SpecialistWorker, entries, text_field
from appforge.schemas.messages import ArtifactBundle, SchemaArtifact, WorkerType

SYSTEM_PROMPT = """You are the Database Agent for AppForge.
You:
1. Design efficient database schemas
2. Define relationships and indexes
3. Write migration scripts
4. Plan for performance and growth

Reply with JSON only, shaped like this:
{
  "schemas": [
    {
      "name": "table_name",
      "definition": "CREATE TABLE statement or ORM schema",
      "description": "What the table holds"
    }
  ],
  "migrations": [
    {
      "version": "001",
      "sql": "Migration SQL",
      "description": "What the migration does"
    }
  ],
  "indexes": ["Index definitions"],
  "relationships": ["Relationship descriptions"]
}"""


class DatabaseAgent(SpecialistWorker):
    worker_type = WorkerType.DATABASE
    display_name = "Database"
    summary = "Designs database schemas and creates migrations"
    SYSTEM_PROMPT = SYSTEM_PROMPT
    heading = "Database Design Task"
    guidance = (
        "Design the schema with attention to:",
        "1. Normalization",
        "2. Indexes for the expected queries",
        "3. Foreign key relationships",
        "4. Timestamps and audit fields",
        "5. Scalability",
    )
    progress_text = "Database schema designed"

    def fallback(self, raw: str) -> Dict[str, Any]:
        return {"schemas": [], "summary": raw}

    def extract_artifacts(self, output: Dict[str, Any]) -> Optional[ArtifactBundle]:
        schemas = [
            SchemaArtifact(name=text_field(item, "name"), definition=text_field(item, "definition"))
            for item in entries(output, "schemas")
        ]
        return ArtifactBundle(schemas=schemas)
