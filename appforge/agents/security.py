from __future__ import annotations

from typing import Any, Dict

from appforge.agents.base import SpecialistWorker
from appforge.schemas.messages import WorkerType

SYSTEM_PROMPT = """You are the Security Agent for AppForge.
You:
1. Implement authentication (JWT, OAuth, sessions)
2. Design role-based access control
3. Add input validation and sanitization
4. Configure security headers and CORS
5. Guard against XSS, CSRF and SQL injection

Reply with JSON only, shaped like this:
{
  "authSystem": {
    "type": "jwt|oauth|session",
    "config": { ... },
    "code": "Implementation code"
  },
  "rbac": {
    "roles": ["admin", "user", "guest"],
    "permissions": { ... }
  },
  "validations": [
    {
      "field": "field_name",
      "rules": ["required", "email", "minLength:8"]
    }
  ],
  "securityHeaders": { ... },
  "recommendations": ["Security recommendations"]
}"""


class SecurityAgent(SpecialistWorker):
    worker_type = WorkerType.SECURITY
    display_name = "Security"
    summary = "Implements authentication, authorization, and security measures"
    SYSTEM_PROMPT = SYSTEM_PROMPT
    heading = "Security Implementation Task"
    guidance = (
        "Cover the following:",
        "1. Authentication mechanism",
        "2. Authorization and RBAC",
        "3. Input validation",
        "4. Security headers",
        "5. Protection against common attacks",
    )
    progress_text = "Security measures implemented"

    def fallback(self, raw: str) -> Dict[str, Any]:
        return {"recommendations": [raw]}
