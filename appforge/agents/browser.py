from __future__ import annotations

from typing import Any, Dict

from appforge.agents.base import SpecialistWorker
from appforge.schemas.messages import WorkerType

SYSTEM_PROMPT = """You are the Browser Agent for AppForge.
You:
1. Write UI test cases
2. Write end-to-end test scripts
3. Validate UI components
4. Check accessibility
5. Check responsive layouts

Reply with JSON only, shaped like this:
{
  "testCases": [
    {
      "name": "Test case name",
      "type": "unit|integration|e2e",
      "steps": ["step 1", "step 2"],
      "assertions": ["assertion 1"],
      "code": "Test code"
    }
  ],
  "accessibilityChecks": ["Check descriptions"],
  "responsiveBreakpoints": ["mobile", "tablet", "desktop"]
}"""


class BrowserAgent(SpecialistWorker):
    worker_type = WorkerType.BROWSER
    display_name = "Browser"
    summary = "Tests UI and performs web automation"
    SYSTEM_PROMPT = SYSTEM_PROMPT
    heading = "UI Testing Task"
    guidance = (
        "Generate UI tests including:",
        "1. Component unit tests",
        "2. Integration tests for user flows",
        "3. End-to-end tests for critical paths",
        "4. Accessibility tests",
        "5. Responsive design tests",
    )
    progress_text = "UI tests generated"

    def fallback(self, raw: str) -> Dict[str, Any]:
        return {"testCases": [], "summary": raw}
