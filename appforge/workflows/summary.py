"""Caller-side helpers around a coordinator run."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional

from appforge.schemas.messages import Result, Task, WorkerType, to_jsonable
from appforge.utils.llm_clients import LLMClient

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Task completed successfully."

SUMMARY_SYSTEM_PROMPT = "You are a helpful assistant summarizing development progress."


def build_request_task(request: str, context: Optional[Dict[str, Any]] = None) -> Task:
    """Top-level coordinator task for a free-form user request."""
    return Task(
        id=f"task_{int(time.time() * 1000)}",
        type=WorkerType.COORDINATOR,
        description=request,
        input=dict(context or {}),
        priority=1,
    )


def summarize_result(result: Result, llm_client: LLMClient, timeout: Optional[float] = None) -> str:
    """Short user-facing summary of a run; never surfaces a backend error."""
    prompt = (
        "Based on the following agent execution results, provide a brief, friendly "
        "summary for the user about what was accomplished:\n\n"
        f"{json.dumps(to_jsonable(result.output), indent=2, default=str)}\n\n"
        "Keep the response concise and highlight the key actions taken."
    )
    try:
        summary = llm_client.invoke(
            [
                {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            timeout=timeout,
        )
    except Exception as exc:
        logger.warning("Summary generation failed, using fallback: %s", exc)
        return FALLBACK_SUMMARY
    if not isinstance(summary, str) or not summary.strip():
        return FALLBACK_SUMMARY
    return summary.strip()
