from __future__ import annotations

import logging
from typing import List, Optional, Type

from appforge.agents.base import SpecialistWorker, load_prompt
from appforge.agents.browser import BrowserAgent
from appforge.agents.coder import CoderAgent
from appforge.agents.coordinator import Coordinator, DispatchPolicy
from appforge.agents.database import DatabaseAgent
from appforge.agents.reporter import ReporterAgent
from appforge.agents.research import ResearchAgent
from appforge.agents.security import SecurityAgent
from appforge.utils.llm_clients import LLMClient
from appforge.utils.settings import AppConfig

logger = logging.getLogger(__name__)

SPECIALISTS: List[Type[SpecialistWorker]] = [
    ResearchAgent,
    CoderAgent,
    DatabaseAgent,
    SecurityAgent,
    ReporterAgent,
    BrowserAgent,
]


def create_agent_system(llm_client: LLMClient, config: Optional[AppConfig] = None) -> Coordinator:
    """Build a fully wired coordinator with one instance of every specialist.

    The coordinator is registered in its own registry as well, so any worker
    type can be looked up through ``coordinator.registry``.
    """
    config = config or AppConfig()
    timeout_s = config.llm.timeout_s
    max_steps = config.workflow.max_steps

    coordinator = Coordinator(
        llm_client,
        system_prompt=_prompt_override(config, "coordinator"),
        policy=DispatchPolicy(max_concurrency=config.workflow.max_concurrency),
        max_steps=max_steps,
        timeout_s=timeout_s,
    )
    coordinator.register_worker(coordinator)
    for worker_cls in SPECIALISTS:
        coordinator.register_worker(
            worker_cls(
                llm_client,
                system_prompt=_prompt_override(config, worker_cls.worker_type.value),
                max_steps=max_steps,
                timeout_s=timeout_s,
            )
        )
    logger.debug("Agent system ready: %s", [t.value for t in coordinator.registry.types()])
    return coordinator


def _prompt_override(config: AppConfig, key: str) -> Optional[str]:
    entry = config.agents.get(key)
    if entry is None or not entry.prompt_path:
        return None
    return load_prompt(entry.prompt_path)
