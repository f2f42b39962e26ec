from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    # None means no deadline on backend calls
    timeout_s: Optional[float] = Field(default=None, gt=0)
    json_mode: bool = False


class AgentPromptConfig(BaseModel):
    prompt_path: Optional[str] = None


class WorkflowConfig(BaseModel):
    max_concurrency: int = Field(default=1, ge=1)
    max_steps: Optional[int] = Field(default=None, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_dir: Optional[str] = None


class AppConfig(BaseModel):
    llm: LLMConfig = Field(default_factory=LLMConfig)
    agents: Dict[str, AgentPromptConfig] = Field(default_factory=dict)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(env: str = "base", config_dir: Path | str = Path("configs")) -> AppConfig:
    config_dir = Path(config_dir)
    base = _read_yaml(config_dir / "base.yaml")
    if env != "base":
        override_path = config_dir / f"{env}.yaml"
        if override_path.exists():
            base = _merge_dicts(base, _read_yaml(override_path))
    return AppConfig(
        llm=LLMConfig(**(base.get("llm") or {})),
        agents={k: AgentPromptConfig(**(v or {})) for k, v in (base.get("agents") or {}).items()},
        workflow=WorkflowConfig(**(base.get("workflow") or {})),
        logging=LoggingConfig(**(base.get("logging") or {"level": "INFO"})),
    )


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge_dicts(base[key], value)
        else:
            merged[key] = value
    return merged
