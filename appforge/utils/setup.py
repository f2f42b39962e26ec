from __future__ import annotations

import logging
import os
from pathlib import Path

from omegaconf import DictConfig, OmegaConf

logger = logging.getLogger(__name__)

# secrets-file key -> environment variable it backs
SECRET_KEYS = {
    "openai_api": "OPENAI_API_KEY",
    "deepseek_api": "DEEPSEEK_API_KEY",
}


def load_secrets(path: str | Path = "config.yml") -> DictConfig | None:
    """Export API keys from a local secrets file unless already set in the env."""
    path = Path(path)
    if not path.exists():
        logger.debug("No secrets file at %s", path)
        return None
    config = OmegaConf.load(path)
    for key, env_var in SECRET_KEYS.items():
        value = config.get(key)
        if value and not os.environ.get(env_var):
            os.environ[env_var] = str(value)
    return config
