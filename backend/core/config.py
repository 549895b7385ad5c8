"""Environment-driven settings for the chart engine and its LLM collaborator."""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()

DEFAULT_PALETTE_SIZE = 20


def env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip() or default


def env_int(key: str, default: Optional[int] = None) -> Optional[int]:
    raw = env(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_bool(key: str, default: bool = False) -> bool:
    raw = env(key)
    if raw is None:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


class EngineSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    palette_size: int = DEFAULT_PALETTE_SIZE
    palette_seed: Optional[int] = None
    enrich_with_llm: bool = False


def load_settings() -> EngineSettings:
    """Read settings from the environment (after .env has been loaded)."""
    size = env_int("CHART_PALETTE_SIZE", DEFAULT_PALETTE_SIZE) or DEFAULT_PALETTE_SIZE
    return EngineSettings(
        palette_size=max(1, size),
        palette_seed=env_int("CHART_PALETTE_SEED"),
        enrich_with_llm=env_bool("CHART_ENRICH_WITH_LLM"),
    )
