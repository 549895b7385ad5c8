"""
In-memory per-session state.

Each session (``X-Session-Id``) owns one ChartAssembler, and with it its own
color palette and last-seen fingerprint.
"""

from __future__ import annotations

from typing import Dict, Optional

from core.config import EngineSettings, load_settings
from core.palette import ColorPalette
from server.assembler import ChartAssembler

# session_id -> ChartAssembler
ASSEMBLERS: Dict[str, ChartAssembler] = {}


def new_assembler(settings: Optional[EngineSettings] = None) -> ChartAssembler:
    settings = settings or load_settings()
    return ChartAssembler(
        palette=ColorPalette(seed=settings.palette_seed),
        palette_size=settings.palette_size,
    )


def get_assembler(session_id: str) -> ChartAssembler:
    if session_id not in ASSEMBLERS:
        ASSEMBLERS[session_id] = new_assembler()
    return ASSEMBLERS[session_id]


def drop_session(session_id: str) -> bool:
    return ASSEMBLERS.pop(session_id, None) is not None


def clear_sessions() -> None:
    ASSEMBLERS.clear()
