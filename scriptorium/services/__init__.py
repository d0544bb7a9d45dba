"""Service layer for the manuscript, its version history and the writing assistant."""

from __future__ import annotations

from .versioning import VersioningError, record_scene_version, restore_scene_version  # noqa: F401
from .writing_assistant import (  # noqa: F401
    AssistantError,
    AssistantUnavailableError,
    AssistResult,
    run_assist,
)

__all__ = [
    "AssistResult",
    "AssistantError",
    "AssistantUnavailableError",
    "VersioningError",
    "record_scene_version",
    "restore_scene_version",
    "run_assist",
]
