"""Scene version history, bounded to the most recent snapshots per scene."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from flask import current_app

from ..extensions import db
from ..models import Scene, SceneVersion

DEFAULT_VERSION_LIMIT = 20


class VersioningError(RuntimeError):
    """Raised when a snapshot cannot be recorded."""


def version_limit() -> int:
    limit = int(current_app.config.get("SCENE_VERSION_LIMIT", DEFAULT_VERSION_LIMIT))
    return max(limit, 1)


def _newest_first(scene_id: int):
    return SceneVersion.query.filter_by(scene_id=scene_id).order_by(
        SceneVersion.created_at.desc(), SceneVersion.id.desc()
    )


def list_scene_versions(scene: Scene, *, limit: Optional[int] = None) -> List[SceneVersion]:
    return _newest_first(scene.id).limit(limit or version_limit()).all()


def trim_scene_versions(scene_id: int, *, limit: Optional[int] = None) -> int:
    """Delete every version of ``scene_id`` past the newest ``limit``; return the count."""

    keep = limit or version_limit()
    excess = _newest_first(scene_id).offset(keep).all()
    for version in excess:
        db.session.delete(version)
    if excess:
        db.session.flush()
    return len(excess)


def record_scene_version(scene: Scene, content: Optional[str], *, limit: Optional[int] = None) -> SceneVersion:
    """Store ``content`` as the newest snapshot of ``scene`` and trim the history.

    The caller owns the transaction; nothing is committed here.
    """

    if content is None or not str(content).strip():
        raise VersioningError("Version content is required.")

    version = SceneVersion(scene_id=scene.id, content=str(content))
    db.session.add(version)
    db.session.flush()

    removed = trim_scene_versions(scene.id, limit=limit)
    if removed:
        current_app.logger.debug("Trimmed %d old versions of scene %s", removed, scene.id)
    return version


def restore_scene_version(scene: Scene, version: SceneVersion) -> Optional[SceneVersion]:
    """Copy ``version`` back into ``scene``.

    The scene's current content is snapshotted first when it differs from the
    version being restored. Returns that snapshot, if one was taken.
    """

    restored_content = version.content
    current_content = scene.content or ""

    backup: Optional[SceneVersion] = None
    if current_content.strip() and current_content != restored_content:
        backup = record_scene_version(scene, current_content)

    scene.content = restored_content
    scene.updated_at = datetime.utcnow()
    return backup
