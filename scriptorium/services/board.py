"""Storyboard view: chapters as columns of scene cards with workflow status."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from ..models import DEFAULT_SCENE_STATUS, SCENE_STATUSES, Chapter, Project, Scene
from .manuscript import load_manuscript, manuscript_stats, ordered_scenes


class BoardError(RuntimeError):
    """Raised when a scene card cannot be moved."""


def build_board(project: Project) -> Dict[str, Any]:
    manuscript = load_manuscript(project)
    by_status: Dict[str, int] = {status: 0 for status in SCENE_STATUSES}
    columns = []
    for entry in manuscript:
        cards = []
        for scene in entry.scenes:
            status = scene.status or DEFAULT_SCENE_STATUS
            by_status[status] = by_status.get(status, 0) + 1
            cards.append(scene.to_dict(include_content=False))
        columns.append(
            {
                **entry.chapter.to_dict(),
                "scene_count": len(cards),
                "word_count": entry.word_count,
                "scenes": cards,
            }
        )

    stats = manuscript_stats(manuscript)
    stats["by_status"] = by_status
    return {"project": project.to_dict(), "statuses": list(SCENE_STATUSES), "chapters": columns, "stats": stats}


def move_scene(
    scene: Scene,
    *,
    status: Optional[str] = None,
    chapter: Optional[Chapter] = None,
    position: Optional[int] = None,
) -> Scene:
    """Apply a drag-and-drop move: new status, target chapter and slot."""

    if status is not None:
        if status not in SCENE_STATUSES:
            raise BoardError(f"Unknown scene status '{status}'.")
        scene.status = status

    source_chapter_id = scene.chapter_id
    target_chapter_id = chapter.id if chapter is not None else source_chapter_id
    if chapter is not None and chapter.project_id != scene.chapter.project_id:
        raise BoardError("Scenes can only move between chapters of the same project.")

    if target_chapter_id != source_chapter_id or position is not None:
        siblings = [s for s in ordered_scenes(target_chapter_id) if s.id != scene.id]
        slot = len(siblings) if position is None else min(max(position, 0), len(siblings))
        siblings.insert(slot, scene)
        if chapter is not None:
            scene.chapter = chapter
        for index, sibling in enumerate(siblings):
            sibling.order = index

        if target_chapter_id != source_chapter_id:
            remaining = [s for s in ordered_scenes(source_chapter_id) if s.id != scene.id]
            for index, sibling in enumerate(remaining):
                sibling.order = index

    scene.updated_at = datetime.utcnow()
    return scene
