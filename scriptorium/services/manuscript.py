from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

from ..models import Chapter, Project, Scene


@dataclass
class ManuscriptChapter:
    chapter: Chapter
    scenes: List[Scene] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return sum(scene.word_count for scene in self.scenes)


def ordered_chapters(project_id: int) -> List[Chapter]:
    return (
        Chapter.query.filter_by(project_id=project_id)
        .order_by(Chapter.order.asc(), Chapter.id.asc())
        .all()
    )


def ordered_scenes(chapter_id: int) -> List[Scene]:
    return (
        Scene.query.filter_by(chapter_id=chapter_id)
        .order_by(Scene.order.asc(), Scene.id.asc())
        .all()
    )


def load_manuscript(project: Project) -> List[ManuscriptChapter]:
    """Return the project's chapters in reading order, each with its ordered scenes."""

    chapters = ordered_chapters(project.id)
    if not chapters:
        return []

    scenes_by_chapter: Dict[int, List[Scene]] = {chapter.id: [] for chapter in chapters}
    scenes = (
        Scene.query.filter(Scene.chapter_id.in_(list(scenes_by_chapter)))
        .order_by(Scene.order.asc(), Scene.id.asc())
        .all()
    )
    for scene in scenes:
        scenes_by_chapter[scene.chapter_id].append(scene)

    return [ManuscriptChapter(chapter, scenes_by_chapter[chapter.id]) for chapter in chapters]


def manuscript_payload(project: Project, manuscript: Sequence[ManuscriptChapter]) -> Dict[str, Any]:
    return {
        "project": project.to_dict(),
        "chapters": [
            {**entry.chapter.to_dict(), "scenes": [scene.to_dict() for scene in entry.scenes]}
            for entry in manuscript
        ],
    }


def manuscript_stats(manuscript: Iterable[ManuscriptChapter]) -> Dict[str, int]:
    chapters = 0
    scenes = 0
    with_synopsis = 0
    words = 0
    for entry in manuscript:
        chapters += 1
        for scene in entry.scenes:
            scenes += 1
            words += scene.word_count
            if (scene.synopsis or "").strip():
                with_synopsis += 1
    return {
        "chapters": chapters,
        "scenes": scenes,
        "scenes_with_synopsis": with_synopsis,
        "words": words,
    }


def apply_order(items: Sequence[Any], ordered_ids: Sequence[int]) -> None:
    """Renumber ``items`` so their ``order`` follows ``ordered_ids``.

    Items missing from ``ordered_ids`` keep their relative order after the
    listed ones.
    """

    by_id = {item.id: item for item in items}
    unknown = [item_id for item_id in ordered_ids if item_id not in by_id]
    if unknown:
        raise ValueError(f"Unknown ids: {', '.join(str(item_id) for item_id in unknown)}")

    listed = [by_id[item_id] for item_id in dict.fromkeys(ordered_ids)]
    listed_ids = {item.id for item in listed}
    remaining = [item for item in items if item.id not in listed_ids]
    for position, item in enumerate(listed + remaining):
        item.order = position
