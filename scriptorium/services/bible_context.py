"""Render a project's bible into the context block given to the model."""
from __future__ import annotations

from typing import Iterable, List, Optional

from ..models import Character, Place, Project, WorldRule
from ..text_utils import clean


def _field(label: str, value: Optional[str], missing: str = "Not defined") -> str:
    return f"  {label}: {clean(value) or missing}"


def _character_block(character: Character) -> List[str]:
    heading = f"- {clean(character.name)}"
    if clean(character.age):
        heading += f", {clean(character.age)}"
    lines = [
        heading,
        _field("Personality", character.personality),
        _field("Backstory", character.backstory),
        _field("Fears", character.fears),
        _field("Motivations", character.motivations),
        _field("Voice", character.voice),
    ]
    if clean(character.notes):
        lines.append(_field("Notes", character.notes))
    return lines


def _place_block(place: Place) -> List[str]:
    lines = [
        f"- {clean(place.name)}",
        _field("Description", place.description),
        _field("Atmosphere", place.atmosphere),
    ]
    if clean(place.notes):
        lines.append(_field("Notes", place.notes))
    return lines


def _rule_line(rule: WorldRule) -> str:
    description = clean(rule.description) or "No description"
    return f"- [{clean(rule.category)}] {clean(rule.title)}: {description}"


def build_bible_context(
    characters: Iterable[Character],
    places: Iterable[Place],
    rules: Iterable[WorldRule],
    *,
    tone: Optional[str] = None,
) -> str:
    """Return the bible as labelled sections.

    Empty sections are rendered with a placeholder sentence.
    """

    sections: List[str] = []

    character_lines = [line for character in characters for line in _character_block(character)]
    sections.append("CHARACTERS:\n" + ("\n".join(character_lines) or "No characters defined."))

    place_lines = [line for place in places for line in _place_block(place)]
    sections.append("PLACES:\n" + ("\n".join(place_lines) or "No places defined."))

    rule_lines = [_rule_line(rule) for rule in rules]
    sections.append("WORLD RULES:\n" + ("\n".join(rule_lines) or "No rules defined."))

    sections.append(f"TONE AND STYLE: {clean(tone) or 'Not defined'}")
    return "\n\n".join(sections)


def build_project_bible_context(project: Project, *, tone: Optional[str] = None) -> str:
    effective_tone = clean(tone) or clean(project.tone)
    return build_bible_context(
        Character.query.filter_by(project_id=project.id).order_by(Character.name.asc()).all(),
        Place.query.filter_by(project_id=project.id).order_by(Place.name.asc()).all(),
        WorldRule.query.filter_by(project_id=project.id)
        .order_by(WorldRule.category.asc(), WorldRule.title.asc())
        .all(),
        tone=effective_tone,
    )
