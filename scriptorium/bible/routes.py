"""CRUD endpoints for a project's story bible.

Characters, places and world rules share the same routes; ``BIBLE_RESOURCES``
maps the URL segment to the model, its form and its list ordering.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Type

from flask import abort, jsonify, request
from flask_login import login_required

from ..access import get_owned_project
from ..extensions import db
from ..forms import ApiForm, form_error_response
from ..models import (
    DEFAULT_WORLD_RULE_CATEGORY,
    WORLD_RULE_CATEGORIES,
    Character,
    Place,
    Project,
    WorldRule,
)
from ..services.bible_context import build_project_bible_context
from ..text_utils import clean, clean_or_none
from . import bp
from .forms import CharacterForm, PlaceForm, WorldRuleForm

KIND_PATTERN = 'any(characters, places, "world-rules")'


@dataclass(frozen=True)
class BibleResource:
    model: Type[db.Model]
    form: Type[ApiForm]
    singular: str
    plural: str
    required: Tuple[str, ...]
    ordering: Tuple[Any, ...]

    def query(self, project: Project):
        return self.model.query.filter_by(project_id=project.id).order_by(*self.ordering)


BIBLE_RESOURCES: Dict[str, BibleResource] = {
    "characters": BibleResource(
        Character, CharacterForm, "character", "characters", ("name",), (Character.name.asc(), Character.id.asc())
    ),
    "places": BibleResource(Place, PlaceForm, "place", "places", ("name",), (Place.name.asc(), Place.id.asc())),
    "world-rules": BibleResource(
        WorldRule,
        WorldRuleForm,
        "world_rule",
        "world_rules",
        ("title",),
        (WorldRule.category.asc(), WorldRule.title.asc(), WorldRule.id.asc()),
    ),
}


def _apply_changes(resource: BibleResource, item: Any, changes: Dict[str, Any]) -> None:
    for field_name, value in changes.items():
        if field_name in resource.required:
            setattr(item, field_name, clean(value))
        elif field_name == "category":
            item.category = clean(value) or DEFAULT_WORLD_RULE_CATEGORY
        else:
            setattr(item, field_name, clean_or_none(value))


def _get_item(resource: BibleResource, project: Project, item_id: int) -> Any:
    item = resource.model.query.filter_by(id=item_id, project_id=project.id).first()
    if item is None:
        abort(404, description=f"{resource.singular.replace('_', ' ').capitalize()} not found.")
    return item


def _group_rules(rules: List[WorldRule]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for category in WORLD_RULE_CATEGORIES:
        members = [rule.to_dict() for rule in rules if rule.category == category]
        if members:
            grouped[category] = members
    others = [rule.to_dict() for rule in rules if rule.category not in WORLD_RULE_CATEGORIES]
    if others:
        grouped.setdefault("Other", []).extend(others)
    return grouped


@bp.route(f"/projects/<int:project_id>/<{KIND_PATTERN}:kind>", methods=["GET"])
@login_required
def list_items(project_id: int, kind: str):
    project = get_owned_project(project_id)
    resource = BIBLE_RESOURCES[kind]
    items = resource.query(project).all()

    payload: Dict[str, Any] = {resource.plural: [item.to_dict() for item in items]}
    if kind == "world-rules" and request.args.get("grouped") in ("1", "true", "yes"):
        payload["grouped"] = _group_rules(items)
    return jsonify(payload)


@bp.route(f"/projects/<int:project_id>/<{KIND_PATTERN}:kind>", methods=["POST"])
@login_required
def create_item(project_id: int, kind: str):
    project = get_owned_project(project_id)
    resource = BIBLE_RESOURCES[kind]
    form = resource.form()
    if not form.validate_on_submit():
        return form_error_response(form)

    item = resource.model(project_id=project.id)
    _apply_changes(resource, item, {name: field.data for name, field in form._fields.items()})
    db.session.add(item)
    db.session.commit()
    return jsonify({resource.singular: item.to_dict()}), 201


@bp.route(f"/projects/<int:project_id>/<{KIND_PATTERN}:kind>/<int:item_id>", methods=["GET"])
@login_required
def get_item(project_id: int, kind: str, item_id: int):
    project = get_owned_project(project_id)
    resource = BIBLE_RESOURCES[kind]
    return jsonify({resource.singular: _get_item(resource, project, item_id).to_dict()})


@bp.route(f"/projects/<int:project_id>/<{KIND_PATTERN}:kind>/<int:item_id>", methods=["PUT"])
@login_required
def update_item(project_id: int, kind: str, item_id: int):
    project = get_owned_project(project_id)
    resource = BIBLE_RESOURCES[kind]
    item = _get_item(resource, project, item_id)

    form = resource.form(partial=True)
    if not form.validate_on_submit():
        return form_error_response(form)

    _apply_changes(resource, item, form.submitted_data())
    db.session.commit()
    return jsonify({resource.singular: item.to_dict()})


@bp.route(f"/projects/<int:project_id>/<{KIND_PATTERN}:kind>/<int:item_id>", methods=["DELETE"])
@login_required
def delete_item(project_id: int, kind: str, item_id: int):
    project = get_owned_project(project_id)
    resource = BIBLE_RESOURCES[kind]
    item = _get_item(resource, project, item_id)
    db.session.delete(item)
    db.session.commit()
    return jsonify({"success": True})


@bp.route("/projects/<int:project_id>/bible", methods=["GET"])
@login_required
def bible_overview(project_id: int):
    project = get_owned_project(project_id)
    payload = {
        resource.plural: [item.to_dict() for item in resource.query(project).all()]
        for resource in BIBLE_RESOURCES.values()
    }
    payload["context"] = build_project_bible_context(project, tone=request.args.get("tone"))
    return jsonify(payload)
