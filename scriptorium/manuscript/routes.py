from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from flask import current_app, jsonify, request
from flask_login import login_required

from ..access import get_owned_chapter, get_owned_project, get_owned_scene, get_scene_version
from ..extensions import db
from ..forms import BODY_NOT_OBJECT, form_error_response, json_object
from ..models import DEFAULT_SCENE_STATUS, Chapter, Project, Scene
from ..services.board import BoardError, build_board, move_scene
from ..services.manuscript import apply_order, ordered_chapters, ordered_scenes
from ..services.versioning import (
    VersioningError,
    list_scene_versions,
    record_scene_version,
    restore_scene_version,
)
from ..text_utils import clean
from . import bp
from .forms import ChapterForm, SceneForm, SceneMoveForm, SceneVersionForm


def _touch(project: Project) -> None:
    project.updated_at = datetime.utcnow()


def _id_list(payload: dict, key: str) -> Optional[List[int]]:
    values = payload.get(key)
    if not isinstance(values, list):
        return None
    try:
        return [int(value) for value in values]
    except (TypeError, ValueError):
        return None


def _chapter_payload(chapter: Chapter, *, include_scenes: bool = False) -> dict:
    payload = chapter.to_dict()
    if include_scenes:
        payload["scenes"] = [scene.to_dict(include_content=False) for scene in ordered_scenes(chapter.id)]
    return payload


# Chapters


@bp.route("/projects/<int:project_id>/chapters", methods=["GET"])
@login_required
def list_chapters(project_id: int):
    project = get_owned_project(project_id)
    include_scenes = request.args.get("include") == "scenes"
    return jsonify(
        {
            "chapters": [
                _chapter_payload(chapter, include_scenes=include_scenes)
                for chapter in ordered_chapters(project.id)
            ]
        }
    )


@bp.route("/projects/<int:project_id>/chapters", methods=["POST"])
@login_required
def create_chapter(project_id: int):
    project = get_owned_project(project_id)
    form = ChapterForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    order = form.order.data
    if order is None:
        order = Chapter.query.filter_by(project_id=project.id).count()

    chapter = Chapter(project_id=project.id, title=clean(form.title.data), order=order)
    db.session.add(chapter)
    _touch(project)
    db.session.commit()
    return jsonify({"chapter": chapter.to_dict()}), 201


@bp.route("/projects/<int:project_id>/chapters/reorder", methods=["POST"])
@login_required
def reorder_chapters(project_id: int):
    project = get_owned_project(project_id)
    payload = json_object()
    if payload is None:
        return jsonify({"error": BODY_NOT_OBJECT}), 400
    chapter_ids = _id_list(payload, "chapter_ids")
    if chapter_ids is None:
        return jsonify({"error": "chapter_ids must be a list of chapter ids."}), 400

    chapters = ordered_chapters(project.id)
    try:
        apply_order(chapters, chapter_ids)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    _touch(project)
    db.session.commit()
    return jsonify({"chapters": [chapter.to_dict() for chapter in ordered_chapters(project.id)]})


@bp.route("/chapters/<int:chapter_id>", methods=["GET"])
@login_required
def get_chapter(chapter_id: int):
    chapter = get_owned_chapter(chapter_id)
    return jsonify({"chapter": _chapter_payload(chapter, include_scenes=True)})


@bp.route("/chapters/<int:chapter_id>", methods=["PUT"])
@login_required
def update_chapter(chapter_id: int):
    chapter = get_owned_chapter(chapter_id)
    form = ChapterForm(partial=True)
    if not form.validate_on_submit():
        return form_error_response(form)

    changes = form.submitted_data()
    if "title" in changes:
        chapter.title = clean(changes["title"])
    if changes.get("order") is not None:
        chapter.order = changes["order"]
    _touch(chapter.project)
    db.session.commit()
    return jsonify({"chapter": chapter.to_dict()})


@bp.route("/chapters/<int:chapter_id>", methods=["DELETE"])
@login_required
def delete_chapter(chapter_id: int):
    chapter = get_owned_chapter(chapter_id)
    _touch(chapter.project)
    db.session.delete(chapter)
    db.session.commit()
    current_app.logger.info("Deleted chapter %s", chapter_id)
    return jsonify({"success": True})


# Scenes


@bp.route("/chapters/<int:chapter_id>/scenes", methods=["GET"])
@login_required
def list_scenes(chapter_id: int):
    chapter = get_owned_chapter(chapter_id)
    return jsonify({"scenes": [scene.to_dict() for scene in ordered_scenes(chapter.id)]})


@bp.route("/chapters/<int:chapter_id>/scenes", methods=["POST"])
@login_required
def create_scene(chapter_id: int):
    chapter = get_owned_chapter(chapter_id)
    form = SceneForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    order = form.order.data
    if order is None:
        order = Scene.query.filter_by(chapter_id=chapter.id).count()

    scene = Scene(
        chapter_id=chapter.id,
        title=clean(form.title.data),
        content=form.content.data or "",
        synopsis=clean(form.synopsis.data),
        status=clean(form.status.data) or DEFAULT_SCENE_STATUS,
        order=order,
    )
    db.session.add(scene)
    _touch(chapter.project)
    db.session.commit()
    return jsonify({"scene": scene.to_dict()}), 201


@bp.route("/chapters/<int:chapter_id>/scenes/reorder", methods=["POST"])
@login_required
def reorder_scenes(chapter_id: int):
    chapter = get_owned_chapter(chapter_id)
    payload = json_object()
    if payload is None:
        return jsonify({"error": BODY_NOT_OBJECT}), 400
    scene_ids = _id_list(payload, "scene_ids")
    if scene_ids is None:
        return jsonify({"error": "scene_ids must be a list of scene ids."}), 400

    scenes = ordered_scenes(chapter.id)
    try:
        apply_order(scenes, scene_ids)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    _touch(chapter.project)
    db.session.commit()
    return jsonify({"scenes": [scene.to_dict(include_content=False) for scene in ordered_scenes(chapter.id)]})


@bp.route("/scenes/<int:scene_id>", methods=["GET"])
@login_required
def get_scene(scene_id: int):
    scene = get_owned_scene(scene_id)
    return jsonify({"scene": scene.to_dict()})


@bp.route("/scenes/<int:scene_id>", methods=["PUT"])
@login_required
def update_scene(scene_id: int):
    scene = get_owned_scene(scene_id)
    form = SceneForm(partial=True)
    if not form.validate_on_submit():
        return form_error_response(form)

    changes = form.submitted_data()
    if "title" in changes:
        scene.title = clean(changes["title"])
    if "content" in changes:
        scene.content = changes["content"] or ""
    if "synopsis" in changes:
        scene.synopsis = clean(changes["synopsis"])
    if "status" in changes:
        scene.status = clean(changes["status"]) or DEFAULT_SCENE_STATUS
    if changes.get("order") is not None:
        scene.order = changes["order"]
    scene.updated_at = datetime.utcnow()

    version = None
    if (json_object() or {}).get("snapshot") is True and (scene.content or "").strip():
        version = record_scene_version(scene, scene.content)

    _touch(scene.chapter.project)
    db.session.commit()
    return jsonify(
        {
            "scene": scene.to_dict(),
            "version": version.to_dict(include_content=False) if version else None,
        }
    )


@bp.route("/scenes/<int:scene_id>", methods=["DELETE"])
@login_required
def delete_scene(scene_id: int):
    scene = get_owned_scene(scene_id)
    _touch(scene.chapter.project)
    db.session.delete(scene)
    db.session.commit()
    return jsonify({"success": True})


@bp.route("/scenes/<int:scene_id>/status", methods=["PATCH"])
@login_required
def move_scene_card(scene_id: int):
    scene = get_owned_scene(scene_id)
    form = SceneMoveForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    target_chapter = None
    if form.chapter_id.data is not None:
        target_chapter = get_owned_chapter(form.chapter_id.data)

    try:
        move_scene(
            scene,
            status=clean(form.status.data) or None,
            chapter=target_chapter,
            position=form.order.data,
        )
    except BoardError as exc:
        db.session.rollback()
        return jsonify({"error": str(exc)}), 400

    _touch(scene.chapter.project)
    db.session.commit()
    return jsonify({"scene": scene.to_dict(include_content=False)})


# Board


@bp.route("/projects/<int:project_id>/board", methods=["GET"])
@login_required
def board(project_id: int):
    project = get_owned_project(project_id)
    return jsonify(build_board(project))


# Versions


@bp.route("/scenes/<int:scene_id>/versions", methods=["GET"])
@login_required
def list_versions(scene_id: int):
    scene = get_owned_scene(scene_id)
    return jsonify({"versions": [version.to_dict() for version in list_scene_versions(scene)]})


@bp.route("/scenes/<int:scene_id>/versions", methods=["POST"])
@login_required
def create_version(scene_id: int):
    scene = get_owned_scene(scene_id)
    form = SceneVersionForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    try:
        version = record_scene_version(scene, form.content.data)
    except VersioningError as exc:
        db.session.rollback()
        return jsonify({"error": str(exc)}), 400

    db.session.commit()
    return jsonify({"version": version.to_dict()}), 201


@bp.route("/scenes/<int:scene_id>/versions/<int:version_id>", methods=["GET"])
@login_required
def get_version(scene_id: int, version_id: int):
    scene = get_owned_scene(scene_id)
    return jsonify({"version": get_scene_version(scene, version_id).to_dict()})


@bp.route("/scenes/<int:scene_id>/versions/<int:version_id>/restore", methods=["POST"])
@login_required
def restore_version(scene_id: int, version_id: int):
    scene = get_owned_scene(scene_id)
    version = get_scene_version(scene, version_id)
    backup = restore_scene_version(scene, version)
    _touch(scene.chapter.project)
    db.session.commit()
    current_app.logger.info("Restored version %s into scene %s", version_id, scene.id)
    return jsonify(
        {
            "scene": scene.to_dict(),
            "backup": backup.to_dict(include_content=False) if backup else None,
        }
    )
