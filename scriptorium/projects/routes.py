from __future__ import annotations

from io import BytesIO

from flask import current_app, jsonify, request, send_file
from flask_login import current_user, login_required
from werkzeug.utils import secure_filename

from .. import system_prompts
from ..access import get_owned_project, get_owned_scene
from ..extensions import db
from ..forms import BODY_NOT_OBJECT, form_error_response, json_object
from ..models import Project
from ..pdf_handler import PDFExportError, render_manuscript_pdf
from ..services.llm import PromptConfigError
from ..services.manuscript import load_manuscript, manuscript_payload, manuscript_stats
from ..services.writing_assistant import AssistantError, available_actions, run_assist
from ..text_exporter import TextExportError, render_manuscript_text
from ..text_utils import clean, clean_or_none
from . import bp
from .forms import ProjectForm

EXPORT_FORMATS = ("json", "txt", "pdf")


def _project_summary(project: Project) -> dict:
    return {**project.to_dict(), "stats": manuscript_stats(load_manuscript(project))}


def _project_detail(project: Project) -> dict:
    payload = _project_summary(project)
    payload["bible"] = {
        "characters": len(project.characters),
        "places": len(project.places),
        "world_rules": len(project.world_rules),
    }
    return payload


def _download_name(project: Project, extension: str) -> str:
    stem = secure_filename(project.title or "") or "manuscript"
    return f"{stem}.{extension}"


@bp.route("", methods=["GET"])
@login_required
def list_projects():
    projects = (
        Project.query.filter_by(owner_id=current_user.id)
        .order_by(Project.updated_at.desc(), Project.id.desc())
        .all()
    )
    return jsonify({"projects": [_project_summary(project) for project in projects]})


@bp.route("", methods=["POST"])
@login_required
def create_project():
    form = ProjectForm()
    if not form.validate_on_submit():
        return form_error_response(form)

    project = Project(
        title=clean(form.title.data),
        genre=clean(form.genre.data),
        description=clean_or_none(form.description.data),
        tone=clean_or_none(form.tone.data),
        owner=current_user,
    )
    db.session.add(project)
    db.session.commit()
    current_app.logger.info("Created project %s for account %s", project.id, current_user.id)
    return jsonify({"project": _project_detail(project)}), 201


@bp.route("/<int:project_id>", methods=["GET"])
@login_required
def get_project(project_id: int):
    project = get_owned_project(project_id)
    return jsonify({"project": _project_detail(project)})


@bp.route("/<int:project_id>", methods=["PUT"])
@login_required
def update_project(project_id: int):
    project = get_owned_project(project_id)
    form = ProjectForm(partial=True)
    if not form.validate_on_submit():
        return form_error_response(form)

    for field_name, value in form.submitted_data().items():
        if field_name in ("title", "genre"):
            setattr(project, field_name, clean(value))
        else:
            setattr(project, field_name, clean_or_none(value))
    db.session.commit()
    return jsonify({"project": _project_detail(project)})


@bp.route("/<int:project_id>", methods=["DELETE"])
@login_required
def delete_project(project_id: int):
    project = get_owned_project(project_id)
    db.session.delete(project)
    db.session.commit()
    current_app.logger.info("Deleted project %s", project_id)
    return jsonify({"success": True})


@bp.route("/<int:project_id>/export", methods=["GET"])
@login_required
def export_project(project_id: int):
    project = get_owned_project(project_id)
    export_format = clean(request.args.get("format")).lower() or "json"
    if export_format not in EXPORT_FORMATS:
        return (
            jsonify({"error": f"Unsupported export format '{export_format}'. Use one of: {', '.join(EXPORT_FORMATS)}."}),
            400,
        )

    manuscript = load_manuscript(project)
    if export_format == "json":
        return jsonify(manuscript_payload(project, manuscript))

    try:
        if export_format == "txt":
            data = render_manuscript_text(project, manuscript).encode("utf-8")
            mimetype = "text/plain; charset=utf-8"
        else:
            data = render_manuscript_pdf(project, manuscript)
            mimetype = "application/pdf"
    except (TextExportError, PDFExportError) as exc:
        current_app.logger.exception("Export of project %s as %s failed", project.id, export_format)
        return jsonify({"error": str(exc)}), 500

    return send_file(
        BytesIO(data),
        mimetype=mimetype,
        as_attachment=True,
        download_name=_download_name(project, export_format),
    )


@bp.route("/<int:project_id>/assist/actions", methods=["GET"])
@login_required
def assist_actions(project_id: int):
    get_owned_project(project_id)
    try:
        actions = available_actions()
    except PromptConfigError as exc:
        return jsonify({"error": str(exc)}), 500
    return jsonify({"actions": actions, "default": system_prompts.DEFAULT_ACTION})


@bp.route("/<int:project_id>/assist", methods=["POST"])
@login_required
def assist(project_id: int):
    project = get_owned_project(project_id)
    payload = json_object()
    if payload is None:
        return jsonify({"error": BODY_NOT_OBJECT}), 400

    context = payload.get("context")
    scene_id = payload.get("scene_id")
    if context is None and scene_id is not None:
        try:
            scene = get_owned_scene(int(scene_id))
        except (TypeError, ValueError):
            return jsonify({"error": "scene_id must be an integer."}), 400
        if scene.chapter.project_id != project.id:
            return jsonify({"error": "The scene does not belong to this project."}), 400
        context = scene.plain_text

    try:
        result = run_assist(project, payload.get("action"), context, tone=payload.get("tone"))
    except AssistantError as exc:
        body = {"error": str(exc)}
        if exc.details:
            body["details"] = exc.details
        return jsonify(body), exc.status_code

    return jsonify({"text": result.text, "action": result.action})
