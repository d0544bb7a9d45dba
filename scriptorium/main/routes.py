from flask import jsonify
from flask_login import current_user, login_required

from ..models import PROJECT_GENRES, SCENE_STATUSES, WORLD_RULE_CATEGORIES, Project
from ..services.manuscript import load_manuscript, manuscript_stats
from . import bp

RECENT_PROJECTS = 5


@bp.route("/")
def index():
    return jsonify(
        {
            "name": "scriptorium",
            "status": "ok",
            "authenticated": current_user.is_authenticated,
            "genres": list(PROJECT_GENRES),
            "world_rule_categories": list(WORLD_RULE_CATEGORIES),
            "scene_statuses": list(SCENE_STATUSES),
        }
    )


@bp.route("/dashboard")
@login_required
def dashboard():
    projects = (
        Project.query.filter_by(owner_id=current_user.id)
        .order_by(Project.updated_at.desc(), Project.id.desc())
        .all()
    )

    total_words = 0
    recent = []
    for position, project in enumerate(projects):
        stats = manuscript_stats(load_manuscript(project))
        total_words += stats["words"]
        if position < RECENT_PROJECTS:
            recent.append({**project.to_dict(), "stats": stats})

    return jsonify(
        {
            "user": current_user.to_dict(),
            "project_count": len(projects),
            "total_words": total_words,
            "recent_projects": recent,
        }
    )
