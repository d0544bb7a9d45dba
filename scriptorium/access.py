"""Lookups that enforce project ownership for the signed-in user."""
from __future__ import annotations

from flask import abort
from flask_login import current_user

from .extensions import db
from .models import Chapter, Project, Scene, SceneVersion


def get_owned_project(project_id: int) -> Project:
    project = db.get_or_404(Project, project_id, description="Project not found.")
    if project.owner_id != current_user.id:
        abort(403, description="You do not have access to this project.")
    return project


def get_owned_chapter(chapter_id: int) -> Chapter:
    chapter = db.get_or_404(Chapter, chapter_id, description="Chapter not found.")
    get_owned_project(chapter.project_id)
    return chapter


def get_owned_scene(scene_id: int) -> Scene:
    scene = db.get_or_404(Scene, scene_id, description="Scene not found.")
    get_owned_chapter(scene.chapter_id)
    return scene


def get_scene_version(scene: Scene, version_id: int) -> SceneVersion:
    version = SceneVersion.query.filter_by(id=version_id, scene_id=scene.id).first()
    if version is None:
        abort(404, description="Version not found.")
    return version
