from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from .extensions import db, login_manager
from .text_utils import count_words, html_to_text


SCENE_STATUSES = ("draft", "in_progress", "revised", "final")
DEFAULT_SCENE_STATUS = SCENE_STATUSES[0]

WORLD_RULE_CATEGORIES = (
    "Magic",
    "Technology",
    "Society",
    "Geography",
    "History",
    "Religion",
    "Other",
)
DEFAULT_WORLD_RULE_CATEGORY = WORLD_RULE_CATEGORIES[0]

PROJECT_GENRES = ("Horror", "Science Fiction", "Fantasy", "Gothic Horror", "Thriller", "Other")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    display_name = db.Column(db.String(120), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    projects = db.relationship("Project", backref="owner", lazy=True, cascade="all, delete-orphan")
    profile = db.relationship(
        "UserProfile",
        backref="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "avatar_url": self.profile.avatar_url if self.profile else None,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:  # pragma: no cover - repr for debugging
        return f"<User {self.email}>"


@login_manager.user_loader
def load_user(user_id: str) -> Optional["User"]:
    return db.session.get(User, int(user_id))


class UserProfile(db.Model):
    __tablename__ = "user_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    bio = db.Column(db.Text, nullable=True)
    website = db.Column(db.String(255), nullable=True)
    location = db.Column(db.String(120), nullable=True)
    avatar_url = db.Column(db.String(500), nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bio": self.bio or "",
            "website": self.website or "",
            "location": self.location or "",
            "avatar_url": self.avatar_url or "",
            "updated_at": _iso(self.updated_at),
        }


class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    genre = db.Column(db.String(80), nullable=False, default="Other")
    tone = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    characters = db.relationship(
        "Character",
        backref="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Character.name",
    )
    places = db.relationship(
        "Place",
        backref="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Place.name",
    )
    world_rules = db.relationship(
        "WorldRule",
        backref="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="WorldRule.category",
    )
    chapters = db.relationship(
        "Chapter",
        backref="project",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Chapter.order",
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "genre": self.genre,
            "tone": self.tone or "",
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Project {self.title} ({self.genre})>"


class Character(db.Model):
    __tablename__ = "characters"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(120), nullable=False)
    age = db.Column(db.String(40), nullable=True)
    personality = db.Column(db.Text, nullable=True)
    backstory = db.Column(db.Text, nullable=True)
    fears = db.Column(db.Text, nullable=True)
    motivations = db.Column(db.Text, nullable=True)
    voice = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "age": self.age or "",
            "personality": self.personality or "",
            "backstory": self.backstory or "",
            "fears": self.fears or "",
            "motivations": self.motivations or "",
            "voice": self.voice or "",
            "notes": self.notes or "",
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Character {self.name}>"


class Place(db.Model):
    __tablename__ = "places"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    atmosphere = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description or "",
            "atmosphere": self.atmosphere or "",
            "notes": self.notes or "",
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Place {self.name}>"


class WorldRule(db.Model):
    __tablename__ = "world_rules"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category = db.Column(db.String(50), nullable=False, default=DEFAULT_WORLD_RULE_CATEGORY)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "category": self.category,
            "title": self.title,
            "description": self.description or "",
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<WorldRule [{self.category}] {self.title}>"


class Chapter(db.Model):
    __tablename__ = "chapters"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = db.Column(db.String(200), nullable=False)
    order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    scenes = db.relationship(
        "Scene",
        backref="chapter",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Scene.order",
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "order": self.order,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Chapter {self.order}: {self.title}>"


class Scene(db.Model):
    __tablename__ = "scenes"

    id = db.Column(db.Integer, primary_key=True)
    chapter_id = db.Column(
        db.Integer, db.ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = db.Column(db.String(200), nullable=False)
    # Serialised editor state, stored verbatim.
    content = db.Column(db.Text, nullable=False, default="")
    synopsis = db.Column(db.Text, nullable=False, default="")
    status = db.Column(db.String(30), nullable=False, default=DEFAULT_SCENE_STATUS)
    order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    versions = db.relationship(
        "SceneVersion",
        backref="scene",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="SceneVersion.created_at.desc()",
    )

    @property
    def plain_text(self) -> str:
        return html_to_text(self.content)

    @property
    def word_count(self) -> int:
        return count_words(self.plain_text)

    def to_dict(self, *, include_content: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "chapter_id": self.chapter_id,
            "title": self.title,
            "synopsis": self.synopsis or "",
            "status": self.status or DEFAULT_SCENE_STATUS,
            "order": self.order,
            "word_count": self.word_count,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_content:
            payload["content"] = self.content or ""
        return payload

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Scene {self.title} ({self.status})>"


class SceneVersion(db.Model):
    __tablename__ = "scene_versions"

    id = db.Column(db.Integer, primary_key=True)
    scene_id = db.Column(
        db.Integer, db.ForeignKey("scenes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self, *, include_content: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "scene_id": self.scene_id,
            "word_count": count_words(html_to_text(self.content)),
            "created_at": _iso(self.created_at),
        }
        if include_content:
            payload["content"] = self.content
        return payload

    def __repr__(self) -> str:  # pragma: no cover
        return f"<SceneVersion {self.id} for scene {self.scene_id}>"
