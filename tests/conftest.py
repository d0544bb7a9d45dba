import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from scriptorium import create_app
from scriptorium.config import TestConfig
from scriptorium.extensions import db
from scriptorium.models import Chapter, Project, Scene, User

PASSWORD = "password123"


@pytest.fixture
def app_instance():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app_instance):
    return app_instance.test_client()


def _make_user(email: str, display_name: str) -> User:
    user = User(email=email, display_name=display_name)
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def user(app_instance):
    return _make_user("writer@example.com", "Test Writer")


@pytest.fixture
def other_user(app_instance):
    return _make_user("rival@example.com", "Rival Writer")


@pytest.fixture
def project(app_instance, user):
    project = Project(title="The Hollow House", description="A haunted house novel", genre="Gothic Horror", owner=user)
    db.session.add(project)
    db.session.commit()
    return project


@pytest.fixture
def foreign_project(app_instance, other_user):
    project = Project(title="Not Yours", genre="Thriller", owner=other_user)
    db.session.add(project)
    db.session.commit()
    return project


@pytest.fixture
def chapter(project):
    chapter = Chapter(project_id=project.id, title="Arrival", order=0)
    db.session.add(chapter)
    db.session.commit()
    return chapter


@pytest.fixture
def scene(chapter):
    scene = Scene(
        chapter_id=chapter.id,
        title="The gate",
        content="<p>The gate creaked open.</p><p>Nobody was there.</p>",
        order=0,
    )
    db.session.add(scene)
    db.session.commit()
    return scene


def login(client, user):
    response = client.post("/login", json={"email": user.email, "password": PASSWORD})
    assert response.status_code == 200
    return response


@pytest.fixture
def auth_client(client, user):
    login(client, user)
    return client
