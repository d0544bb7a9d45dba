from scriptorium.extensions import db
from scriptorium.models import Chapter, Scene, SceneVersion


def _chapter(project, title, order):
    chapter = Chapter(project_id=project.id, title=title, order=order)
    db.session.add(chapter)
    db.session.commit()
    return chapter


def _scene(chapter, title, order, content=""):
    scene = Scene(chapter_id=chapter.id, title=title, order=order, content=content)
    db.session.add(scene)
    db.session.commit()
    return scene


def test_new_chapters_are_appended(auth_client, project):
    first = auth_client.post(f"/projects/{project.id}/chapters", json={"title": "One"})
    second = auth_client.post(f"/projects/{project.id}/chapters", json={"title": "Two"})

    assert first.status_code == 201
    assert first.get_json()["chapter"]["order"] == 0
    assert second.get_json()["chapter"]["order"] == 1


def test_chapter_requires_title(auth_client, project):
    response = auth_client.post(f"/projects/{project.id}/chapters", json={"title": "  "})

    assert response.status_code == 400
    assert Chapter.query.count() == 0


def test_chapters_listing_can_embed_scenes(auth_client, project, chapter, scene):
    response = auth_client.get(f"/projects/{project.id}/chapters?include=scenes")

    chapters = response.get_json()["chapters"]
    assert chapters[0]["title"] == "Arrival"
    assert chapters[0]["scenes"][0]["title"] == "The gate"
    assert "content" not in chapters[0]["scenes"][0]


def test_reorder_chapters(auth_client, project):
    one = _chapter(project, "One", 0)
    two = _chapter(project, "Two", 1)
    three = _chapter(project, "Three", 2)

    response = auth_client.post(
        f"/projects/{project.id}/chapters/reorder",
        json={"chapter_ids": [three.id, one.id, two.id]},
    )

    assert response.status_code == 200
    assert [chapter["title"] for chapter in response.get_json()["chapters"]] == ["Three", "One", "Two"]


def test_reorder_rejects_unknown_ids(auth_client, project, chapter):
    response = auth_client.post(
        f"/projects/{project.id}/chapters/reorder",
        json={"chapter_ids": [chapter.id, 9999]},
    )

    assert response.status_code == 400
    assert "9999" in response.get_json()["error"]


def test_delete_chapter_removes_scenes_and_versions(auth_client, chapter, scene):
    db.session.add(SceneVersion(scene_id=scene.id, content="<p>draft</p>"))
    db.session.commit()

    response = auth_client.delete(f"/chapters/{chapter.id}")

    assert response.status_code == 200
    assert Chapter.query.count() == 0
    assert Scene.query.count() == 0
    assert SceneVersion.query.count() == 0


def test_create_scene_defaults(auth_client, chapter, scene):
    response = auth_client.post(f"/chapters/{chapter.id}/scenes", json={"title": "The hall"})

    assert response.status_code == 201
    created = response.get_json()["scene"]
    assert created["status"] == "draft"
    assert created["content"] == ""
    assert created["order"] == 1


def test_create_scene_rejects_unknown_status(auth_client, chapter):
    response = auth_client.post(f"/chapters/{chapter.id}/scenes", json={"title": "X", "status": "published"})

    assert response.status_code == 400
    assert "status" in response.get_json()["errors"]


def test_update_scene_is_partial(auth_client, scene):
    response = auth_client.put(f"/scenes/{scene.id}", json={"synopsis": "Edith arrives."})

    assert response.status_code == 200
    body = response.get_json()
    assert body["scene"]["title"] == "The gate"
    assert body["scene"]["synopsis"] == "Edith arrives."
    assert body["scene"]["word_count"] == 7
    assert body["version"] is None
    assert SceneVersion.query.count() == 0


def test_update_scene_with_snapshot_records_version(auth_client, scene):
    response = auth_client.put(
        f"/scenes/{scene.id}",
        json={"content": "<p>Rewritten opening.</p>", "snapshot": True},
    )

    assert response.status_code == 200
    assert response.get_json()["version"]["word_count"] == 2
    version = SceneVersion.query.one()
    assert version.content == "<p>Rewritten opening.</p>"


def test_scene_of_foreign_project_is_forbidden(auth_client, foreign_project):
    chapter = _chapter(foreign_project, "Theirs", 0)
    scene = _scene(chapter, "Secret", 0)

    assert auth_client.get(f"/scenes/{scene.id}").status_code == 403
    assert auth_client.get(f"/chapters/{chapter.id}/scenes").status_code == 403


def test_reorder_scenes(auth_client, chapter):
    a = _scene(chapter, "A", 0)
    b = _scene(chapter, "B", 1)

    response = auth_client.post(f"/chapters/{chapter.id}/scenes/reorder", json={"scene_ids": [b.id, a.id]})

    assert response.status_code == 200
    assert [scene["title"] for scene in response.get_json()["scenes"]] == ["B", "A"]


def test_move_scene_card_between_chapters(auth_client, project):
    source = _chapter(project, "Source", 0)
    target = _chapter(project, "Target", 1)
    first = _scene(source, "First", 0)
    moving = _scene(source, "Moving", 1)
    last = _scene(source, "Last", 2)
    resident = _scene(target, "Resident", 0)

    response = auth_client.patch(
        f"/scenes/{moving.id}/status",
        json={"status": "revised", "chapter_id": target.id, "order": 0},
    )

    assert response.status_code == 200
    assert response.get_json()["scene"]["status"] == "revised"
    assert response.get_json()["scene"]["chapter_id"] == target.id

    source_titles = [s.title for s in Scene.query.filter_by(chapter_id=source.id).order_by(Scene.order)]
    target_titles = [s.title for s in Scene.query.filter_by(chapter_id=target.id).order_by(Scene.order)]
    assert source_titles == ["First", "Last"]
    assert target_titles == ["Moving", "Resident"]
    assert db.session.get(Scene, last.id).order == 1
    assert db.session.get(Scene, first.id).order == 0
    assert db.session.get(Scene, resident.id).order == 1


def test_move_scene_card_within_its_chapter(auth_client, chapter):
    first = _scene(chapter, "First", 0)
    second = _scene(chapter, "Second", 1)
    third = _scene(chapter, "Third", 2)

    response = auth_client.patch(f"/scenes/{third.id}/status", json={"order": 0})

    assert response.status_code == 200
    assert response.get_json()["scene"]["chapter_id"] == chapter.id
    ordered = Scene.query.filter_by(chapter_id=chapter.id).order_by(Scene.order).all()
    assert [s.id for s in ordered] == [third.id, first.id, second.id]
    assert [s.order for s in ordered] == [0, 1, 2]
    assert db.session.get(Scene, third.id).status == "draft"


def test_reorder_requires_a_json_object(auth_client, project, chapter):
    response = auth_client.post(f"/projects/{project.id}/chapters/reorder", json=[chapter.id])

    assert response.status_code == 400
    assert response.get_json()["error"] == "The request body must be a JSON object."
    assert auth_client.post(f"/chapters/{chapter.id}/scenes/reorder", json=[1, 2]).status_code == 400


def test_scene_fields_reject_wrong_json_types(auth_client, chapter, scene):
    response = auth_client.post(f"/chapters/{chapter.id}/scenes", json={"title": ["Two"], "order": 1})

    assert response.status_code == 400
    assert response.get_json()["errors"]["title"] == ["Scene title must be a string."]

    response = auth_client.put(f"/scenes/{scene.id}", json={"order": "first"})
    assert response.status_code == 400

    response = auth_client.put(f"/scenes/{scene.id}", json={"order": [2]})
    assert response.status_code == 400
    assert response.get_json()["errors"]["order"] == ["Position must be an integer."]


def test_null_order_leaves_position_unchanged(auth_client, scene):
    response = auth_client.put(f"/scenes/{scene.id}", json={"order": None, "synopsis": None})

    assert response.status_code == 200
    assert response.get_json()["scene"]["order"] == 0
    assert response.get_json()["scene"]["synopsis"] == ""

def test_move_scene_rejects_chapter_of_another_project(auth_client, user, project, scene):
    from scriptorium.models import Project

    sibling = Project(title="Other book", genre="Horror", owner=user)
    db.session.add(sibling)
    db.session.commit()
    elsewhere = _chapter(sibling, "Elsewhere", 0)

    response = auth_client.patch(f"/scenes/{scene.id}/status", json={"chapter_id": elsewhere.id})

    assert response.status_code == 400
    assert db.session.get(Scene, scene.id).chapter_id != elsewhere.id


def test_board_summarises_statuses(auth_client, project, chapter):
    _scene(chapter, "Draft one", 0, content="<p>one two three</p>")
    finished = _scene(chapter, "Done", 1, content="<p>four five</p>")
    finished.status = "final"
    finished.synopsis = "The end."
    db.session.commit()

    response = auth_client.get(f"/projects/{project.id}/board")

    payload = response.get_json()
    assert payload["statuses"] == ["draft", "in_progress", "revised", "final"]
    assert payload["chapters"][0]["scene_count"] == 2
    assert payload["chapters"][0]["word_count"] == 5
    stats = payload["stats"]
    assert stats["chapters"] == 1
    assert stats["scenes"] == 2
    assert stats["scenes_with_synopsis"] == 1
    assert stats["words"] == 5
    assert stats["by_status"] == {"draft": 1, "in_progress": 0, "revised": 0, "final": 1}
