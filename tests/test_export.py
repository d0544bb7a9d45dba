from scriptorium.extensions import db
from scriptorium.models import Chapter, Scene
from scriptorium.pdf_handler import render_manuscript_pdf
from scriptorium.services.manuscript import load_manuscript
from scriptorium.text_exporter import CHAPTER_RULE, TITLE_RULE, export_manuscript_to_txt, render_manuscript_text


def _build_manuscript(project):
    second = Chapter(project_id=project.id, title="Second night", order=1)
    first = Chapter(project_id=project.id, title="First night", order=0)
    db.session.add_all([second, first])
    db.session.flush()
    db.session.add_all(
        [
            Scene(chapter_id=first.id, title="Later", content="<p>The lamp went out.</p>", order=1),
            Scene(chapter_id=first.id, title="Opening", content="<p>Rain on the roof.</p>", order=0),
            Scene(chapter_id=second.id, title="Empty", content="", order=0),
        ]
    )
    db.session.commit()


def test_json_export_orders_chapters_and_scenes(auth_client, project):
    _build_manuscript(project)

    response = auth_client.get(f"/projects/{project.id}/export")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["project"]["title"] == "The Hollow House"
    assert [chapter["title"] for chapter in payload["chapters"]] == ["First night", "Second night"]
    assert [scene["title"] for scene in payload["chapters"][0]["scenes"]] == ["Opening", "Later"]


def test_text_rendering_layout(project):
    _build_manuscript(project)

    text = render_manuscript_text(project, load_manuscript(project))

    lines = text.splitlines()
    assert lines[0] == "THE HOLLOW HOUSE"
    assert lines[1] == "Gothic Horror"
    assert TITLE_RULE in lines
    assert "FIRST NIGHT" in lines
    assert lines[lines.index("FIRST NIGHT") + 1] == CHAPTER_RULE
    assert text.index("Rain on the roof.") < text.index("The lamp went out.")
    assert "<p>" not in text


def test_txt_export_is_an_attachment(auth_client, project):
    _build_manuscript(project)

    response = auth_client.get(f"/projects/{project.id}/export?format=txt")

    assert response.status_code == 200
    assert response.mimetype == "text/plain"
    assert "The_Hollow_House.txt" in response.headers["Content-Disposition"]
    assert response.data.decode("utf-8").startswith("THE HOLLOW HOUSE\n")


def test_pdf_export_produces_pdf_document(auth_client, project):
    _build_manuscript(project)

    response = auth_client.get(f"/projects/{project.id}/export?format=pdf")

    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert response.data.startswith(b"%PDF")


def test_pdf_rendering_handles_non_latin1_text(project):
    chapter = Chapter(project_id=project.id, title="Smart “quotes” — and dashes", order=0)
    db.session.add(chapter)
    db.session.flush()
    db.session.add(Scene(chapter_id=chapter.id, title="Ω", content="<p>It’s… fine ✓</p>", order=0))
    db.session.commit()

    data = render_manuscript_pdf(project, load_manuscript(project))

    assert data.startswith(b"%PDF")


def test_unknown_export_format_is_rejected(auth_client, project):
    response = auth_client.get(f"/projects/{project.id}/export?format=docx")

    assert response.status_code == 400
    assert "docx" in response.get_json()["error"]


def test_export_to_txt_file(project, tmp_path):
    _build_manuscript(project)
    target = tmp_path / "book.txt"

    result = export_manuscript_to_txt(project, load_manuscript(project), output_path=target)

    assert result == target
    assert target.read_text(encoding="utf-8").startswith("THE HOLLOW HOUSE")
