import json

import pytest

from scriptorium.api_handler import LLMRateLimitError
from scriptorium.extensions import db
from scriptorium.models import Character, Place, WorldRule
from scriptorium.services import writing_assistant


class DummyGenerator:
    def __init__(self, reply="The door opened by itself.", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def generate_chat(self, messages, **kwargs):
        self.calls.append({"messages": messages, "kwargs": kwargs})
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def generator(monkeypatch):
    dummy = DummyGenerator()
    monkeypatch.setattr(writing_assistant, "get_text_generator", lambda: dummy)
    return dummy


@pytest.fixture
def bible(project):
    db.session.add_all(
        [
            Character(project_id=project.id, name="Edith", age="34", fears="Deep water"),
            Place(project_id=project.id, name="The chapel", atmosphere="Cold"),
            WorldRule(project_id=project.id, category="Magic", title="Salt wards", description="Salt lines stop spirits."),
        ]
    )
    project.tone = "Quiet dread"
    db.session.commit()
    return project


def test_assist_without_backend_is_unavailable(auth_client, project):
    response = auth_client.post(
        f"/projects/{project.id}/assist",
        json={"action": "improve", "context": "The door was open."},
    )

    assert response.status_code == 503
    assert "not configured" in response.get_json()["error"]


def test_assist_sends_bible_and_text_to_the_model(auth_client, bible, generator):
    response = auth_client.post(
        f"/projects/{bible.id}/assist",
        json={"action": "improve", "context": "The door was open."},
    )

    assert response.status_code == 200
    assert response.get_json() == {"text": "The door opened by itself.", "action": "improve"}

    system, user = generator.calls[0]["messages"]
    assert system["role"] == "system"
    assert "Gothic Horror" in system["content"]
    assert "- Edith, 34" in system["content"]
    assert "  Fears: Deep water" in system["content"]
    assert "- [Magic] Salt wards: Salt lines stop spirits." in system["content"]
    assert "TONE AND STYLE: Quiet dread" in system["content"]
    assert user["role"] == "user"
    assert user["content"].endswith("CURRENT TEXT:\nThe door was open.")


def test_tone_in_request_overrides_project_tone(auth_client, bible, generator):
    auth_client.post(
        f"/projects/{bible.id}/assist",
        json={"action": "tension", "context": "She waited.", "tone": "Frantic"},
    )

    assert "TONE AND STYLE: Frantic" in generator.calls[0]["messages"][0]["content"]


def test_actions_that_need_text_reject_empty_context(auth_client, project, generator):
    response = auth_client.post(f"/projects/{project.id}/assist", json={"action": "consistency", "context": "  "})

    assert response.status_code == 400
    assert generator.calls == []


def test_continue_accepts_empty_context(auth_client, project, generator):
    response = auth_client.post(f"/projects/{project.id}/assist", json={"action": "continue"})

    assert response.status_code == 200
    assert response.get_json()["action"] == "continue"


def test_unknown_action_falls_back_to_continue(auth_client, project, generator):
    response = auth_client.post(f"/projects/{project.id}/assist", json={"action": "summon", "context": "Text"})

    assert response.status_code == 200
    assert response.get_json()["action"] == "continue"


def test_scene_content_is_used_when_context_is_omitted(auth_client, project, scene, generator):
    response = auth_client.post(f"/projects/{project.id}/assist", json={"action": "improve", "scene_id": scene.id})

    assert response.status_code == 200
    user_message = generator.calls[0]["messages"][1]["content"]
    assert user_message.endswith("CURRENT TEXT:\nThe gate creaked open.\n\nNobody was there.")


def test_backend_failure_is_reported_as_bad_gateway(auth_client, project, generator):
    generator.error = RuntimeError("connection reset")

    response = auth_client.post(f"/projects/{project.id}/assist", json={"action": "improve", "context": "Text"})

    assert response.status_code == 502
    assert response.get_json() == {"error": "Error generating a response.", "details": "connection reset"}


def test_rate_limit_is_reported(auth_client, project, generator):
    generator.error = LLMRateLimitError()

    response = auth_client.post(f"/projects/{project.id}/assist", json={"action": "improve", "context": "Text"})

    assert response.status_code == 429


def test_empty_model_reply_is_an_error(auth_client, project, generator):
    generator.reply = "   "

    response = auth_client.post(f"/projects/{project.id}/assist", json={"action": "improve", "context": "Text"})

    assert response.status_code == 502
    assert response.get_json()["error"] == "The assistant returned an empty response."


def test_assist_on_foreign_project_is_forbidden(auth_client, foreign_project, generator):
    response = auth_client.post(f"/projects/{foreign_project.id}/assist", json={"context": "Text"})

    assert response.status_code == 403
    assert generator.calls == []


def test_prompt_overrides_from_config_file(app_instance, auth_client, project, generator, tmp_path):
    config_path = tmp_path / "prompts.json"
    config_path.write_text(
        json.dumps(
            {
                "writing_assistant": {
                    "actions": {"summarize": {"label": "Summarize", "instruction": "Summarize it."}},
                    "parameters": {"temperature": 0.2, "max_new_tokens": 300},
                }
            }
        ),
        encoding="utf-8",
    )
    app_instance.config["PROMPT_CONFIG_PATH"] = str(config_path)

    actions = auth_client.get(f"/projects/{project.id}/assist/actions").get_json()
    response = auth_client.post(f"/projects/{project.id}/assist", json={"action": "summarize", "context": "Text"})

    assert actions["actions"]["summarize"] == "Summarize"
    assert actions["default"] == "continue"
    assert response.get_json()["action"] == "summarize"
    assert generator.calls[0]["kwargs"] == {"temperature": 0.2, "max_new_tokens": 300}
    assert generator.calls[0]["messages"][1]["content"].startswith("Summarize it.")


def test_build_messages_defaults_genre(app_instance, project):
    project.genre = ""

    messages = writing_assistant.build_assist_messages(project, "continue", "")

    assert "specialised in fiction" in messages.system
    assert messages.as_chat()[1]["content"].endswith("CURRENT TEXT:\n")


def test_assist_rejects_non_object_body(auth_client, project, generator):
    response = auth_client.post(f"/projects/{project.id}/assist", json=["improve"])

    assert response.status_code == 400
    assert response.get_json()["error"] == "The request body must be a JSON object."
    assert generator.calls == []


def test_run_assist_returns_action_and_text(app_instance, project, generator):
    result = writing_assistant.run_assist(project, "improve", "The door was open.")

    assert result == writing_assistant.AssistResult(action="improve", text="The door opened by itself.")
