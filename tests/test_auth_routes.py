from scriptorium.extensions import db
from scriptorium.models import User

from conftest import PASSWORD, login


def test_register_creates_account_with_profile(client):
    response = client.post(
        "/register",
        json={
            "display_name": "New Writer",
            "email": "New.Writer@Example.com",
            "password": "secret1",
            "confirm_password": "secret1",
        },
    )

    assert response.status_code == 201
    assert response.get_json()["user"]["email"] == "new.writer@example.com"
    created = User.query.filter_by(email="new.writer@example.com").one()
    assert created.profile is not None
    assert created.check_password("secret1")


def test_register_rejects_duplicate_email(client, user):
    response = client.post(
        "/register",
        json={"display_name": "Copy", "email": user.email, "password": "another1"},
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "An account with that email already exists."


def test_register_rejects_short_password(client):
    response = client.post(
        "/register",
        json={"display_name": "Short", "email": "short@example.com", "password": "abc"},
    )

    assert response.status_code == 400
    assert "password" in response.get_json()["errors"]
    assert User.query.count() == 0


def test_register_rejects_mismatched_confirmation(client):
    response = client.post(
        "/register",
        json={
            "display_name": "Typo",
            "email": "typo@example.com",
            "password": "secret1",
            "confirm_password": "secret2",
        },
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Passwords must match."


def test_login_with_wrong_password_is_rejected(client, user):
    response = client.post("/login", json={"email": user.email, "password": "wrong-password"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "Invalid email or password."


def test_protected_endpoint_requires_login(client):
    response = client.get("/me")

    assert response.status_code == 401
    assert response.get_json() == {"error": "Authentication required."}


def test_me_returns_user_and_lazily_created_profile(client, user):
    login(client, user)

    response = client.get("/me")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["user"]["display_name"] == "Test Writer"
    assert payload["profile"]["bio"] == ""
    assert db.session.get(User, user.id).profile is not None


def test_profile_update_only_changes_submitted_fields(client, user):
    login(client, user)
    client.put("/me", json={"bio": "Writes at night.", "location": "Lisbon"})

    response = client.put("/me", json={"location": "Porto"})

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["user"]["display_name"] == "Test Writer"
    assert payload["profile"]["bio"] == "Writes at night."
    assert payload["profile"]["location"] == "Porto"


def test_change_password_requires_current_password(client, user):
    login(client, user)

    response = client.post(
        "/me/password",
        json={"current_password": "not-it", "new_password": "brand-new"},
    )

    assert response.status_code == 400
    assert response.get_json()["error"] == "Current password is incorrect."
    assert user.check_password(PASSWORD)


def test_change_password_updates_hash(client, user):
    login(client, user)

    response = client.post(
        "/me/password",
        json={"current_password": PASSWORD, "new_password": "brand-new"},
    )

    assert response.status_code == 200
    assert db.session.get(User, user.id).check_password("brand-new")


def test_logout_ends_session(client, user):
    login(client, user)

    assert client.post("/logout").status_code == 200
    assert client.get("/me").status_code == 401


def test_csrf_token_endpoint_returns_token(client):
    response = client.get("/csrf-token")

    assert response.status_code == 200
    assert response.get_json()["csrf_token"]


def test_register_rejects_non_string_email(client):
    response = client.post(
        "/register",
        json={"display_name": "Numbers", "email": 5, "password": "secret1"},
    )

    assert response.status_code == 400
    assert response.get_json()["errors"]["email"] == ["Email must be a string."]
    assert User.query.count() == 0


def test_login_rejects_non_object_body(client, user):
    response = client.post("/login", json=[user.email, PASSWORD])

    assert response.status_code == 400
    assert response.get_json() == {"error": "The request body must be a JSON object.", "errors": {}}
