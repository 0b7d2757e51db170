"""Tests for the profile endpoints and preference storage."""

from sqlmodel import Session, select

from catalyst.models.user import User
from tests.conftest import test_engine


def test_get_profile_defaults(alice):
    response = alice.get("/api/user/profile")
    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "alice"
    assert data["name"] is None
    assert data["bio"] is None
    assert data["preferences"] == {
        "theme": "system",
        "language": "pt-BR",
        "notifications": True,
        "font_size": "medium",
    }
    assert "password" not in data


def test_update_profile(alice):
    response = alice.put("/api/user/profile", json={"name": "Alice", "bio": "Likes tea"})
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Alice"
    assert data["bio"] == "Likes tea"

    assert alice.get("/api/user/profile").json()["name"] == "Alice"


def test_update_only_touches_given_fields(alice):
    alice.put("/api/user/profile", json={"name": "Alice", "bio": "Likes tea"})
    data = alice.put("/api/user/profile", json={"bio": "Likes coffee"}).json()
    assert data["name"] == "Alice"
    assert data["bio"] == "Likes coffee"


def test_update_preferences_merges_keys(alice):
    alice.put("/api/user/profile", json={"preferences": {"theme": "dark"}})
    data = alice.put("/api/user/profile", json={"preferences": {"font_size": "large"}}).json()
    assert data["preferences"]["theme"] == "dark"
    assert data["preferences"]["font_size"] == "large"
    assert data["preferences"]["notifications"] is True


def test_preferences_stored_as_json_text(alice):
    alice.put("/api/user/profile", json={"preferences": {"theme": "light"}})
    with Session(test_engine) as session:
        user = session.exec(select(User).where(User.username == "alice")).one()
        assert isinstance(user.preferences, str)
        assert '"theme":"light"' in user.preferences


def test_update_profile_validation(alice):
    assert alice.put("/api/user/profile", json={"name": ""}).status_code == 400
    assert alice.put("/api/user/profile", json={"name": "x" * 101}).status_code == 400
    assert alice.put("/api/user/profile", json={"bio": "x" * 501}).status_code == 400
    assert alice.put("/api/user/profile", json={"preferences": {"theme": "neon"}}).status_code == 400

    response = alice.put("/api/user/profile", json={"preferences": {"unknown": 1}})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request data"
    assert "errors" in response.json()


def test_corrupt_preferences_read_as_defaults(alice):
    with Session(test_engine) as session:
        user = session.exec(select(User).where(User.username == "alice")).one()
        user.preferences = "{not json"
        session.add(user)
        session.commit()

    response = alice.get("/api/user/profile")
    assert response.status_code == 200
    assert response.json()["preferences"]["theme"] == "system"


def test_update_over_corrupt_preferences_repairs_them(alice):
    with Session(test_engine) as session:
        user = session.exec(select(User).where(User.username == "alice")).one()
        user.preferences = "[1, 2, 3]"
        session.add(user)
        session.commit()

    data = alice.put("/api/user/profile", json={"preferences": {"theme": "dark"}}).json()
    assert data["preferences"]["theme"] == "dark"
    assert data["preferences"]["language"] == "pt-BR"
