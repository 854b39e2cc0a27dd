"""Auth Routes — registration, login, session resolution and password change.

Invariants:
    - Emails are unique; usernames unique case-insensitively (409 with distinct codes)
    - Login accepts email or username and sets an http-only session cookie
    - Invalid or foreign tokens resolve to an anonymous caller
"""

from bootcamp_tracker.infrastructure.security import hash_password, verify_password
from bootcamp_tracker.models.user import User

from tests.services.fakes import TEST_PASSWORD


def _register_body(**overrides):
    body = {"username": "Alice_1", "email": "Alice@Example.com", "password": "secret1"}
    body.update(overrides)
    return body


async def test_register_creates_user(client):
    res = await client.post("/api/auth/register", json=_register_body(name="Alice"))
    assert res.status_code == 201
    user = res.json()["user"]
    assert user["username"] == "Alice_1"
    assert user["email"] == "alice@example.com"
    assert user["is_admin"] is False
    assert "password" not in user


async def test_register_duplicate_email_returns_409(client):
    await client.post("/api/auth/register", json=_register_body())
    res = await client.post(
        "/api/auth/register", json=_register_body(username="bob"),
    )
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "EMAIL_TAKEN"


async def test_register_username_is_case_insensitive(client):
    await client.post("/api/auth/register", json=_register_body())
    res = await client.post(
        "/api/auth/register", json=_register_body(username="alice_1", email="b@example.com"),
    )
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "USERNAME_TAKEN"


async def test_register_rejects_invalid_payload(client):
    res = await client.post(
        "/api/auth/register", json=_register_body(username="a!", password="123"),
    )
    assert res.status_code == 400
    body = res.json()["error"]
    assert body["code"] == "VALIDATION_ERROR"
    fields = {d["field"] for d in body["details"]}
    assert "username" in fields
    assert "password" in fields


async def test_login_by_email_and_username(client, make_user):
    user, _ = await make_user("Carol")
    for identifier in ("carol@example.com", "CAROL"):
        res = await client.post(
            "/api/auth/login", json={"identifier": identifier, "password": TEST_PASSWORD},
        )
        assert res.status_code == 200
        data = res.json()
        assert data["user"]["id"] == str(user.id)
        assert data["token"]
        assert "bootcamp_session" in res.cookies


async def test_login_wrong_password_returns_401(client, make_user):
    await make_user("dave")
    res = await client.post(
        "/api/auth/login", json={"identifier": "dave", "password": "wrong-password"},
    )
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


async def test_me_with_bearer_token(client, make_user):
    user, headers = await make_user("erin")
    res = await client.get("/api/auth/me", headers=headers)
    assert res.json()["authenticated"] is True
    assert res.json()["user"]["username"] == "erin"


async def test_me_anonymous_and_with_garbage_token(client):
    res = await client.get("/api/auth/me")
    assert res.json() == {"authenticated": False, "user": None}
    res = await client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
    assert res.json() == {"authenticated": False, "user": None}


async def test_change_password(client, make_user, test_session_factory):
    user, headers = await make_user("frank")
    res = await client.post(
        "/api/auth/change-password",
        json={"current_password": TEST_PASSWORD, "new_password": "brandnew"},
        headers=headers,
    )
    assert res.status_code == 200

    async with test_session_factory() as db:
        stored = await db.get(User, user.id)
    assert verify_password("brandnew", stored.password)


async def test_change_password_wrong_current_returns_400(client, make_user):
    _, headers = await make_user("gina")
    res = await client.post(
        "/api/auth/change-password",
        json={"current_password": "not-it", "new_password": "brandnew"},
        headers=headers,
    )
    assert res.status_code == 400


async def test_change_password_requires_session(client):
    res = await client.post(
        "/api/auth/change-password",
        json={"current_password": "x", "new_password": "brandnew"},
    )
    assert res.status_code == 401


def test_password_hash_round_trip_and_malformed_values():
    stored = hash_password("pa55word")
    assert stored != "pa55word"
    assert verify_password("pa55word", stored)
    assert not verify_password("other", stored)
    assert not verify_password("pa55word", "not base64!")


async def test_validation_message_names_first_field(client):
    res = await client.post("/api/auth/register", json={"email": "x@example.com"})
    message = res.json()["error"]["message"]
    assert message.startswith("username:")


async def test_stale_session_cookie_is_cleared_on_401(client):
    res = await client.get(
        "/api/user/layout", headers={"Cookie": "bootcamp_session=not-a-real-token"},
    )
    assert res.status_code == 401
    assert "bootcamp_session" in res.headers.get("set-cookie", "")
