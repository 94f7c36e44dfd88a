import pytest

from errors import AuthenticationError
from models.User import User
from services import auth_service
from utils.security import create_access_token, decode_access_token


GOOGLE_PROFILE = {
    "sub": "google-123",
    "email": "dana@example.com",
    "name": "Dana",
    "picture": "https://example.com/dana.png",
}


@pytest.fixture
def google_profile(monkeypatch):
    async def fake_fetch(access_token, timeout=10.0):
        if access_token != "good-google-token":
            raise AuthenticationError("Invalid Google token")
        return dict(GOOGLE_PROFILE)

    monkeypatch.setattr(auth_service, "fetch_google_profile", fake_fetch)
    return GOOGLE_PROFILE


def test_find_or_create_user_creates_then_reuses(db):
    created = auth_service.find_or_create_user(db, "dana@example.com", "Dana", "g-1", None)
    again = auth_service.find_or_create_user(db, "dana@example.com")

    assert again.user_id == created.user_id
    assert db.query(User).count() == 1


def test_find_or_create_user_updates_but_never_clears(db):
    auth_service.find_or_create_user(db, "dana@example.com", "Dana", "g-1", "https://example.com/a.png")

    user = auth_service.find_or_create_user(db, "dana@example.com", full_name="Dana K", google_id=None,
                                            avatar_url="")

    assert user.full_name == "Dana K"
    assert user.google_id == "g-1"
    assert user.avatar_url == "https://example.com/a.png"


def test_token_round_trip(owner):
    payload = decode_access_token(create_access_token(owner.user_id, owner.email))
    assert payload["user_id"] == owner.user_id
    assert payload["email"] == owner.email


def test_expired_and_tampered_tokens_are_rejected(owner):
    expired = create_access_token(owner.user_id, owner.email, expires_minutes=-1)
    with pytest.raises(AuthenticationError) as exc_info:
        decode_access_token(expired)
    assert exc_info.value.message == "Token expired"

    with pytest.raises(AuthenticationError):
        decode_access_token(create_access_token(owner.user_id, owner.email) + "x")


def test_google_login_endpoint(client, db, google_profile):
    resp = client.post("/auth/google", json={"access_token": "good-google-token"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["user"]["email"] == "dana@example.com"
    assert body["user"]["full_name"] == "Dana"
    assert decode_access_token(body["token"])["user_id"] == body["user"]["id"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["user_id"] == body["user"]["id"]


def test_google_login_with_bad_token(client, google_profile):
    resp = client.post("/auth/google", json={"access_token": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid Google token"}


def test_google_login_rejects_disabled_user(client, db, google_profile, make_user):
    user = make_user("dana@example.com", "Dana")
    user.is_active = False
    db.commit()

    resp = client.post("/auth/google", json={"access_token": "good-google-token"})
    assert resp.status_code == 401


@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "Bearer not-a-jwt"},
    {"Authorization": "Basic dXNlcjpwYXNz"},
])
def test_protected_routes_need_a_valid_bearer(client, headers):
    resp = client.get("/trip/all-my-trips", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_token_for_deleted_user_is_rejected(client, db, make_user, headers_for):
    ghost = make_user("ghost@example.com")
    headers = headers_for(ghost)
    db.delete(ghost)
    db.commit()

    assert client.get("/auth/me", headers=headers).status_code == 401
