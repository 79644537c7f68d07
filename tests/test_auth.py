import pytest
from sqlalchemy import select

from conftest import TEST_PASSWORD
from learnhub import database
from learnhub.models import Role, User
from learnhub.users import ensure_owner_user

pytestmark = pytest.mark.anyio


async def test_me_is_null_without_session(anon_client):
    resp = await anon_client.get("/api/auth/me")
    assert resp.status_code == 200
    assert resp.json() is None


async def test_me_returns_caller(client_for, make_user):
    user = await make_user(Role.TEACHER, first_name="Noor", email="noor@school.test")
    resp = await (await client_for(user)).get("/api/auth/me")
    body = resp.json()
    assert body["id"] == user.id
    assert body["firstName"] == "Noor"
    assert body["role"] == "TEACHER"
    assert body["preferredLanguage"] == "en"
    assert "hashedPassword" not in body


async def test_password_login_sets_session_cookie_and_records_sign_in(client_for, make_user):
    user = await make_user(Role.STUDENT, email="rana@school.test")
    client = await client_for()

    resp = await client.post("/auth/jwt/login", data={"username": "rana@school.test", "password": TEST_PASSWORD})
    assert resp.status_code == 204
    assert "session" in client.cookies

    me = (await client.get("/api/auth/me")).json()
    assert me["id"] == user.id
    async with database.session_factory()() as session:
        stored = await session.get(User, user.id)
    assert stored.last_login_at is not None
    assert stored.failed_login_attempts == 0


async def test_wrong_password_is_rejected(client_for, make_user):
    await make_user(Role.STUDENT, email="rana@school.test")
    client = await client_for()
    resp = await client.post("/auth/jwt/login", data={"username": "rana@school.test", "password": "nope"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "BAD_REQUEST"


async def test_logout_clears_cookie(student_client):
    resp = await student_client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    set_cookie = resp.headers["set-cookie"].lower()
    assert set_cookie.startswith("session=")
    assert "max-age=0" in set_cookie


async def test_update_language(student_client, student):
    resp = await student_client.post("/api/auth/updateLanguage", json={"language": "ar"})
    assert resp.status_code == 200
    me = (await student_client.get("/api/auth/me")).json()
    assert me["preferredLanguage"] == "ar"


async def test_update_profile_is_partial(student_client, student):
    resp = await student_client.post("/api/users/updateProfile", json={"lastName": "Khoury"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["lastName"] == "Khoury"
    assert body["firstName"] == student.first_name


async def test_owner_bootstrap_creates_admin(engine, monkeypatch):
    from learnhub.settings.config import settings

    monkeypatch.setattr(settings, "OWNER_EMAIL", "owner@school.test")
    monkeypatch.setattr(settings, "OWNER_PASSWORD", "owner-password")
    async with database.session_factory()() as session:
        owner = await ensure_owner_user(session)
        again = await ensure_owner_user(session)
    assert owner.role == Role.ADMIN
    assert owner.open_id == "owner-open-id"
    assert again.id == owner.id


async def test_profile_email_clash_is_a_conflict(client_for, make_user):
    rana = await make_user(Role.STUDENT, email="Rana@School.edu")
    assert rana.email == "rana@school.edu"
    other = await make_user(Role.STUDENT)

    resp = await (await client_for(other)).post("/api/users/updateProfile", json={"email": "RANA@school.edu"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "CONFLICT"

    # the original owner of the address can still sign in
    login = await (await client_for()).post(
        "/auth/jwt/login", data={"username": "rana@school.edu", "password": TEST_PASSWORD}
    )
    assert login.status_code == 204


SIGN_IN_BODY = {
    "openId": "oidc-rana",
    "externalId": "STU-100",
    "firstName": "Rana",
    "lastName": "Haddad",
    "email": "Rana@School.edu",
    "password": TEST_PASSWORD,
}


async def test_first_sign_in_creates_student_and_later_ones_update(client_for):
    client = await client_for()
    resp = await client.post("/api/auth/signIn", json=SIGN_IN_BODY)
    assert resp.status_code == 200, resp.text
    created = resp.json()
    assert created["role"] == "STUDENT"
    assert created["email"] == "rana@school.edu"
    assert "session" in client.cookies
    assert (await client.get("/api/auth/me")).json()["id"] == created["id"]

    resp = await (await client_for()).post(
        "/api/auth/signIn", json={**SIGN_IN_BODY, "externalId": "STU-101", "lastName": "Khoury"}
    )
    assert resp.status_code == 200
    again = resp.json()
    assert again["id"] == created["id"]
    assert (again["externalId"], again["lastName"], again["role"]) == ("STU-101", "Khoury", "STUDENT")

    async with database.session_factory()() as session:
        stored = await session.get(User, created["id"])
    assert stored.last_login_at is not None

    login = await (await client_for()).post(
        "/auth/jwt/login", data={"username": "rana@school.edu", "password": TEST_PASSWORD}
    )
    assert login.status_code == 204


async def test_sign_in_for_known_open_id_needs_its_password(client_for):
    assert (await (await client_for()).post("/api/auth/signIn", json=SIGN_IN_BODY)).status_code == 200

    client = await client_for()
    resp = await client.post("/api/auth/signIn", json={**SIGN_IN_BODY, "lastName": "Hijacked", "password": "wrong-password"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "BAD_REQUEST"
    assert "session" not in client.cookies

    async with database.session_factory()() as session:
        user = (await session.execute(select(User).where(User.open_id == "oidc-rana"))).scalars().one()
    assert user.last_name == "Haddad"


async def test_sign_in_with_owner_open_id_is_admin(client_for):
    resp = await (await client_for()).post(
        "/api/auth/signIn", json={**SIGN_IN_BODY, "openId": "owner-open-id", "email": "owner@school.edu"}
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "ADMIN"
