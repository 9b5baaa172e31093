"""End-to-end API tests: FastAPI app, signed session cookie, and in-memory SQLite."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete

from booker.cache import CacheClient, get_cache_client
from booker.db.connection import get_db
from booker.db.models import User
from booker.main import app
from booker.services.request_router import NOT_AUTHORIZED

CREDENTIALS = {"username": "alice", "password": "pw"}
BOOK = {
    "googleId": "g1",
    "title": "A",
    "authors": ["Ann"],
    "pageCount": 120,
    "categories": ["Fiction"],
    "thumbnail": "http://books.example/g1.jpg",
    "previewLink": "http://books.example/g1",
    "description": "About A",
}


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncIterator[AsyncClient]:
    async def _override_db():
        async with session_factory() as db_session:
            try:
                yield db_session
                await db_session.commit()
            except Exception:
                await db_session.rollback()
                raise

    async def _override_cache() -> CacheClient:
        return CacheClient(None)

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_cache_client] = _override_cache
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


async def _signup(client: AsyncClient, credentials: dict[str, str] = CREDENTIALS):
    return await client.post("/api/auth/signup", json=credentials)


@pytest.mark.asyncio
async def test_health_endpoint_sets_request_id(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_signup_redirects_and_starts_a_session(client):
    response = await _signup(client)

    assert response.status_code == 302
    assert response.headers["location"] == "/search"

    status = await client.get("/api/session")
    assert status.json()["isLoggedIn"] is True
    assert status.json()["user"]["username"] == "alice"


@pytest.mark.asyncio
async def test_duplicate_signup_reports_conflict(client):
    await _signup(client)
    client.cookies.clear()

    response = await _signup(client, {"username": "alice", "password": "other"})

    assert response.status_code == 400
    assert response.json() == {"error": "Error inserting User"}


@pytest.mark.asyncio
async def test_login_errors_carry_literal_messages(client):
    await _signup(client)
    await client.post("/api/auth/logout")

    missing = await client.post("/api/auth/login", json={"username": "alice"})
    unknown = await client.post(
        "/api/auth/login", json={"username": "zed", "password": "pw"}
    )
    wrong = await client.post(
        "/api/auth/login", json={"username": "alice", "password": "nope"}
    )

    assert missing.status_code == 400
    assert missing.json() == {"error": "Must include username and password"}
    assert unknown.json() == {"error": "User not found"}
    assert wrong.json() == {"error": "Password is incorrect"}
    status = await client.get("/api/session")
    assert status.json() == {"isLoggedIn": False, "user": None}


@pytest.mark.asyncio
async def test_login_then_logout(client):
    await _signup(client)
    client.cookies.clear()

    login = await client.post("/api/auth/login", json=CREDENTIALS)
    assert login.status_code == 200
    assert login.content == b""
    assert (await client.get("/api/session")).json()["isLoggedIn"] is True

    logout = await client.post("/api/auth/logout")
    assert logout.status_code == 200
    assert (await client.get("/api/session")).json()["isLoggedIn"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("GET", "/api/auth/login"),
        ("PUT", "/api/auth/signup"),
        ("POST", "/api/auth/register"),
        ("HEAD", "/api/auth/login"),
        ("OPTIONS", "/api/auth/signup"),
    ],
)
async def test_unknown_auth_requests_are_404_without_body(client, method, path):
    response = await client.request(method, path, json=CREDENTIALS)

    assert response.status_code == 404
    assert response.content == b""


@pytest.mark.asyncio
async def test_favorites_require_a_session(client):
    add = await client.post("/api/book", json=BOOK)
    listing = await client.get("/api/favorites")

    assert add.status_code == 401
    assert add.json() == {"error": NOT_AUTHORIZED}
    assert listing.status_code == 401


@pytest.mark.asyncio
async def test_add_is_idempotent_and_remove_is_forgiving(client):
    await _signup(client)

    first = await client.post("/api/book", json=BOOK)
    second = await client.post("/api/book", json=BOOK)
    assert first.status_code == second.status_code == 200
    assert first.json() == BOOK

    listing = (await client.get("/api/favorites")).json()
    assert len(listing) == 1
    assert listing[0]["googleId"] == "g1"
    assert listing[0]["pageCount"] == 120

    lookup = (await client.get("/api/favorites/g1")).json()
    assert lookup["favorite"]["id"] == listing[0]["id"]
    assert (await client.get("/api/favorites/g2")).json() == {"favorite": None}

    missing = await client.request("DELETE", "/api/book", json={"id": "missing-id"})
    assert missing.status_code == 200
    assert missing.json() == {"id": "missing-id"}

    removed = await client.request("DELETE", "/api/book", json={"id": listing[0]["id"]})
    assert removed.status_code == 200
    assert (await client.get("/api/favorites")).json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["HEAD", "OPTIONS"])
async def test_anonymous_head_and_options_on_book_are_unauthorized(client, method):
    response = await client.request(method, "/api/book")

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "HEAD", "PUT", "PATCH", "OPTIONS"])
async def test_unsupported_book_method_is_404(client, method):
    await _signup(client)

    response = await client.request(method, "/api/book", json=BOOK)

    assert response.status_code == 404
    assert response.content == b""


@pytest.mark.asyncio
async def test_invalid_book_payload_is_a_bad_request(client):
    await _signup(client)

    response = await client.post("/api/book", json={"title": "missing id"})

    assert response.status_code == 400
    assert "googleId" in response.json()["error"]


@pytest.mark.asyncio
async def test_stale_session_is_destroyed(client, session_factory):
    await _signup(client)
    async with session_factory() as db_session:
        await db_session.execute(delete(User))
        await db_session.commit()

    response = await client.post("/api/book", json=BOOK)

    assert response.status_code == 401
    assert response.json() == {"error": NOT_AUTHORIZED}
    assert (await client.get("/api/session")).json()["isLoggedIn"] is False


@pytest.mark.asyncio
async def test_stale_session_is_destroyed_on_lookup(client, session_factory):
    await _signup(client)
    async with session_factory() as db_session:
        await db_session.execute(delete(User))
        await db_session.commit()

    response = await client.get("/api/favorites/g1")

    assert response.status_code == 401
    assert response.json() == {"error": NOT_AUTHORIZED}
    assert (await client.get("/api/session")).json()["isLoggedIn"] is False


@pytest.mark.asyncio
async def test_inbound_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "trace-42"})

    assert response.headers["X-Request-ID"] == "trace-42"
