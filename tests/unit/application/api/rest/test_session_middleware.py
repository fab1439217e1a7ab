"""ServerSessionMiddleware with an in-memory store."""

import asyncio
import copy
from datetime import datetime

import httpx
import pytest
from itsdangerous import TimestampSigner
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from oidclogin.application.api.rest.session import ServerSessionMiddleware
from oidclogin.config import SessionConfig
from oidclogin.domain.auth.port.session_store import SessionStore

SECRET = "session-middleware-secret"
COOKIE = "sid"


class MemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self.rows: dict[str, dict] = {}
        self.expires: dict[str, datetime] = {}

    async def load(self, session_id):
        data = self.rows.get(session_id)
        return copy.deepcopy(data) if data is not None else None

    async def save(self, session_id, data, expires_at):
        self.rows[session_id] = copy.deepcopy(data)
        self.expires[session_id] = expires_at

    async def delete(self, session_id):
        self.rows.pop(session_id, None)

    async def purge_expired(self):
        return 0


class StubContainer:
    def __init__(self, store: SessionStore) -> None:
        self.store = store

    async def get(self, dependency):
        assert dependency is SessionStore
        return self.store


async def read(request: Request):
    return JSONResponse(dict(request.session))


async def put(request: Request):
    request.session.update(request.query_params)
    return JSONResponse(dict(request.session))


async def clear(request: Request):
    request.session.clear()
    return JSONResponse({})


async def increment(request: Request):
    count = request.session.get("count", 0)
    await asyncio.sleep(0.01)
    request.session["count"] = count + 1
    return JSONResponse(request.session)


async def fail(request: Request):
    request.session["touched"] = "yes"
    raise RuntimeError("boom")


def make_app(store: SessionStore) -> Starlette:
    config = SessionConfig(secret_key=SECRET, cookie_name=COOKIE, max_age=600)
    app = Starlette(
        routes=[
            Route("/read", read),
            Route("/put", put, methods=["POST"]),
            Route("/clear", clear, methods=["POST"]),
            Route("/increment", increment, methods=["POST"]),
            Route("/fail", fail),
        ],
        middleware=[Middleware(ServerSessionMiddleware, config=config, rotate_on=("login",))],
    )
    app.state.dishka_container = StubContainer(store)
    return app


def cookie_for(session_id: str) -> str:
    return TimestampSigner(SECRET).sign(session_id.encode()).decode()


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def client(store):
    with TestClient(make_app(store)) as test_client:
        yield test_client


class TestServerSession:
    def test_new_session_stores_data_server_side(self, client, store):
        response = client.post("/put", params={"state": "abc"})

        [session_id] = store.rows
        assert store.rows[session_id] == {"state": "abc"}
        assert response.cookies[COOKIE] == cookie_for(session_id)
        assert "abc" not in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"]

    def test_anonymous_read_creates_nothing(self, client, store):
        response = client.get("/read")

        assert response.json() == {}
        assert "set-cookie" not in response.headers
        assert store.rows == {}

    def test_changes_saved_in_place(self, client, store):
        client.post("/put", params={"state": "abc"})
        [session_id] = store.rows

        response = client.post("/put", params={"nonce": "n"})

        assert "set-cookie" not in response.headers
        assert store.rows == {session_id: {"state": "abc", "nonce": "n"}}
        assert client.get("/read").json() == {"state": "abc", "nonce": "n"}

    def test_login_change_rotates_id(self, client, store):
        client.post("/put", params={"state": "abc"})
        [old_id] = store.rows

        response = client.post("/put", params={"login": "alice"})

        [new_id] = store.rows
        assert new_id != old_id
        assert response.cookies[COOKIE] == cookie_for(new_id)
        assert store.rows[new_id] == {"state": "abc", "login": "alice"}

    def test_cleared_session_is_deleted(self, client, store):
        client.post("/put", params={"login": "alice"})

        response = client.post("/clear")

        assert store.rows == {}
        assert "expires=Thu, 01 Jan 1970" in response.headers["set-cookie"]

    def test_unknown_id_starts_fresh(self, client, store):
        client.cookies.set(COOKIE, cookie_for("gone"))

        assert client.get("/read").json() == {}

        client.post("/put", params={"state": "abc"})
        assert "gone" not in store.rows
        assert len(store.rows) == 1

    def test_bad_signature_ignored(self, client, store):
        store.rows["s1"] = {"login": "alice"}
        client.cookies.set(COOKIE, "s1.forged.signature")

        assert client.get("/read").json() == {}

    def test_replayed_cookie_sees_server_state(self, client, store):
        client.post("/put", params={"state": "abc"})
        cookie = client.cookies.get(COOKIE)
        client.post("/put", params={"state": ""})

        client.cookies.clear()
        client.cookies.set(COOKIE, cookie)

        assert client.get("/read").json() == {"state": ""}

    def test_failed_request_keeps_change_to_existing_session(self, client, store):
        client.post("/put", params={"state": "abc"})
        [session_id] = store.rows

        with pytest.raises(RuntimeError):
            client.get("/fail")

        assert store.rows[session_id] == {"state": "abc", "touched": "yes"}

    def test_failed_request_creates_no_session(self, client, store):
        with pytest.raises(RuntimeError):
            client.get("/fail")

        assert store.rows == {}


@pytest.mark.asyncio
async def test_requests_for_one_session_run_one_at_a_time(store):
    store.rows["s1"] = {"count": 0}
    transport = httpx.ASGITransport(app=make_app(store))
    headers = {"cookie": f"{COOKIE}={cookie_for('s1')}"}

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        await asyncio.gather(
            *(client.post("/increment", headers=headers) for _ in range(5))
        )

    assert store.rows["s1"] == {"count": 5}
