"""Server-side sessions for the ASGI app."""

import asyncio
import copy
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from weakref import WeakValueDictionary

from itsdangerous import BadSignature, TimestampSigner
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Send
from starlette.types import Scope as ASGIScope

from oidclogin.config import SessionConfig
from oidclogin.domain.auth.port.session_store import SessionStore

logger = logging.getLogger(__name__)

SESSION_ID_BYTES = 32


@dataclass(frozen=True)
class _Commit:
    """What to write back once the request is done."""

    save_id: str | None = None
    delete_id: str | None = None
    cookie: str | None = None  # Set-Cookie header value


class ServerSessionMiddleware:
    """ASGI middleware that keeps session data in a SessionStore.

    The cookie carries only a signed, opaque session id. `scope["session"]` is a
    plain dict, so `request.session` works as with Starlette's SessionMiddleware,
    but anything removed from it (the anti-replay state) is removed on the
    server and cannot be brought back by replaying an old cookie.

    - Requests for one session id are handled one at a time within the process
    - The id is replaced whenever a key in `rotate_on` changes (sign-in)
    - An emptied session is deleted and its cookie expired
    - Changes are written after the inner app returns, once the request's unit
      of work has committed

    The store is resolved from the app's dishka container.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: SessionConfig,
        rotate_on: tuple[str, ...] = (),
    ) -> None:
        self.app = app
        self.config = config
        self.rotate_on = rotate_on
        self.signer = TimestampSigner(config.secret_key)
        self.security_flags = f"httponly; samesite={config.same_site}"
        if config.https_only:
            self.security_flags += "; secure"
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    async def __call__(self, scope: ASGIScope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        store = await scope["app"].state.dishka_container.get(SessionStore)
        session_id = self._unsign(HTTPConnection(scope).cookies.get(self.config.cookie_name))
        if session_id is None:
            return await self._handle(scope, receive, send, store, None)

        async with self._lock_for(session_id):
            return await self._handle(scope, receive, send, store, session_id)

    async def _handle(
        self,
        scope: ASGIScope,
        receive: Receive,
        send: Send,
        store: SessionStore,
        session_id: str | None,
    ) -> None:
        data = await store.load(session_id) if session_id else None
        if data is None:
            session_id = None  # Unknown or expired: start over
        session: dict[str, Any] = data or {}
        original = copy.deepcopy(session)
        scope["session"] = session
        commit: _Commit | None = None

        async def send_wrapper(message: Message) -> None:
            nonlocal commit
            if message["type"] == "http.response.start":
                commit = self._plan(session_id, original, session, can_set_cookie=True)
                if commit.cookie is not None:
                    MutableHeaders(scope=message).append("Set-Cookie", commit.cookie)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            if commit is None:
                # No response was started; only in-place changes can be kept
                commit = self._plan(session_id, original, session, can_set_cookie=False)
            await self._persist(store, commit, session)

    def _plan(
        self,
        session_id: str | None,
        original: dict[str, Any],
        session: dict[str, Any],
        can_set_cookie: bool,
    ) -> _Commit:
        if session == original:
            return _Commit()

        if not session:
            if session_id is None:
                return _Commit()
            return _Commit(delete_id=session_id, cookie=self._expired_cookie())

        rotate = session_id is not None and any(
            original.get(key) != session.get(key) for key in self.rotate_on
        )
        if session_id is not None and not rotate:
            return _Commit(save_id=session_id)
        if not can_set_cookie:
            return _Commit(delete_id=session_id)

        new_id = secrets.token_urlsafe(SESSION_ID_BYTES)
        return _Commit(save_id=new_id, delete_id=session_id, cookie=self._cookie(new_id))

    async def _persist(self, store: SessionStore, commit: _Commit, session: dict[str, Any]) -> None:
        if commit.delete_id is not None:
            await store.delete(commit.delete_id)
        if commit.save_id is not None:
            expires_at = datetime.now(UTC) + timedelta(seconds=self.config.max_age)
            await store.save(commit.save_id, session, expires_at)

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def _unsign(self, cookie: str | None) -> str | None:
        if not cookie:
            return None
        try:
            return self.signer.unsign(cookie.encode(), max_age=self.config.max_age).decode()
        except BadSignature:
            logger.debug("Ignoring session cookie with bad or expired signature")
            return None

    def _cookie(self, session_id: str) -> str:
        value = self.signer.sign(session_id.encode()).decode()
        return (
            f"{self.config.cookie_name}={value}; path=/; "
            f"Max-Age={self.config.max_age}; {self.security_flags}"
        )

    def _expired_cookie(self) -> str:
        return (
            f"{self.config.cookie_name}=null; path=/; "
            f"expires=Thu, 01 Jan 1970 00:00:00 GMT; {self.security_flags}"
        )
