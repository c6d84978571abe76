"""Shared fixtures: an in-memory Openstats API served through httpx.MockTransport.

Fixtures:
    server: FakeOpenstatsServer with one game, one user and a few achievements
    slot: a fresh SessionSlot, so tests don't share the process-wide one
    make_client: factory for AsyncOpenstats clients wired to `server`
    client: a ready-to-use client for the default user
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio

from openstats import AsyncOpenstats, SessionSlot

API_URL = "https://openstats.test"
EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)

UNAUTHORIZED = {
    "type": "https://openstats.dev/problems/unauthorized",
    "title": "Unauthorized",
    "status": 401,
}


class FakeOpenstatsServer:
    """Implements the five Openstats endpoints the SDK talks to.

    Progress writes follow the real server's rules: a value lower than the
    current progress or higher than the achievement's maximum is ignored.
    """

    def __init__(self) -> None:
        self.game_rid = "game-1"
        self.game_token = "game-token"
        self.user_rid = "user-1"
        self.next_pulse_after = 30
        self.maxima = {"kills": 10, "levels": 5, "x": 100}
        self.progress: dict[str, dict[str, int]] = {self.user_rid: {}}

        self.issue_session_token = True
        self.session_token_override: Optional[str] = None
        self.rotate_tokens = False

        self.requests: list[httpx.Request] = []
        self.sessions_started = 0
        self.heartbeats = 0

        self._session_tokens: dict[str, str] = {}  # token -> session rid
        self._token_seq = 0
        self._failures: dict[str, tuple[int, Any, dict[str, str]]] = {}
        self._errors: dict[str, Exception] = {}
        self._gates: dict[str, asyncio.Event] = {}
        self._arrivals: dict[str, asyncio.Event] = {}

    # -- test controls -----------------------------------------------------

    def fail(self, op: str, status: int, body: Any, headers: Optional[dict[str, str]] = None) -> None:
        """Answer the next `op` request with `status` and `body` (dict → JSON, str → raw)."""
        self._failures[op] = (status, body, headers or {})

    def raise_on(self, op: str, exc: Exception) -> None:
        """Raise `exc` from the transport on the next `op` request."""
        self._errors[op] = exc

    def hold(self, op: str) -> asyncio.Event:
        """Park `op` requests until release(op). Returns an event set when one arrives."""
        self._gates[op] = asyncio.Event()
        self._arrivals[op] = asyncio.Event()
        return self._arrivals[op]

    def release(self, op: str) -> None:
        gate = self._gates.pop(op)
        self._arrivals.pop(op, None)
        gate.set()

    # -- payloads ----------------------------------------------------------

    def user_json(self, rid: str) -> dict[str, Any]:
        return {
            "rid": rid,
            "createdAt": EPOCH.isoformat(),
            "slug": f"player-{rid}",
            "displayName": None,
            "avatarUrl": None,
            "bioText": None,
            "karma": 12,
        }

    def game_json(self) -> dict[str, Any]:
        return {"rid": self.game_rid, "createdAt": EPOCH.isoformat(), "slug": "space-game", "publisher": "x"}

    def session_json(self, session_rid: str, user_rid: str) -> dict[str, Any]:
        return {
            "rid": session_rid,
            "lastPulse": (EPOCH + timedelta(seconds=self.heartbeats)).isoformat(),
            "nextPulseAfter": self.next_pulse_after,
            "game": self.game_json(),
            "user": self.user_json(user_rid),
            "region": "eu",
        }

    def _new_token(self, session_rid: str) -> str:
        self._token_seq += 1
        token = f"session-token-{self._token_seq}"
        self._session_tokens[token] = session_rid
        return token

    # -- transport ---------------------------------------------------------

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        segments = [unquote(s) for s in request.url.raw_path.decode().lstrip("/").split("/")]
        if segments[:2] != ["users", "v1"] or len(segments) < 3:
            return httpx.Response(404, json={"type": "about:blank", "status": 404})

        bearer = request.headers.get("Authorization", "").removeprefix("Bearer ")
        user_rid = self.user_rid if segments[2] == "@me" else segments[2]
        rest = segments[3:]

        if request.method == "GET" and rest == []:
            op = "get_user"
        elif request.method == "GET" and rest == ["achievements"]:
            op = "get_progress"
        elif request.method == "POST" and rest == ["achievements"]:
            op = "add_progress"
        elif request.method == "POST" and len(rest) == 3 and rest[0] == "games" and rest[2] == "sessions":
            op = "start"
        elif request.method == "POST" and len(rest) == 5 and rest[::2] == ["games", "sessions", "heartbeat"]:
            op = "heartbeat"
        else:
            return httpx.Response(404, json={"type": "about:blank", "status": 404})

        if op in self._arrivals:
            self._arrivals[op].set()
        if op in self._gates:
            await self._gates[op].wait()

        if op in self._errors:
            raise self._errors.pop(op)
        if op in self._failures:
            status, body, headers = self._failures.pop(op)
            if isinstance(body, str):
                return httpx.Response(status, text=body, headers=headers)
            return httpx.Response(status, json=body, headers=headers)

        if op in ("get_user", "get_progress", "start"):
            if bearer != self.game_token:
                return httpx.Response(401, json=UNAUTHORIZED)
        elif bearer not in self._session_tokens:
            return httpx.Response(401, json=UNAUTHORIZED)

        if op == "get_user":
            return httpx.Response(200, json=self.user_json(user_rid))
        if op == "get_progress":
            return httpx.Response(200, json={"progress": dict(self.progress.get(user_rid, {}))})
        if op == "add_progress":
            return httpx.Response(200, json={"progress": self._add_progress(user_rid, request)})
        if op == "start":
            return self._start(user_rid)
        return self._heartbeat(user_rid, rest[3], bearer)

    def _add_progress(self, user_rid: str, request: httpx.Request) -> dict[str, int]:
        current = self.progress.setdefault(user_rid, {})
        for slug, value in json.loads(request.content).items():
            if slug not in self.maxima or value > self.maxima[slug]:
                continue
            if value < current.get(slug, 0):
                continue
            current[slug] = value
        return dict(current)

    def _start(self, user_rid: str) -> httpx.Response:
        self.sessions_started += 1
        session_rid = f"session-{self.sessions_started}"
        headers = {}
        if self.session_token_override is not None:
            headers["X-Game-Session-Token"] = self.session_token_override
        elif self.issue_session_token:
            headers["X-Game-Session-Token"] = self._new_token(session_rid)
        return httpx.Response(200, json=self.session_json(session_rid, user_rid), headers=headers)

    def _heartbeat(self, user_rid: str, session_rid: str, bearer: str) -> httpx.Response:
        if self._session_tokens[bearer] != session_rid:
            return httpx.Response(404, json={"type": "about:blank", "title": "Session not found", "status": 404})
        self.heartbeats += 1
        headers = {}
        if self.rotate_tokens:
            del self._session_tokens[bearer]
            headers["X-Game-Session-Token"] = self._new_token(session_rid)
        return httpx.Response(200, json=self.session_json(session_rid, user_rid), headers=headers)


async def wait_until(predicate, timeout: float = 5.0) -> None:
    """Poll `predicate` on the event loop until it's true."""

    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture
def server() -> FakeOpenstatsServer:
    return FakeOpenstatsServer()


@pytest.fixture
def slot() -> SessionSlot:
    return SessionSlot()


@pytest_asyncio.fixture
async def make_client(server, slot):
    """Returns a factory for clients wired to `server` and sharing `slot`."""
    clients: list[AsyncOpenstats] = []

    def _make(**overrides) -> AsyncOpenstats:
        kwargs = {
            "game_rid": server.game_rid,
            "game_token": server.game_token,
            "user_rid": server.user_rid,
            "api_url": API_URL,
            "slot": slot,
            "transport": httpx.MockTransport(server.handler),
        }
        kwargs.update(overrides)
        c = AsyncOpenstats(**kwargs)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        await c.close()


@pytest_asyncio.fixture
async def client(make_client) -> AsyncOpenstats:
    return make_client()
