"""
AsyncOpenstats / Openstats: main SDK clients.
"""

import asyncio
from typing import Any, Mapping, Optional

import httpx

from openstats.achievements import AchievementsAPI
from openstats.controller import SessionController
from openstats.errors import InvalidOperationError, InvalidStateError
from openstats.models.session import GameSession
from openstats.models.user import User
from openstats.state import SessionPhase, SessionSlot
from openstats.transport.http import DEFAULT_API_URL, HttpClient
from openstats.users import ME, UsersAPI


class AsyncOpenstats:
    """Async Openstats client (primary).

    Queries (`get_user`, `get_achievement_progress`) need only the game rid and
    game token. Starting a session, sending heartbeats and adding progress also
    need the user rid; `get_user()` with the default `@me` tells you the rid of
    the user who owns the game token.

    Session state lives in a SessionSlot shared by every client in the process,
    so only one session operation runs at a time. Pass `slot=SessionSlot()` to
    give a client its own.
    """

    def __init__(
        self,
        game_rid: str,
        game_token: str,
        user_rid: str = "",
        api_url: str = DEFAULT_API_URL,
        *,
        slot: Optional[SessionSlot] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._game_rid = game_rid
        self._game_token = game_token
        self.user_rid = user_rid

        self.http = HttpClient(base_url=api_url, timeout=timeout, transport=transport)
        self.users = UsersAPI(self.http)
        self.achievements = AchievementsAPI(self.http)
        self.controller = SessionController(self.http, slot)

    async def __aenter__(self) -> "AsyncOpenstats":
        return self

    async def __aexit__(self, *_exc: Any) -> None:
        await self.close()

    @property
    def game_rid(self) -> str:
        return self._game_rid

    @property
    def game_token(self) -> str:
        return self._game_token

    @property
    def api_url(self) -> str:
        return self.http.base_url

    @property
    def session(self) -> Optional[GameSession]:
        """The latest session snapshot, created by start_session()."""
        return self.controller.session

    @property
    def phase(self) -> SessionPhase:
        return self.controller.phase

    @property
    def can_query(self) -> bool:
        return bool(self._game_rid) and bool(self._game_token)

    @property
    def can_start_session(self) -> bool:
        return self.can_query and bool(self.user_rid) and self.phase == SessionPhase.NONE

    @property
    def can_send_heartbeat(self) -> bool:
        return (
            self.can_query and bool(self.user_rid)
            and self.session is not None and self.phase == SessionPhase.READY
        )

    async def get_user(self, user_rid: str = ME) -> User:
        """Fetch a user. With the default `@me`, the user who owns the game token."""
        self._ensure_can_query()
        return await self.users.get(user_rid, self._game_token)

    async def get_achievement_progress(self, user_rid: str) -> dict[str, int]:
        """Fetch a user's achievement progress. Missing slugs have progress 0."""
        self._ensure_can_query()
        return await self.achievements.get_progress(user_rid, self._game_token)

    async def add_achievement_progress(self, new_progress: Mapping[str, int]) -> dict[str, int]:
        """Add progress for the session's user and return the user's full progress map.

        The server ignores values that would lower progress or exceed an
        achievement's target.
        """
        self._ensure_can_use_session()
        token = self.controller.session_token
        if self.phase < SessionPhase.READY or not token:
            raise InvalidStateError("Cannot add achievement progress without a valid game session")
        return await self.achievements.add_progress(self.user_rid, token, new_progress)

    async def start_session(self) -> GameSession:
        """Start a game session.

        Heartbeats must follow roughly every `session.next_pulse_after`
        seconds, either from begin_polling() or manual send_heartbeat() calls.
        """
        self._ensure_can_use_session()
        return await self.controller.start_session(self._game_token, self._game_rid, self.user_rid)

    async def send_heartbeat(self) -> GameSession:
        """Send one heartbeat for the current session and return the refreshed snapshot."""
        self._ensure_can_use_session()
        return await self.controller.send_heartbeat()

    async def begin_polling(self, stop: Optional[asyncio.Event] = None) -> None:
        """Keep the current session alive until `stop` is set or the task is cancelled."""
        self._ensure_can_use_session()
        if self.session is None or self.phase == SessionPhase.NONE:
            raise InvalidStateError("Cannot poll without a valid game session")
        await self.controller.begin_polling(stop)

    async def close(self) -> None:
        await self.http.close()

    def _ensure_can_query(self) -> None:
        if not self.can_query:
            raise InvalidOperationError("Cannot query without a game rid and game token")

    def _ensure_can_use_session(self) -> None:
        if not self.can_query or not self.user_rid:
            raise InvalidOperationError("Session operations need a game rid, game token and user rid")


class Openstats:
    """Sync wrapper around AsyncOpenstats. Runs the event loop internally.

    Polling is only available on AsyncOpenstats.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        self._async = AsyncOpenstats(*args, **kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    def __enter__(self) -> "Openstats":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    @property
    def user_rid(self) -> str:
        return self._async.user_rid

    @user_rid.setter
    def user_rid(self, value: str) -> None:
        self._async.user_rid = value

    @property
    def game_rid(self) -> str:
        return self._async.game_rid

    @property
    def api_url(self) -> str:
        return self._async.api_url

    @property
    def session(self) -> Optional[GameSession]:
        return self._async.session

    @property
    def phase(self) -> SessionPhase:
        return self._async.phase

    @property
    def can_query(self) -> bool:
        return self._async.can_query

    @property
    def can_start_session(self) -> bool:
        return self._async.can_start_session

    @property
    def can_send_heartbeat(self) -> bool:
        return self._async.can_send_heartbeat

    def get_user(self, user_rid: str = ME) -> User:
        return self._run(self._async.get_user(user_rid))

    def get_achievement_progress(self, user_rid: str) -> dict[str, int]:
        return self._run(self._async.get_achievement_progress(user_rid))

    def add_achievement_progress(self, new_progress: Mapping[str, int]) -> dict[str, int]:
        return self._run(self._async.add_achievement_progress(new_progress))

    def start_session(self) -> GameSession:
        return self._run(self._async.start_session())

    def send_heartbeat(self) -> GameSession:
        return self._run(self._async.send_heartbeat())

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
