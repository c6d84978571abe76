"""
Session controller: starts game sessions and keeps them alive.

Phases: NONE -> STARTING -> READY -> PULSING -> READY -> ...
Any failure while STARTING or PULSING drops back to NONE and the session has
to be started again.
"""

import asyncio
import logging
from typing import Optional

from openstats import routes
from openstats.errors import InvalidStateError, MissingSessionTokenError
from openstats.models.session import GameSession
from openstats.state import SessionPhase, SessionSlot, default_slot
from openstats.transport.http import SESSION_TOKEN_HEADER, HttpClient

logger = logging.getLogger(__name__)


class SessionController:
    def __init__(self, http: HttpClient, slot: Optional[SessionSlot] = None):
        self._http = http
        self._slot = slot or default_slot()

    @property
    def slot(self) -> SessionSlot:
        return self._slot

    @property
    def phase(self) -> SessionPhase:
        return self._slot.phase

    @property
    def session(self) -> Optional[GameSession]:
        return self._slot.session

    @property
    def session_token(self) -> Optional[str]:
        return self._slot.token

    async def start_session(self, game_token: str, game_rid: str, user_rid: str) -> GameSession:
        """Open a session for `user_rid` in `game_rid`, authorized by the game token."""
        with self._slot.claim(
            SessionPhase.NONE,
            SessionPhase.STARTING,
            "Cannot start a session while another session operation is in progress or a session exists",
        ) as slot:
            try:
                resp = await self._http.request(
                    "POST", routes.sessions_path(user_rid, game_rid), token=game_token,
                )
                token = (resp.headers.get(SESSION_TOKEN_HEADER) or "").strip()
                if not token:
                    raise MissingSessionTokenError()
                session = GameSession.model_validate_json(resp.content)
            except BaseException as e:
                logger.warning("Session start failed, phase reset to NONE: %r", e)
                raise
            slot.commit(session, token)

        logger.info("Started session %s for user %s in game %s", session.rid, user_rid, game_rid)
        return session

    async def send_heartbeat(self) -> GameSession:
        """Extend the current session. Rotates the session token if the server sends a new one."""
        with self._slot.claim(
            SessionPhase.READY,
            SessionPhase.PULSING,
            "Cannot send heartbeat while another session operation is in progress or no session exists",
        ) as slot:
            current = slot.session
            token = slot.token
            if current is None or token is None:
                raise InvalidStateError("Cannot send heartbeat without a game session")
            try:
                resp = await self._http.request(
                    "POST",
                    routes.heartbeat_path(current.user.rid, current.game.rid, current.rid),
                    token=token,
                )
                rotated = (resp.headers.get(SESSION_TOKEN_HEADER) or "").strip()
                session = GameSession.model_validate_json(resp.content)
            except BaseException as e:
                logger.warning("Heartbeat for session %s failed, phase reset to NONE: %r", current.rid, e)
                raise
            slot.commit(session, rotated or token)

        logger.debug("Heartbeat accepted for session %s, next in %ss", session.rid, session.next_pulse_after)
        return session

    async def begin_polling(self, stop: Optional[asyncio.Event] = None) -> None:
        """Send heartbeats forever, sleeping `next_pulse_after` seconds between them.

        Returns when `stop` is set. InvalidStateError from a heartbeat means a
        manual heartbeat got there first, so the loop just waits for the next
        cycle. Any other error ends the loop.
        """
        while stop is None or not stop.is_set():
            session = self._slot.session
            if session is None:
                raise InvalidStateError("Cannot poll without a game session")
            if await _pause(session.next_pulse_after, stop):
                break
            try:
                await self.send_heartbeat()
            except InvalidStateError:
                logger.debug("Skipped heartbeat, session busy or not ready")
        logger.debug("Polling stopped")


async def _pause(seconds: float, stop: Optional[asyncio.Event]) -> bool:
    """Sleep for `seconds`. Returns True if `stop` was set before the time ran out."""
    if stop is None:
        await asyncio.sleep(seconds)
        return False
    try:
        await asyncio.wait_for(stop.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return False
    return True
