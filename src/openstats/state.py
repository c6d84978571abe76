"""
Session slot: phase, snapshot and token of the current game session.

Session-affecting calls (start, heartbeat) claim the slot with a non-blocking,
non-reentrant lock. A claim that finds the lock held, or the phase different
from the one the call needs, fails at once with InvalidStateError and changes
nothing. A claimed call that raises for any reason, cancellation included,
leaves the phase at NONE.

One slot is shared by every controller in the process unless a controller is
given its own.
"""

import enum
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from openstats.errors import InvalidStateError
from openstats.models.session import GameSession


class SessionPhase(enum.IntEnum):
    NONE = 0
    STARTING = 1
    READY = 2
    PULSING = 3


class SessionSlot:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._phase = SessionPhase.NONE
        self._session: Optional[GameSession] = None
        self._token: Optional[str] = None

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def session(self) -> Optional[GameSession]:
        return self._session

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def claim(self, required: SessionPhase, pending: SessionPhase, message: str) -> Iterator["SessionSlot"]:
        """Move from `required` to `pending` for the duration of the block."""
        if not self._lock.acquire(blocking=False):
            raise InvalidStateError(message)
        try:
            if self._phase != required:
                raise InvalidStateError(message)
            self._phase = pending
            try:
                yield self
            except BaseException:
                self._phase = SessionPhase.NONE
                raise
            if self._phase == pending:
                # block returned without committing
                self._phase = SessionPhase.NONE
        finally:
            self._lock.release()

    def commit(self, session: GameSession, token: str) -> None:
        """Publish a new snapshot and token and mark the session ready. Only valid inside claim()."""
        self._session = session
        self._token = token
        self._phase = SessionPhase.READY


_default_slot = SessionSlot()


def default_slot() -> SessionSlot:
    """The process-wide slot used by controllers that aren't given one."""
    return _default_slot
