"""
openstats: Openstats SDK for Python.

Achievement progress and game sessions for the Openstats API.
REST client with a heartbeat-driven session lifecycle.
"""

from openstats.client import Openstats, AsyncOpenstats
from openstats.controller import SessionController
from openstats.state import SessionPhase, SessionSlot
from openstats.errors import (
    OpenstatsError,
    InvalidOperationError,
    InvalidStateError,
    ApiError,
    MissingSessionTokenError,
)
from openstats.models.user import Game, User
from openstats.models.session import GameSession
from openstats.models.problem import ProblemDetails, ErrorDetail

__version__ = "0.1.0"
__all__ = [
    "Openstats",
    "AsyncOpenstats",
    "SessionController",
    "SessionPhase",
    "SessionSlot",
    "OpenstatsError",
    "InvalidOperationError",
    "InvalidStateError",
    "ApiError",
    "MissingSessionTokenError",
    "Game",
    "User",
    "GameSession",
    "ProblemDetails",
    "ErrorDetail",
]
