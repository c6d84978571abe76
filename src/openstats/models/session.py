"""
Game session snapshot and achievement progress models.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from openstats.models.user import API_MODEL_CONFIG, Game, User


class GameSession(BaseModel):
    """Snapshot of a live session, replaced wholesale on every accepted heartbeat."""

    model_config = ConfigDict(**API_MODEL_CONFIG, frozen=True)

    rid: str
    last_pulse: datetime
    next_pulse_after: int  # seconds
    game: Game
    user: User


class ProgressResponse(BaseModel):
    """Body of the achievement progress endpoints: `{"progress": {slug: value}}`."""

    model_config = API_MODEL_CONFIG

    progress: dict[str, int] = {}
