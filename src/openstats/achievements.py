"""
Achievement progress REST API.

Progress maps only list achievements the user has progress in; a slug that
isn't in the map has progress 0.
"""

from __future__ import annotations

from typing import Mapping

from openstats import routes
from openstats.models.session import ProgressResponse
from openstats.transport.http import HttpClient


class AchievementsAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def get_progress(self, user_rid: str, game_token: str) -> dict[str, int]:
        """Get a user's achievement progress, authorized by the game token."""
        data = await self._http.get(routes.achievements_path(user_rid), game_token)
        return ProgressResponse.model_validate(data).progress

    async def add_progress(self, user_rid: str, session_token: str, new_progress: Mapping[str, int]) -> dict[str, int]:
        """Submit new progress values, authorized by the session token.

        The server ignores values below the current progress or above the
        achievement's target, so the returned map can differ from the one sent.
        """
        data = await self._http.post(routes.achievements_path(user_rid), session_token, dict(new_progress))
        return ProgressResponse.model_validate(data).progress
