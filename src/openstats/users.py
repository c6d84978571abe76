"""
Users REST API.
"""

from openstats import routes
from openstats.models.user import User
from openstats.transport.http import HttpClient

ME = "@me"


class UsersAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def get(self, user_rid: str, game_token: str) -> User:
        """Get a user. `@me` resolves to the owner of the game token."""
        data = await self._http.get(routes.user_path(user_rid), game_token)
        return User.model_validate(data)
