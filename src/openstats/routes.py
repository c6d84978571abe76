"""
Request paths for the Openstats API, relative to the API URL.
"""

from urllib.parse import quote


def _segment(value: str) -> str:
    # Encode each segment on its own so a rid containing "/" can't add path levels.
    return quote(value, safe="")


def user_path(user_rid: str) -> str:
    return f"users/v1/{_segment(user_rid)}"


def achievements_path(user_rid: str) -> str:
    return f"{user_path(user_rid)}/achievements"


def sessions_path(user_rid: str, game_rid: str) -> str:
    return f"{user_path(user_rid)}/games/{_segment(game_rid)}/sessions"


def heartbeat_path(user_rid: str, game_rid: str, session_rid: str) -> str:
    return f"{sessions_path(user_rid, game_rid)}/{_segment(session_rid)}/heartbeat"
