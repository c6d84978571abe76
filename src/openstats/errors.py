"""
Openstats error types.
"""

from typing import Any, Optional

from openstats.models.problem import ProblemDetails


class OpenstatsError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class InvalidOperationError(OpenstatsError):
    """The client is missing configuration required for the call (game rid, game token, user rid)."""

    def __init__(self, message: str):
        super().__init__("invalid_operation", message)


class InvalidStateError(OpenstatsError):
    """A session operation was attempted in the wrong phase, or while another one was in flight."""

    def __init__(self, message: str):
        super().__init__("invalid_state", message)


class ApiError(OpenstatsError):
    """The API answered with a non-success status. `problem` holds the parsed problem document."""

    def __init__(self, problem: ProblemDetails, status_code: int):
        super().__init__("api_error", _describe(problem, status_code), details=problem.model_dump())
        self.problem = problem
        self.status_code = status_code

    @property
    def status(self) -> int:
        return self.problem.status if self.problem.status is not None else self.status_code


class MissingSessionTokenError(OpenstatsError):
    def __init__(self) -> None:
        super().__init__("missing_session_token", "No session token was returned from the server")


def _describe(problem: ProblemDetails, status_code: int) -> str:
    status = problem.status if problem.status is not None else status_code
    text = problem.title or problem.type
    if problem.detail:
        text = f"{text}: {problem.detail}"
    return f"HTTP {status}: {text}"
