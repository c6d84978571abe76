"""
REST HTTP client for the Openstats API.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from openstats.errors import ApiError
from openstats.models.problem import ProblemDetails

DEFAULT_API_URL = "https://localhost:3000"
SESSION_TOKEN_HEADER = "X-Game-Session-Token"
USER_AGENT = "openstats-sdk/0.1.0"

logger = logging.getLogger(__name__)


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _auth_headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _problem(resp: httpx.Response) -> ProblemDetails:
        """Parse a problem document, or build one from the status line if the body isn't one."""
        try:
            return ProblemDetails.model_validate_json(resp.content)
        except ValidationError:
            return ProblemDetails(
                title=resp.reason_phrase or None,
                detail=resp.text[:200] or None,
                status=resp.status_code,
            )

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str,
        body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send a request and return the response, raising ApiError on a non-success status."""
        logger.debug("%s %s", method, path)
        resp = await self._client.request(method, path, json=body, headers=self._auth_headers(token))
        if not resp.is_success:
            problem = self._problem(resp)
            logger.warning("%s %s failed with HTTP %d (%s)", method, path, resp.status_code, problem.type)
            raise ApiError(problem, resp.status_code)
        return resp

    async def get(self, path: str, token: str) -> Any:
        resp = await self.request("GET", path, token=token)
        return resp.json()

    async def post(self, path: str, token: str, body: Optional[Any] = None) -> Any:
        resp = await self.request("POST", path, token=token, body=body)
        return resp.json()

    async def close(self) -> None:
        await self._client.aclose()
