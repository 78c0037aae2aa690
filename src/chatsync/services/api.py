"""HTTP adapter for the chat backend.

Wraps the four JSON endpoints (login, register, history, send). Every failure
(transport error, non-2xx status, undecodable or malformed body) is raised as
``ApiError``; callers never see ``httpx`` exceptions.
"""

import logging
from typing import Any, Dict, Tuple

import httpx

from ..errors import ApiError
from ..models import AuthMode, Message, parse_messages
from ..settings import Settings, get_settings

logger = logging.getLogger(__name__)

AUTH_PATHS = {
    AuthMode.LOGIN: "/api/login",
    AuthMode.REGISTER: "/api/register",
}
MESSAGES_PATH = "/api/messages"


def _bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _server_message(response: httpx.Response) -> str | None:
    """Extract ``{"error": "..."}`` from a failure body, if present."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return None


class ChatApiClient:
    """Async client for the chat backend.

    A fresh ``httpx.AsyncClient`` is opened per call so the client can be
    driven from short-lived event loops (e.g. ``asyncio.run`` per UI command).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Dict[str, Any] | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(f"{method} {path} failed: {exc}") from exc

        if response.is_error:
            server_message = _server_message(response)
            logger.warning("%s %s returned %s", method, path, response.status_code)
            raise ApiError(
                f"{method} {path} rejected",
                status_code=response.status_code,
                server_message=server_message,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

    async def authenticate(self, mode: AuthMode, username: str, password: str) -> Tuple[str, str]:
        """Log in or register; return ``(token, username)`` as issued by the server."""
        path = AUTH_PATHS[AuthMode(mode)]
        data = await self._request("POST", path, json={"username": username, "password": password})
        if not isinstance(data, dict) or not data.get("token") or not data.get("username"):
            raise ApiError(f"POST {path} returned an unexpected body", status_code=200)
        return str(data["token"]), str(data["username"])

    async def fetch_messages(self, token: str) -> Tuple[Message, ...]:
        """Return the full ordered history for the token's user."""
        data = await self._request("GET", MESSAGES_PATH, headers=_bearer(token))
        return self._parse_history(data, "GET")

    async def send_message(self, token: str, text: str) -> Tuple[Message, ...]:
        """Post a message; return the full updated history."""
        data = await self._request("POST", MESSAGES_PATH, json={"text": text}, headers=_bearer(token))
        return self._parse_history(data, "POST")

    @staticmethod
    def _parse_history(data: Any, method: str) -> Tuple[Message, ...]:
        try:
            return parse_messages(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise ApiError(f"{method} {MESSAGES_PATH} returned malformed messages: {exc}") from exc


def get_api_client(settings: Settings | None = None) -> ChatApiClient:
    """Return an API client for the configured backend URL."""
    settings = settings or get_settings()
    return ChatApiClient(settings.backend_url, timeout=settings.request_timeout_seconds)
