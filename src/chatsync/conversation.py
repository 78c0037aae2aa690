import logging
from typing import Callable, Tuple

from .errors import ApiError, FetchError, PreconditionError, SendError, StaleResponseError, ValidationError
from .models import Message
from .services.api import ChatApiClient

logger = logging.getLogger(__name__)


class ConversationStore:
    """Ordered message history for the current session.

    The local sequence is only ever replaced wholesale by a backend response;
    it is never reordered, merged or deduplicated on the client. Results are
    applied only if the token they were requested with is still current, so a
    response arriving after logout (or a re-login) is dropped.
    """

    def __init__(self, api: ChatApiClient, current_token: Callable[[], str | None]) -> None:
        self._api = api
        self._current_token = current_token
        self._messages: Tuple[Message, ...] = ()

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self._messages

    def clear(self) -> None:
        self._messages = ()

    def _require_token(self, token: str | None) -> str:
        if not token:
            raise PreconditionError("You must be logged in.")
        return token

    def _discard_if_stale(self, token: str) -> None:
        if self._current_token() != token:
            logger.debug("Discarding response for a stale session")
            raise StaleResponseError()

    def _apply(self, token: str, messages: Tuple[Message, ...]) -> Tuple[Message, ...]:
        self._discard_if_stale(token)
        self._messages = messages
        return messages

    async def fetch_history(self, token: str | None) -> Tuple[Message, ...]:
        """Replace the local history with the backend's.

        Raises:
            PreconditionError: If no token is given.
            FetchError: If the request fails; the local history is kept.
            StaleResponseError: If the session changed while fetching.
        """
        token = self._require_token(token)
        try:
            messages = await self._api.fetch_messages(token)
        except ApiError as e:
            self._discard_if_stale(token)
            logger.warning("History fetch failed: %s", e)
            raise FetchError() from e
        logger.info("Fetched %d messages", len(messages))
        return self._apply(token, messages)

    async def send(self, token: str | None, text: str) -> Tuple[Message, ...]:
        """Send trimmed ``text`` and replace the history with the returned one.

        Raises:
            PreconditionError: If no token is given.
            ValidationError: If ``text`` is blank.
            SendError: If the request fails; the local history is kept.
            StaleResponseError: If the session changed while sending.
        """
        token = self._require_token(token)
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty.")
        try:
            messages = await self._api.send_message(token, text)
        except ApiError as e:
            self._discard_if_stale(token)
            logger.warning("Send failed: %s", e)
            raise SendError() from e
        return self._apply(token, messages)
