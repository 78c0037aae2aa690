"""Interaction controller: the facade a user interface binds to.

It coordinates the session controller and the conversation store, owns the
transient UI state (input buffer, sending flag, error message) and turns
every failure into a single ``error_message`` string. Nothing raised by the
lower layers escapes a command.
"""

import logging
from dataclasses import replace
from typing import Tuple

from .conversation import ConversationStore
from .errors import ChatClientError, StaleResponseError
from .models import AuthMode, InteractionUIState, Message, Session, SessionStatus
from .session import SessionController

logger = logging.getLogger(__name__)


class InteractionController:
    def __init__(self, session: SessionController, conversation: ConversationStore) -> None:
        self._session = session
        self._conversation = conversation
        self._ui = InteractionUIState()

    @property
    def session(self) -> Session:
        return self._session.session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def display_name(self) -> str | None:
        return self._session.display_name

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self._conversation.messages

    @property
    def ui(self) -> InteractionUIState:
        """Snapshot of the UI state; mutating it has no effect on the controller."""
        return replace(self._ui)

    @property
    def can_send(self) -> bool:
        return self.is_authenticated and not self._ui.sending and bool(self._ui.input_buffer.strip())

    def set_input(self, text: str) -> None:
        self._ui.input_buffer = text or ""

    def set_auth_mode(self, mode: AuthMode) -> None:
        self._ui.auth_mode = AuthMode(mode)

    def _fail(self, error: ChatClientError) -> None:
        self._ui.error_message = error.message

    async def start(self) -> None:
        """Restore a persisted session and load its history."""
        self._session.restore()
        if self._session.token:
            await self._refresh_history()

    async def _refresh_history(self) -> None:
        try:
            await self._conversation.fetch_history(self._session.token)
        except StaleResponseError:
            pass
        except ChatClientError as e:
            self._fail(e)

    async def submit_credentials(self, mode: AuthMode | None, username: str, password: str) -> bool:
        """Log in or register, then load the history. Returns True on success."""
        if self._session.status is SessionStatus.AUTHENTICATING:
            logger.debug("Authentication already in progress; ignoring submit")
            return False
        mode = AuthMode(mode) if mode is not None else self._ui.auth_mode
        self._ui.error_message = None
        try:
            await self._session.authenticate(mode, username, password)
        except StaleResponseError:
            return False
        except ChatClientError as e:
            self._fail(e)
            return False
        self._conversation.clear()
        await self._refresh_history()
        return True

    async def send_message(self, text: str | None = None) -> None:
        """Send the input buffer (after writing ``text`` into it, if given).

        A no-op while another send is in flight, when the buffer is blank, or
        when no one is logged in.
        """
        if self._ui.sending:
            logger.debug("Send already in flight; ignoring")
            return
        if text is not None:
            self.set_input(text)
        token = self._session.token
        if not self._ui.input_buffer.strip() or not self._session.is_authenticated or not token:
            return

        self._ui.error_message = None
        self._ui.sending = True
        try:
            await self._conversation.send(token, self._ui.input_buffer)
        except StaleResponseError:
            pass
        except ChatClientError as e:
            self._fail(e)
        else:
            self._ui.input_buffer = ""
        finally:
            self._ui.sending = False

    def logout(self) -> None:
        self._session.logout()
        self._conversation.clear()
        self._ui.input_buffer = ""
        self._ui.error_message = None
