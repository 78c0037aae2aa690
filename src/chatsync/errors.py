"""Error taxonomy for the chat client.

Every error carries ``message``, the single human-readable string the
interaction controller shows to the user.
"""


class ChatClientError(Exception):
    """Base class for all client-side failures."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ChatClientError):
    """Blank credential or message field, caught before any network call."""

    default_message = "Username and password are required."


class AuthError(ChatClientError):
    """The remote service rejected a login or register request."""

    default_message = "Authentication failed. Please try again."


class FetchError(ChatClientError):
    """History retrieval failed for any transport or server reason."""

    default_message = "Failed to load chat history."


class SendError(ChatClientError):
    """Message submission failed for any transport or server reason."""

    default_message = "Failed to send message."


class PreconditionError(ChatClientError):
    """An operation needing a session was attempted without a token."""

    default_message = "You must be logged in."


class StaleResponseError(ChatClientError):
    """A response arrived for a token that is no longer the current one."""

    default_message = "Response discarded: session changed."


class ApiError(Exception):
    """Transport-level failure talking to the chat backend."""

    def __init__(
        self,
        reason: str,
        status_code: int | None = None,
        server_message: str | None = None,
    ) -> None:
        self.reason = reason
        self.status_code = status_code
        self.server_message = server_message
        super().__init__(f"{reason} (status={status_code})")
