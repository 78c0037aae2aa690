from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple


class Sender(str, Enum):
    USER = "user"
    AI = "ai"


class AuthMode(str, Enum):
    LOGIN = "login"
    REGISTER = "register"


class SessionStatus(str, Enum):
    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    LOGGED_IN = "logged_in"


@dataclass(frozen=True)
class Session:
    """Authenticated identity: token and display name, both set or both None."""

    token: str | None = None
    display_name: str | None = None

    def __post_init__(self) -> None:
        if (self.token is None) != (self.display_name is None):
            raise ValueError("token and display_name must be both present or both absent")

    @property
    def is_present(self) -> bool:
        return self.token is not None

    @classmethod
    def absent(cls) -> "Session":
        return cls()


@dataclass(frozen=True)
class Message:
    """A single chat message as returned by the backend."""

    id: Any
    sender: Sender
    text: str
    created_at: datetime

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """Build a Message from its wire form ``{id, sender, text, created_at}``."""
        sender = Sender.USER if data["sender"] == Sender.USER.value else Sender.AI
        return cls(
            id=data["id"],
            sender=sender,
            text=str(data["text"]),
            created_at=_parse_timestamp(data["created_at"]),
        )


def parse_messages(payload: Any) -> Tuple[Message, ...]:
    """Parse a history payload, keeping the backend's order as-is."""
    if not isinstance(payload, list):
        raise TypeError(f"expected a list of messages, got {type(payload).__name__}")
    return tuple(Message.from_dict(item) for item in payload)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass
class InteractionUIState:
    """Transient UI-facing state owned by the interaction controller."""

    input_buffer: str = ""
    sending: bool = False
    error_message: str | None = None
    auth_mode: AuthMode = AuthMode.LOGIN
