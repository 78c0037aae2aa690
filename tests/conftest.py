import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest


_root = Path(__file__).resolve().parents[1]
_src = _root / "src"
if _src.exists() and str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from chatsync.controller import InteractionController  # noqa: E402
from chatsync.conversation import ConversationStore  # noqa: E402
from chatsync.models import Message, Sender  # noqa: E402
from chatsync.services.api import ChatApiClient  # noqa: E402
from chatsync.services.credentials import InMemoryCredentialStore  # noqa: E402
from chatsync.session import SessionController  # noqa: E402

T1 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
T2 = datetime(2024, 5, 1, 12, 0, 3, tzinfo=timezone.utc)


@pytest.fixture
def history() -> tuple[Message, ...]:
    """The two-message history the backend returns after sending "hello"."""
    return (
        Message(id=1, sender=Sender.USER, text="hello", created_at=T1),
        Message(id=2, sender=Sender.AI, text="hi!", created_at=T2),
    )


@pytest.fixture
def mock_api() -> MagicMock:
    """Mock API client with async endpoints."""
    m = MagicMock(spec=ChatApiClient)
    m.authenticate = AsyncMock(return_value=("tok-1", "alice"))
    m.fetch_messages = AsyncMock(return_value=())
    m.send_message = AsyncMock(return_value=())
    return m


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def session_controller(mock_api: MagicMock, credential_store: InMemoryCredentialStore) -> SessionController:
    return SessionController(api=mock_api, credential_store=credential_store)


@pytest.fixture
def conversation(mock_api: MagicMock, session_controller: SessionController) -> ConversationStore:
    return ConversationStore(api=mock_api, current_token=lambda: session_controller.token)


@pytest.fixture
def controller(session_controller: SessionController, conversation: ConversationStore) -> InteractionController:
    return InteractionController(session=session_controller, conversation=conversation)
