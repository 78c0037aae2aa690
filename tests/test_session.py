import asyncio
from unittest.mock import MagicMock

import pytest

from chatsync.errors import ApiError, AuthError, StaleResponseError, ValidationError
from chatsync.models import AuthMode, Session, SessionStatus
from chatsync.services.credentials import InMemoryCredentialStore
from chatsync.session import SessionController


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username,password",
    [("", "pw123"), ("alice", ""), ("   ", "pw123"), ("alice", "\t\n"), (None, None)],
)
async def test_blank_credentials_never_hit_network(
    session_controller: SessionController, mock_api: MagicMock, username, password
) -> None:
    """Blank username or password raises ValidationError without a request."""
    with pytest.raises(ValidationError) as exc_info:
        await session_controller.authenticate(AuthMode.LOGIN, username, password)
    assert exc_info.value.message == "Username and password are required."
    mock_api.authenticate.assert_not_called()
    assert session_controller.status is SessionStatus.LOGGED_OUT


@pytest.mark.asyncio
async def test_login_success_persists_session(
    session_controller: SessionController,
    mock_api: MagicMock,
    credential_store: InMemoryCredentialStore,
) -> None:
    """A successful login enters LOGGED_IN and mirrors the session to the store."""
    session = await session_controller.authenticate(AuthMode.LOGIN, "  alice ", " pw123 ")
    assert session == Session(token="tok-1", display_name="alice")
    assert session_controller.status is SessionStatus.LOGGED_IN
    assert session_controller.token == "tok-1"
    assert credential_store.load() == session
    mock_api.authenticate.assert_awaited_once_with(AuthMode.LOGIN, "alice", "pw123")


@pytest.mark.asyncio
async def test_display_name_comes_from_server(
    session_controller: SessionController, mock_api: MagicMock
) -> None:
    """The display name is the username echoed by the server, not the one typed."""
    mock_api.authenticate.return_value = ("tok-9", "Alice")
    session = await session_controller.authenticate(AuthMode.REGISTER, "alice", "pw")
    assert session.display_name == "Alice"
    mock_api.authenticate.assert_awaited_once_with(AuthMode.REGISTER, "alice", "pw")


@pytest.mark.asyncio
async def test_rejection_uses_server_message(
    session_controller: SessionController,
    mock_api: MagicMock,
    credential_store: InMemoryCredentialStore,
) -> None:
    """A rejected login keeps LOGGED_OUT, leaves the store alone and carries the server error."""
    mock_api.authenticate.side_effect = ApiError("rejected", status_code=401, server_message="Invalid credentials")
    with pytest.raises(AuthError) as exc_info:
        await session_controller.authenticate(AuthMode.LOGIN, "alice", "wrong")
    assert exc_info.value.message == "Invalid credentials"
    assert session_controller.status is SessionStatus.LOGGED_OUT
    assert credential_store.load() == Session.absent()


@pytest.mark.asyncio
async def test_rejection_without_server_message_is_generic(
    session_controller: SessionController, mock_api: MagicMock
) -> None:
    """With no server error string the generic message is used."""
    mock_api.authenticate.side_effect = ApiError("unreachable")
    with pytest.raises(AuthError) as exc_info:
        await session_controller.authenticate(AuthMode.LOGIN, "alice", "pw")
    assert exc_info.value.message == "Authentication failed. Please try again."


@pytest.mark.asyncio
async def test_failed_attempt_keeps_existing_store_entry(mock_api: MagicMock) -> None:
    """A failed authenticate does not touch what the store already holds."""
    saved = Session(token="old", display_name="carol")
    store = InMemoryCredentialStore(saved)
    controller = SessionController(api=mock_api, credential_store=store)
    mock_api.authenticate.side_effect = ApiError("rejected", status_code=401)
    with pytest.raises(AuthError):
        await controller.authenticate(AuthMode.LOGIN, "alice", "pw")
    assert store.load() == saved


@pytest.mark.asyncio
async def test_status_is_authenticating_while_in_flight(
    session_controller: SessionController, mock_api: MagicMock
) -> None:
    """The controller reports AUTHENTICATING until the response arrives."""
    release = asyncio.Event()

    async def slow_auth(*args):
        await release.wait()
        return ("tok-1", "alice")

    mock_api.authenticate.side_effect = slow_auth
    task = asyncio.create_task(session_controller.authenticate(AuthMode.LOGIN, "alice", "pw"))
    await asyncio.sleep(0)
    assert session_controller.status is SessionStatus.AUTHENTICATING
    release.set()
    await task
    assert session_controller.status is SessionStatus.LOGGED_IN


@pytest.mark.asyncio
async def test_logout_during_authentication_discards_result(
    session_controller: SessionController,
    mock_api: MagicMock,
    credential_store: InMemoryCredentialStore,
) -> None:
    """A login response arriving after logout is dropped."""
    release = asyncio.Event()

    async def slow_auth(*args):
        await release.wait()
        return ("tok-1", "alice")

    mock_api.authenticate.side_effect = slow_auth
    task = asyncio.create_task(session_controller.authenticate(AuthMode.LOGIN, "alice", "pw"))
    await asyncio.sleep(0)
    session_controller.logout()
    release.set()
    with pytest.raises(StaleResponseError):
        await task
    assert session_controller.status is SessionStatus.LOGGED_OUT
    assert session_controller.token is None
    assert credential_store.load() == Session.absent()


@pytest.mark.asyncio
async def test_logout_clears_everything(
    session_controller: SessionController, credential_store: InMemoryCredentialStore
) -> None:
    """logout drops the in-memory session and the persisted copy."""
    await session_controller.authenticate(AuthMode.LOGIN, "alice", "pw")
    session_controller.logout()
    assert session_controller.status is SessionStatus.LOGGED_OUT
    assert session_controller.session == Session.absent()
    assert credential_store.load() == Session.absent()


def test_logout_when_logged_out_succeeds(session_controller: SessionController) -> None:
    """logout is unconditional."""
    session_controller.logout()
    session_controller.logout()
    assert session_controller.status is SessionStatus.LOGGED_OUT


def test_restore_with_saved_token(mock_api: MagicMock) -> None:
    """restore trusts a persisted token without contacting the backend."""
    store = InMemoryCredentialStore(Session(token="tok-1", display_name="alice"))
    controller = SessionController(api=mock_api, credential_store=store)
    controller.restore()
    assert controller.is_authenticated
    assert controller.display_name == "alice"
    mock_api.authenticate.assert_not_called()
    mock_api.fetch_messages.assert_not_called()


def test_restore_with_empty_store(session_controller: SessionController) -> None:
    """restore with nothing persisted stays LOGGED_OUT."""
    assert session_controller.restore() == Session.absent()
    assert session_controller.status is SessionStatus.LOGGED_OUT
