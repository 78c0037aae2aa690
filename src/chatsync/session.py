import logging

from .errors import ApiError, AuthError, StaleResponseError, ValidationError
from .models import AuthMode, Session, SessionStatus
from .services.api import ChatApiClient
from .services.credentials import CredentialStore

logger = logging.getLogger(__name__)


class SessionController:
    """Owns the authentication state machine and the current Session.

    The credential store only mirrors the session for persistence; at runtime
    this controller is the single source of truth.
    """

    def __init__(self, api: ChatApiClient, credential_store: CredentialStore) -> None:
        self._api = api
        self._store = credential_store
        self._session = Session.absent()
        self._status = SessionStatus.LOGGED_OUT
        # Bumped on logout so in-flight authentications can detect they are stale.
        self._generation = 0

    @property
    def session(self) -> Session:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def token(self) -> str | None:
        return self._session.token

    @property
    def display_name(self) -> str | None:
        return self._session.display_name

    @property
    def is_authenticated(self) -> bool:
        return self._status is SessionStatus.LOGGED_IN

    def restore(self) -> Session:
        """Load the persisted session; a present token is trusted without revalidation."""
        session = self._store.load()
        if session.is_present:
            self._session = session
            self._status = SessionStatus.LOGGED_IN
            logger.info("Restored session for %s", session.display_name)
        else:
            self._session = Session.absent()
            self._status = SessionStatus.LOGGED_OUT
        return self._session

    async def authenticate(self, mode: AuthMode, username: str, password: str) -> Session:
        """Log in or register and make the returned identity the current session.

        Raises:
            ValidationError: If username or password is blank after trimming.
            AuthError: If the backend rejects the request or is unreachable; the
                status from before the attempt is restored.
            StaleResponseError: If logout happened while the request was in flight,
                whether it then succeeded or failed.
        """
        username = (username or "").strip()
        password = (password or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required.")

        mode = AuthMode(mode)
        generation = self._generation
        previous_status = self._status
        self._status = SessionStatus.AUTHENTICATING
        logger.info("Authenticating (%s) user=%s", mode.value, username)
        try:
            token, name_from_server = await self._api.authenticate(mode, username, password)
        except ApiError as e:
            if generation != self._generation:
                logger.debug("Discarding authentication failure received after logout")
                raise StaleResponseError() from e
            self._status = previous_status
            raise AuthError(e.server_message) from e

        if generation != self._generation:
            logger.debug("Discarding authentication result received after logout")
            raise StaleResponseError()

        self._session = Session(token=token, display_name=name_from_server)
        self._status = SessionStatus.LOGGED_IN
        self._store.save(self._session)
        logger.info("Logged in as %s", name_from_server)
        return self._session

    def logout(self) -> None:
        """Drop the session locally and in the credential store. Always succeeds."""
        self._generation += 1
        self._session = Session.absent()
        self._status = SessionStatus.LOGGED_OUT
        self._store.clear()
        logger.info("Logged out")
