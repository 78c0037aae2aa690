import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .controller import InteractionController
from .conversation import ConversationStore
from .services.api import ChatApiClient, get_api_client
from .services.credentials import CredentialStore, create_credential_store
from .session import SessionController
from .settings import Settings, get_settings


def setup_client_logging(settings: Settings | None = None) -> logging.Logger:
    """Configure and return the ``chatsync`` logger (console + rotating file)."""
    settings = settings or get_settings()

    logger = logging.getLogger("chatsync")
    if logger.handlers:
        return logger

    logger.setLevel(settings.log_level)
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    logs_dir = Path(settings.log_dir)
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(logs_dir / "client.log", maxBytes=2_000_000, backupCount=3)
    except OSError as e:
        logger.warning("File logging disabled (%s): %s", logs_dir, e)
    else:
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def build_controller(
    settings: Settings | None = None,
    credential_store: CredentialStore | None = None,
    api: ChatApiClient | None = None,
) -> InteractionController:
    """Wire credential store, API client, session and conversation into a controller."""
    settings = settings or get_settings()
    api = api or get_api_client(settings)
    credential_store = credential_store or create_credential_store(settings)

    session = SessionController(api=api, credential_store=credential_store)
    conversation = ConversationStore(api=api, current_token=lambda: session.token)
    return InteractionController(session=session, conversation=conversation)
