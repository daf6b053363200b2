import logging
from typing import Optional
from app.errors import AccountNotFound
from app.models import SocialAccount
from app.oauth.engine import OAuthFlowEngine
from app.oauth.platforms import parse_platform
from app.services.credential_store import CredentialStore
from app.services.notifier import EventNotifier

logger = logging.getLogger(__name__)


class ConnectionService:
    """Connect and disconnect social accounts for a user."""

    def __init__(self, engine: OAuthFlowEngine, store: CredentialStore, notifier: Optional[EventNotifier] = None):
        self.engine = engine
        self.store = store
        self.notifier = notifier

    async def connect_account(self, user_id: str, platform, state: str, code: str) -> SocialAccount:
        """
        Finish an authorization attempt: exchange the code, resolve the identity on
        the platform and persist the credentials.
        """
        platform = parse_platform(platform)
        tokens = await self.engine.complete_authorization(platform, state, code, session_id=user_id)
        profile = await self.engine.fetch_profile(platform, tokens.access_token)
        account = self.store.save_connection(user_id, platform, profile, tokens)

        if self.notifier:
            self.notifier.notify(
                "account_connected",
                platform=platform.value,
                userId=user_id,
                accountName=account.account_name,
                accountHandle=account.account_handle,
                status="connected",
            )
        return account

    async def disconnect_account(self, user_id: str, account_id: str) -> None:
        account = self.store.get(account_id)
        if account is None or account.user_id != user_id:
            raise AccountNotFound(account_id)

        await self.engine.revoke(account.platform, account.access_token)
        self.store.delete(account_id)
        logger.info("Disconnected %s account %s for user %s", account.platform, account_id, user_id)
