import asyncio
import logging
import weakref
from datetime import datetime, timedelta, timezone
from app.errors import AccountNotFound, TokenExpiredNoRefresh, TokenRefreshFailed
from app.models import StoredAccount
from app.oauth.engine import OAuthFlowEngine
from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_BUFFER = timedelta(minutes=5)


class TokenLifecycleManager:
    """
    Hands out a currently valid access token per account, refreshing through the
    flow engine when the stored one is within the safety buffer of its expiry.

    Refreshes are serialized per account: concurrent callers wait on the first
    refresh and then read the rotated token instead of refreshing again.
    """

    def __init__(self, store: CredentialStore, engine: OAuthFlowEngine, refresh_buffer: timedelta = DEFAULT_REFRESH_BUFFER):
        self.store = store
        self.engine = engine
        self.refresh_buffer = refresh_buffer
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def load(self, account_id: str) -> StoredAccount:
        account = self.store.get(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def is_usable(self, account: StoredAccount) -> bool:
        # No recorded expiry means the platform issued a non-expiring token
        if account.token_expires_at is None:
            return True
        return datetime.now(timezone.utc) < account.token_expires_at - self.refresh_buffer

    async def get_valid_token(self, account_id: str) -> str:
        return await self.token_for(self.load(account_id))

    async def token_for(self, account: StoredAccount) -> str:
        """Valid access token for an already loaded account, refreshing if needed"""
        account_id = account.id
        if self.is_usable(account):
            return account.access_token

        lock = self._locks.get(account_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[account_id] = lock

        async with lock:
            account = self.load(account_id)
            if self.is_usable(account):
                return account.access_token
            return await self._refresh(account)

    async def _refresh(self, account: StoredAccount) -> str:
        if not account.refresh_token:
            logger.warning("Token for account %s expired and no refresh token is stored", account.id)
            raise TokenExpiredNoRefresh()

        logger.info("Refreshing %s token for account %s", account.platform, account.id)
        try:
            tokens = await self.engine.refresh(account.platform, account.refresh_token)
        except TokenRefreshFailed as e:
            logger.error("Token refresh failed for account %s: %s", account.id, e.details)
            raise

        self.store.update_credentials(
            account.id,
            tokens.access_token,
            tokens.refresh_token or account.refresh_token,
            tokens.expires_at,
        )
        return tokens.access_token
