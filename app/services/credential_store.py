"""
Persisted per-user, per-platform OAuth credentials.

Tokens are Fernet-encrypted at rest and only leave this module decrypted inside a
``StoredAccount``, which the token manager consumes. Everything user-facing gets the
token-free ``SocialAccount`` view.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional
from cryptography.fernet import Fernet
from supabase import Client
from app.auth import decrypt_token, encrypt_token
from app.models import AccountProfile, Platform, PublicationRecord, SocialAccount, StoredAccount, TokenSet

logger = logging.getLogger(__name__)

ACCOUNTS_TABLE = "social_accounts"
PUBLICATIONS_TABLE = "publications"

PUBLIC_COLUMNS = "id, user_id, platform, platform_user_id, account_name, account_handle, is_connected, token_expires_at, connected_at"


def parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CredentialStore:
    def __init__(self, supabase: Client, cipher: Optional[Fernet] = None):
        self.supabase = supabase
        self.cipher = cipher

    def _encrypt(self, token: Optional[str]) -> Optional[str]:
        return encrypt_token(token, self.cipher) if token else None

    def _decrypt(self, token: Optional[str]) -> Optional[str]:
        return decrypt_token(token, self.cipher) if token else None

    def get(self, account_id: str) -> Optional[StoredAccount]:
        response = self.supabase.table(ACCOUNTS_TABLE)\
            .select("*")\
            .eq("id", account_id)\
            .limit(1)\
            .execute()

        if not response.data:
            return None

        row = response.data[0]
        return StoredAccount(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            platform=row["platform"],
            platform_user_id=row.get("platform_user_id") or "",
            access_token=self._decrypt(row["access_token_encrypted"]),
            refresh_token=self._decrypt(row.get("refresh_token_encrypted")),
            token_expires_at=parse_timestamp(row.get("token_expires_at")),
        )

    def save_connection(self, user_id: str, platform: Platform, profile: AccountProfile, tokens: TokenSet) -> SocialAccount:
        """Insert or replace the user's account for a platform after a code exchange"""
        expires_at = tokens.expires_at
        row = {
            "user_id": user_id,
            "platform": platform.value,
            "platform_user_id": profile.platform_user_id,
            "account_name": profile.account_name,
            "account_handle": profile.account_handle,
            "access_token_encrypted": self._encrypt(tokens.access_token),
            "refresh_token_encrypted": self._encrypt(tokens.refresh_token),
            "token_expires_at": expires_at.isoformat() if expires_at else None,
            "is_connected": True,
            "connected_at": datetime.now(timezone.utc).isoformat(),
        }

        response = self.supabase.table(ACCOUNTS_TABLE)\
            .upsert(row, on_conflict="user_id,platform")\
            .execute()

        saved = response.data[0] if response.data else row
        logger.info("Stored %s credentials for user %s", platform.value, user_id)
        return self._public(saved)

    def update_credentials(self, account_id: str, access_token: str, refresh_token: Optional[str], expires_at: Optional[datetime]) -> None:
        self.supabase.table(ACCOUNTS_TABLE)\
            .update({
                "access_token_encrypted": self._encrypt(access_token),
                "refresh_token_encrypted": self._encrypt(refresh_token),
                "token_expires_at": expires_at.isoformat() if expires_at else None,
                "is_connected": True,
            })\
            .eq("id", account_id)\
            .execute()

    def delete(self, account_id: str) -> None:
        self.supabase.table(ACCOUNTS_TABLE)\
            .delete()\
            .eq("id", account_id)\
            .execute()

    def list_for_user(self, user_id: str) -> List[SocialAccount]:
        response = self.supabase.table(ACCOUNTS_TABLE)\
            .select(PUBLIC_COLUMNS)\
            .eq("user_id", user_id)\
            .execute()
        return [self._public(row) for row in response.data or []]

    @staticmethod
    def _public(row: dict) -> SocialAccount:
        return SocialAccount(
            id=str(row.get("id", "")),
            user_id=str(row["user_id"]),
            platform=row["platform"],
            platform_user_id=row.get("platform_user_id") or "",
            account_name=row.get("account_name") or "",
            account_handle=row.get("account_handle") or "",
            is_connected=row.get("is_connected", True),
            token_expires_at=parse_timestamp(row.get("token_expires_at")),
            connected_at=parse_timestamp(row.get("connected_at")),
        )


class PublicationStore:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def insert(self, record: PublicationRecord) -> None:
        self.supabase.table(PUBLICATIONS_TABLE).insert({
            "account_id": record.account_id,
            "content": record.content,
            "media_url": record.media_url,
            "media_type": record.media_type,
            "external_post_id": record.external_post_id,
            "post_url": record.post_url,
            "status": "published",
            "published_at": record.published_at.isoformat(),
        }).execute()
