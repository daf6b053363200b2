from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Literal
from datetime import datetime, timedelta, timezone
from dataclasses import dataclass
from enum import Enum

class Platform(str, Enum):
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TIKTOK = "tiktok"

class SocialAccount(BaseModel):
    """Public view of a connected account. Never carries tokens."""
    id: str
    user_id: str
    platform: Platform
    platform_user_id: str
    account_name: str
    account_handle: str
    is_connected: bool = True
    token_expires_at: Optional[datetime] = None
    connected_at: Optional[datetime] = None

@dataclass
class StoredAccount:
    """Decrypted credential record, only handed out by the credential store."""
    id: str
    user_id: str
    platform: str
    platform_user_id: str
    access_token: str
    refresh_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None

    def __repr__(self):
        return f"StoredAccount(id={self.id!r}, platform={self.platform!r}, token_expires_at={self.token_expires_at!r})"

class TokenSet(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: str = "bearer"
    issued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def expires_at(self) -> Optional[datetime]:
        if not self.expires_in:
            return None
        return self.issued_at + timedelta(seconds=self.expires_in)

class AccountProfile(BaseModel):
    platform_user_id: str
    account_name: str
    account_handle: str

class AuthorizationRequest(BaseModel):
    platform: Platform
    url: str
    state: str

class PostContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    media_url: Optional[str] = None
    media_type: Optional[Literal["image", "video"]] = None

class PublishResult(BaseModel):
    success: bool
    post_id: Optional[str] = None
    post_url: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @model_validator(mode="after")
    def _check_populated(self):
        if self.success and self.error:
            raise ValueError("successful result cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("failed result must carry an error message")
        return self

    @classmethod
    def ok(cls, post_id: Optional[str], post_url: Optional[str] = None) -> "PublishResult":
        return cls(success=True, post_id=post_id, post_url=post_url)

    @classmethod
    def failed(cls, error: str, error_code: str = "publish_failed") -> "PublishResult":
        return cls(success=False, error=error or "Unknown error", error_code=error_code)

class AccountPublishResult(BaseModel):
    account_id: str
    result: PublishResult

class PublicationRecord(BaseModel):
    account_id: str
    content: str
    media_url: Optional[str] = None
    media_type: Optional[str] = None
    external_post_id: Optional[str] = None
    post_url: Optional[str] = None
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class OAuthCallbackRequest(BaseModel):
    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

class PublishRequest(BaseModel):
    account_ids: List[str] = Field(min_length=1)
    content: PostContent

class DraftRequest(BaseModel):
    prompt: str
    platform: Platform = Platform.TWITTER
    tone: str = "friendly"
