from pydantic_settings import BaseSettings
from functools import lru_cache
import os

class Settings(BaseSettings):
    # Supabase
    supabase_url: str
    supabase_service_key: str

    # Encryption (Fernet key for stored OAuth tokens)
    encryption_key: str

    # OAuth - Twitter
    twitter_client_id: str = ""
    twitter_client_secret: str = ""

    # OAuth - LinkedIn
    linkedin_client_id: str = ""
    linkedin_client_secret: str = ""

    # OAuth - Instagram
    instagram_client_id: str = ""
    instagram_client_secret: str = ""

    # OAuth - Facebook
    facebook_client_id: str = ""
    facebook_client_secret: str = ""

    # OAuth - TikTok
    tiktok_client_id: str = ""
    tiktok_client_secret: str = ""

    # App origin, redirect URIs are <app_origin>/auth/callback/<platform>
    app_origin: str = "http://localhost:5173"

    # Outbound calls and token lifecycle
    http_timeout_seconds: float = 15.0
    oauth_flow_ttl_seconds: int = 600
    token_refresh_buffer_seconds: int = 300

    # Scheduled publishing
    scheduler_interval_seconds: int = 60

    # Fire-and-forget event webhook, empty disables it
    event_webhook_url: str = ""

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    log_level: str = "INFO"

    # Railway auto-detects PORT, default to 8000 for local dev
    port: int = int(os.getenv("PORT", "8000"))

    class Config:
        env_file = ".env"

    def client_credentials(self, platform: str) -> tuple:
        """(client_id, client_secret) for a platform name, empty strings when unset"""
        return (
            getattr(self, f"{platform}_client_id", ""),
            getattr(self, f"{platform}_client_secret", ""),
        )

@lru_cache()
def get_settings():
    return Settings()
