"""
Process-wide service instances, exposed as FastAPI dependencies.

The flow engine holds in-flight authorization state in memory, so it (and
everything built on it) is a singleton per process.
"""
from functools import lru_cache
from datetime import timedelta
import httpx
from openai import OpenAI
from config import get_settings
from app.auth import get_supabase_client
from app.oauth.engine import OAuthFlowEngine
from app.publishing.registry import AdapterRegistry
from app.services.connections import ConnectionService
from app.services.content_generator import ContentGenerator
from app.services.credential_store import CredentialStore, PublicationStore
from app.services.notifier import EventNotifier
from app.services.publisher import PublishDispatcher
from app.services.token_manager import TokenLifecycleManager

@lru_cache()
def get_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=get_settings().http_timeout_seconds)

@lru_cache()
def get_notifier() -> EventNotifier:
    return EventNotifier(get_settings().event_webhook_url, get_http_client())

@lru_cache()
def get_credential_store() -> CredentialStore:
    return CredentialStore(get_supabase_client())

@lru_cache()
def get_oauth_engine() -> OAuthFlowEngine:
    return OAuthFlowEngine(get_settings(), get_http_client())

@lru_cache()
def get_token_manager() -> TokenLifecycleManager:
    return TokenLifecycleManager(
        get_credential_store(),
        get_oauth_engine(),
        refresh_buffer=timedelta(seconds=get_settings().token_refresh_buffer_seconds),
    )

@lru_cache()
def get_connection_service() -> ConnectionService:
    return ConnectionService(get_oauth_engine(), get_credential_store(), get_notifier())

@lru_cache()
def get_dispatcher() -> PublishDispatcher:
    return PublishDispatcher(
        get_token_manager(),
        AdapterRegistry.default(get_http_client()),
        PublicationStore(get_supabase_client()),
        get_notifier(),
    )

@lru_cache()
def get_content_generator() -> ContentGenerator:
    settings = get_settings()
    return ContentGenerator(OpenAI(api_key=settings.openai_api_key), model=settings.openai_model)
