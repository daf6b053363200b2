from functools import lru_cache
from typing import Optional
from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from cryptography.fernet import Fernet, InvalidToken
from supabase import create_client, Client
from config import get_settings

security = HTTPBearer()

@lru_cache()
def get_supabase_client() -> Client:
    """
    Get Supabase client for database operations
    """
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_service_key)

async def get_current_user(credentials: HTTPAuthorizationCredentials = Security(security)):
    """
    Verify JWT token from Supabase and return user
    """
    token = credentials.credentials

    try:
        user_response = get_supabase_client().auth.get_user(token)
    except Exception as e:
        raise HTTPException(status_code=401, detail=f"Could not validate credentials: {str(e)}")

    if not user_response or not user_response.user:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    return user_response.user

def get_cipher() -> Fernet:
    """Get Fernet cipher for encryption/decryption"""
    return Fernet(get_settings().encryption_key.encode())

def encrypt_token(token: str, cipher: Optional[Fernet] = None) -> str:
    """Encrypt OAuth token"""
    cipher = cipher or get_cipher()
    return cipher.encrypt(token.encode()).decode()

def decrypt_token(encrypted_token: str, cipher: Optional[Fernet] = None) -> str:
    """Decrypt OAuth token"""
    cipher = cipher or get_cipher()
    return cipher.decrypt(encrypted_token.encode()).decode()

def seal_session(session_id: str) -> str:
    """Seal a session id into an opaque cookie value"""
    return encrypt_token(session_id)

def open_session(sealed: str, max_age: int) -> Optional[str]:
    """Return the session id from a sealed cookie, None if tampered or older than max_age"""
    try:
        return get_cipher().decrypt(sealed.encode(), ttl=max_age).decode()
    except InvalidToken:
        return None
