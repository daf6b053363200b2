import secrets
import hashlib
import base64

def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode('utf-8').rstrip('=')

def generate_state() -> str:
    """Generate a random state token for CSRF protection (16 bytes)"""
    return _b64url(secrets.token_bytes(16))

def generate_code_verifier() -> str:
    """Generate a random code verifier for PKCE (32 bytes)"""
    return _b64url(secrets.token_bytes(32))

def generate_code_challenge(verifier: str) -> str:
    """Generate S256 code challenge from verifier"""
    digest = hashlib.sha256(verifier.encode('utf-8')).digest()
    return _b64url(digest)
