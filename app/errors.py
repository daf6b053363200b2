"""
Error taxonomy for the OAuth connection, token lifecycle and publish pipeline.

Every error carries a stable machine ``code`` (surfaced in API responses and in
``PublishResult.error_code``) and the HTTP status the API layer answers with.
"""


class SocialCoreError(Exception):
    code = "social_core_error"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = str(self)


class UnsupportedPlatform(SocialCoreError):
    """Platform is not supported"""
    code = "unsupported_platform"
    status_code = 400

    def __init__(self, platform: str):
        super().__init__(f"Unsupported platform: {platform}")
        self.platform = platform


class MissingClientCredentials(SocialCoreError):
    """OAuth client credentials are not configured"""
    code = "missing_client_credentials"
    status_code = 503

    def __init__(self, platform: str):
        super().__init__(f"OAuth not configured for {platform}: missing client id")
        self.platform = platform


class StateMismatch(SocialCoreError):
    """Invalid state parameter. Possible CSRF attack."""
    code = "state_mismatch"
    status_code = 400


class MissingVerifier(SocialCoreError):
    """No authorization in progress for this platform (code verifier not found)"""
    code = "missing_verifier"
    status_code = 400


class FlowExpired(MissingVerifier):
    """Authorization attempt expired, start the connection again"""
    code = "flow_expired"


class AuthorizationDenied(SocialCoreError):
    """Authorization was denied on the platform"""
    code = "authorization_denied"
    status_code = 400


class TokenExchangeFailed(SocialCoreError):
    code = "token_exchange_failed"
    status_code = 502

    def __init__(self, details: str):
        super().__init__(f"Token exchange failed: {details}")
        self.details = details


class TokenRefreshFailed(SocialCoreError):
    code = "token_refresh_failed"
    status_code = 401

    def __init__(self, details: str):
        super().__init__(f"Failed to refresh access token, please reconnect the account: {details}")
        self.details = details


class TokenExpiredNoRefresh(SocialCoreError):
    """Token expired and no refresh token available. Please reconnect the account."""
    code = "token_expired_no_refresh"
    status_code = 401


class AccountNotFound(SocialCoreError):
    code = "account_not_found"
    status_code = 404

    def __init__(self, account_id: str):
        super().__init__(f"Account not found: {account_id}")
        self.account_id = account_id


class ProfileFetchFailed(SocialCoreError):
    code = "profile_fetch_failed"
    status_code = 502

    def __init__(self, platform: str, details: str):
        super().__init__(f"Failed to fetch account info from {platform}: {details}")
        self.platform = platform


class MissingAccountIdentifier(SocialCoreError):
    code = "missing_account_identifier"
    status_code = 400

    def __init__(self, platform: str):
        super().__init__(f"Connected {platform} account has no platform account id, please reconnect it")
        self.platform = platform


class MissingRequiredMedia(SocialCoreError):
    code = "missing_required_media"
    status_code = 400

    def __init__(self, platform: str):
        super().__init__(f"{platform.capitalize()} posts require an image or video")
        self.platform = platform


class PublishFailed(SocialCoreError):
    """Platform rejected the post"""
    code = "publish_failed"
    status_code = 502


class NetworkError(SocialCoreError):
    """Request to the platform failed or timed out"""
    code = "network_error"
    status_code = 504
