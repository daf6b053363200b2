"""
PKCE authorization-code flow, run per platform.

One connection attempt moves NotStarted -> AwaitingCallback (state and verifier
stored) -> Completed (tokens issued, flow consumed) or Aborted (state mismatch,
denial or exchange failure; flow cleared). The engine never persists tokens; the
caller does.
"""
import logging
import secrets
from typing import Optional
from urllib.parse import urlencode

import httpx

from app.errors import (
    AuthorizationDenied,
    MissingClientCredentials,
    NetworkError,
    ProfileFetchFailed,
    StateMismatch,
    TokenExchangeFailed,
    TokenRefreshFailed,
)
from app.models import AccountProfile, AuthorizationRequest, Platform, TokenSet
from app.oauth.flow_state import FlowStateStore, OAuthFlowState
from app.oauth.pkce import generate_code_challenge, generate_code_verifier, generate_state
from app.oauth.platforms import PlatformOAuthConfig, get_platform_config

logger = logging.getLogger(__name__)


class OAuthFlowEngine:
    def __init__(self, settings, http_client: httpx.AsyncClient, flow_store: Optional[FlowStateStore] = None):
        self.settings = settings
        self.http = http_client
        self.flows = flow_store or FlowStateStore(ttl_seconds=settings.oauth_flow_ttl_seconds)

    def config_for(self, platform) -> PlatformOAuthConfig:
        return get_platform_config(platform, self.settings)

    def begin_authorization(self, platform, session_id: str) -> AuthorizationRequest:
        """
        Start a connection attempt and return the authorization URL to redirect to.
        Nothing touches the network here.
        """
        config = self.config_for(platform)
        if not config.client_id:
            raise MissingClientCredentials(config.platform.value)

        state = generate_state()
        code_verifier = generate_code_verifier()
        self.flows.put(session_id, config.platform.value, OAuthFlowState(state=state, code_verifier=code_verifier))

        params = {
            config.client_id_param: config.client_id,
            "redirect_uri": config.redirect_uri,
            "response_type": "code",
            "scope": config.scope,
            "state": state,
            "code_challenge": generate_code_challenge(code_verifier),
            "code_challenge_method": "S256",
        }
        logger.info("Starting %s authorization for session %s", config.platform.value, session_id)
        return AuthorizationRequest(
            platform=config.platform,
            url=f"{config.authorization_url}?{urlencode(params)}",
            state=state,
        )

    async def complete_authorization(self, platform, received_state: str, code: str, session_id: str) -> TokenSet:
        """
        Exchange the callback's code for tokens. The stored flow is consumed before
        the exchange, so a callback can be redeemed at most once.
        """
        config = self.config_for(platform)
        key = config.platform.value

        flow = self.flows.get(session_id, key)
        if not received_state or not secrets.compare_digest(received_state.encode(), flow.state.encode()):
            self.flows.discard(session_id, key)
            logger.warning("State mismatch on %s callback for session %s", key, session_id)
            raise StateMismatch()

        self.flows.discard(session_id, key)

        tokens = await self._request_tokens(
            config,
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": config.redirect_uri,
                "code_verifier": flow.code_verifier,
            },
            TokenExchangeFailed,
        )
        logger.info("Completed %s authorization for session %s", key, session_id)
        return tokens

    def abort(self, platform, session_id: str, error: str, description: Optional[str] = None):
        """Clear the flow after the platform reported an error on the callback, then raise"""
        config = self.config_for(platform)
        self.flows.discard(session_id, config.platform.value)
        raise AuthorizationDenied(description or error)

    async def refresh(self, platform, refresh_token: str) -> TokenSet:
        """Exchange a refresh token for new tokens. Stores nothing."""
        config = self.config_for(platform)
        return await self._request_tokens(
            config,
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            TokenRefreshFailed,
        )

    async def fetch_profile(self, platform, access_token: str) -> AccountProfile:
        config = self.config_for(platform)
        try:
            response = await self.http.get(
                config.profile_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.TimeoutException:
            raise NetworkError(f"Timed out fetching {config.platform.value} profile")
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to reach {config.platform.value}: {e}")

        if response.status_code != 200:
            raise ProfileFetchFailed(config.platform.value, response.text)

        try:
            return config.parse_profile(response.json())
        except (KeyError, TypeError, ValueError) as e:
            raise ProfileFetchFailed(config.platform.value, f"unexpected response: {e}")

    async def revoke(self, platform, access_token: str) -> bool:
        """Best-effort token revocation; failures are logged, never raised"""
        config = self.config_for(platform)
        if not config.revoke_url:
            return False

        try:
            if config.platform in (Platform.FACEBOOK, Platform.INSTAGRAM):
                response = await self.http.delete(
                    config.revoke_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
            else:
                data = {"token": access_token, config.client_id_param: config.client_id}
                kwargs = {}
                if config.basic_auth:
                    kwargs["auth"] = (config.client_id, config.client_secret)
                else:
                    data["client_secret"] = config.client_secret
                response = await self.http.post(config.revoke_url, data=data, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Failed to revoke %s token: %s", config.platform.value, e)
            return False

        if response.status_code >= 400:
            logger.warning("Failed to revoke %s token: %s %s", config.platform.value, response.status_code, response.text)
            return False
        return True

    async def _request_tokens(self, config: PlatformOAuthConfig, data: dict, error_cls) -> TokenSet:
        data = dict(data)
        data[config.client_id_param] = config.client_id
        kwargs = {}
        if config.basic_auth:
            kwargs["auth"] = (config.client_id, config.client_secret)
        else:
            data["client_secret"] = config.client_secret

        try:
            response = await self.http.post(
                config.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                **kwargs,
            )
        except httpx.TimeoutException:
            raise NetworkError(f"Timed out calling {config.platform.value} token endpoint")
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to reach {config.platform.value} token endpoint: {e}")

        if not response.is_success:
            raise error_cls(response.text)

        try:
            token_data = response.json()
        except ValueError:
            raise error_cls(f"non-JSON response: {response.text[:200]}")

        # TikTok wraps the token payload in "data"
        if "access_token" not in token_data and isinstance(token_data.get("data"), dict):
            token_data = token_data["data"]

        if not token_data.get("access_token"):
            raise error_cls(f"no access_token in response: {response.text[:200]}")

        return TokenSet(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token") or None,
            expires_in=token_data.get("expires_in"),
            token_type=token_data.get("token_type", "bearer"),
        )
