"""
Static per-platform OAuth configuration.

``get_platform_config`` is the single lookup used by the flow engine; adding a
platform means adding one entry to ``_PLATFORMS`` (and, for publishing, one adapter
in ``app.publishing``).
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from app.errors import UnsupportedPlatform
from app.models import AccountProfile, Platform


@dataclass(frozen=True)
class PlatformOAuthConfig:
    platform: Platform
    authorization_url: str
    token_url: str
    scope: str
    profile_url: str
    parse_profile: Callable[[dict], AccountProfile]
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    client_id_param: str = "client_id"
    basic_auth: bool = False
    revoke_url: Optional[str] = None


def _twitter_profile(data: dict) -> AccountProfile:
    user = data["data"]
    return AccountProfile(
        platform_user_id=user["id"],
        account_name=user.get("name") or user["username"],
        account_handle=f"@{user['username']}",
    )


def _linkedin_profile(data: dict) -> AccountProfile:
    return AccountProfile(
        platform_user_id=data["sub"],
        account_name=data.get("name", data.get("email", "Unknown")),
        account_handle=data["sub"],
    )


def _instagram_profile(data: dict) -> AccountProfile:
    return AccountProfile(
        platform_user_id=data["id"],
        account_name=data["username"],
        account_handle=f"@{data['username']}",
    )


def _facebook_profile(data: dict) -> AccountProfile:
    return AccountProfile(
        platform_user_id=data["id"],
        account_name=data.get("name", "Unknown"),
        account_handle=data["id"],
    )


def _tiktok_profile(data: dict) -> AccountProfile:
    user = data["data"]["user"]
    return AccountProfile(
        platform_user_id=user["open_id"],
        account_name=user.get("display_name", "Unknown"),
        account_handle=user["open_id"],
    )


_PLATFORMS: Dict[Platform, dict] = {
    Platform.TWITTER: dict(
        authorization_url="https://twitter.com/i/oauth2/authorize",
        token_url="https://api.twitter.com/2/oauth2/token",
        scope="tweet.read tweet.write users.read offline.access",
        profile_url="https://api.twitter.com/2/users/me",
        parse_profile=_twitter_profile,
        basic_auth=True,
        revoke_url="https://api.twitter.com/2/oauth2/revoke",
    ),
    Platform.LINKEDIN: dict(
        authorization_url="https://www.linkedin.com/oauth/v2/authorization",
        token_url="https://www.linkedin.com/oauth/v2/accessToken",
        scope="openid profile email w_member_social",
        profile_url="https://api.linkedin.com/v2/userinfo",
        parse_profile=_linkedin_profile,
        revoke_url="https://www.linkedin.com/oauth/v2/revoke",
    ),
    Platform.INSTAGRAM: dict(
        authorization_url="https://api.instagram.com/oauth/authorize",
        token_url="https://api.instagram.com/oauth/access_token",
        scope="user_profile,user_media",
        profile_url="https://graph.instagram.com/me?fields=id,username",
        parse_profile=_instagram_profile,
        revoke_url="https://graph.facebook.com/v18.0/me/permissions",
    ),
    Platform.FACEBOOK: dict(
        authorization_url="https://www.facebook.com/v18.0/dialog/oauth",
        token_url="https://graph.facebook.com/v18.0/oauth/access_token",
        scope="pages_show_list,pages_read_engagement,pages_manage_posts,publish_to_groups",
        profile_url="https://graph.facebook.com/me?fields=id,name",
        parse_profile=_facebook_profile,
        revoke_url="https://graph.facebook.com/v18.0/me/permissions",
    ),
    Platform.TIKTOK: dict(
        authorization_url="https://www.tiktok.com/auth/authorize/",
        token_url="https://open-api.tiktok.com/oauth/access_token/",
        scope="user.info.basic,video.upload,video.publish",
        profile_url="https://open-api.tiktok.com/user/info/?fields=open_id,union_id,avatar_url,display_name",
        parse_profile=_tiktok_profile,
        client_id_param="client_key",
    ),
}


def redirect_uri_for(app_origin: str, platform: Platform) -> str:
    return f"{app_origin.rstrip('/')}/auth/callback/{platform.value}"


def parse_platform(platform) -> Platform:
    """Coerce a platform name to ``Platform``, raising ``UnsupportedPlatform``."""
    if isinstance(platform, Platform):
        return platform
    try:
        return Platform(str(platform).lower())
    except ValueError:
        raise UnsupportedPlatform(str(platform))


def get_platform_config(platform, settings) -> PlatformOAuthConfig:
    platform = parse_platform(platform)
    static = _PLATFORMS.get(platform)
    if static is None:
        raise UnsupportedPlatform(platform.value)

    client_id, client_secret = settings.client_credentials(platform.value)
    return PlatformOAuthConfig(
        platform=platform,
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri_for(settings.app_origin, platform),
        **static,
    )
