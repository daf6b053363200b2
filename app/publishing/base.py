import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from app.errors import NetworkError, PublishFailed, SocialCoreError
from app.models import Platform, PostContent, PublishResult

logger = logging.getLogger(__name__)


class PublishAdapter(ABC):
    """
    Translates a PostContent into one platform's publish call.

    ``publish`` always returns a PublishResult: every failure, including a
    missing precondition or a network timeout, is captured into the result.
    Subclasses implement ``_publish`` and raise freely.
    """

    platform: Platform
    default_error = "Failed to publish post"
    requires_account_identifier = True

    def __init__(self, http_client: httpx.AsyncClient):
        self.http = http_client

    async def publish(self, access_token: str, content: PostContent, account_identifier: str) -> PublishResult:
        name = self.platform.value
        try:
            result = await self._publish(access_token, content, account_identifier)
        except SocialCoreError as e:
            logger.warning("Publish to %s failed: %s", name, e.message)
            return PublishResult.failed(e.message, e.code)
        except httpx.TimeoutException:
            logger.warning("Publish to %s timed out", name)
            return PublishResult.failed(f"Request to {name} timed out", NetworkError.code)
        except httpx.HTTPError as e:
            logger.warning("Publish to %s failed to connect: %s", name, e)
            return PublishResult.failed(f"Failed to reach {name}: {e}", NetworkError.code)
        except Exception as e:
            logger.exception("Unexpected error publishing to %s", name)
            return PublishResult.failed(str(e) or self.default_error)

        logger.info("Published to %s: %s", name, result.post_id)
        return result

    @abstractmethod
    async def _publish(self, access_token: str, content: PostContent, account_identifier: str) -> PublishResult:
        ...

    def error_from_body(self, body: dict) -> Optional[str]:
        """Platform-specific error message shape, Graph API style by default"""
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("message")
        if isinstance(error, str):
            return error
        return body.get("message")

    async def _post(self, url: str, default_error: Optional[str] = None, **kwargs) -> httpx.Response:
        response = await self.http.post(url, **kwargs)
        if not response.is_success:
            raise PublishFailed(self._extract_error(response, default_error or self.default_error))
        return response

    def _extract_error(self, response: httpx.Response, default_error: str) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None

        message = self.error_from_body(body) if isinstance(body, dict) else None
        if message:
            return message
        if response.text:
            return f"{default_error} (status {response.status_code}): {response.text[:300]}"
        return f"{default_error} (status {response.status_code})"
