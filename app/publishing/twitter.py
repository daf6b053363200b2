import logging

from app.models import Platform, PostContent, PublishResult
from app.publishing.base import PublishAdapter

TWEETS_URL = "https://api.twitter.com/2/tweets"
TWEET_URL_TEMPLATE = "https://twitter.com/i/web/status/{id}"

logger = logging.getLogger(__name__)


class TwitterAdapter(PublishAdapter):
    platform = Platform.TWITTER
    default_error = "Failed to post to Twitter"
    requires_account_identifier = False

    def error_from_body(self, body: dict):
        errors = body.get("errors")
        if body.get("detail"):
            return body["detail"]
        if isinstance(errors, list) and errors:
            return errors[0].get("message")
        return body.get("title")

    async def _publish(self, access_token: str, content: PostContent, account_identifier: str) -> PublishResult:
        response = await self._post(
            TWEETS_URL,
            json={"text": content.text},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        # The tweet is live once the call succeeds, even if the body is unreadable
        try:
            tweet_id = response.json()["data"]["id"]
        except (ValueError, KeyError, TypeError):
            logger.warning("Tweet created but response had no id: %s", response.text[:200])
            return PublishResult.ok(None)
        return PublishResult.ok(tweet_id, TWEET_URL_TEMPLATE.format(id=tweet_id))
