from app.models import Platform, PostContent, PublishResult
from app.publishing.base import PublishAdapter

GRAPH_URL = "https://graph.facebook.com/v18.0"
POST_URL_TEMPLATE = "https://www.facebook.com/{id}"


class FacebookAdapter(PublishAdapter):
    """Posts to a page; ``account_identifier`` is the page id."""

    platform = Platform.FACEBOOK
    default_error = "Failed to post to Facebook"

    async def _publish(self, access_token: str, content: PostContent, page_id: str) -> PublishResult:
        if content.media_url and content.media_type == "video":
            url = f"{GRAPH_URL}/{page_id}/videos"
            body = {"file_url": content.media_url, "description": content.text}
        elif content.media_url:
            url = f"{GRAPH_URL}/{page_id}/photos"
            body = {"url": content.media_url, "caption": content.text}
        else:
            url = f"{GRAPH_URL}/{page_id}/feed"
            body = {"message": content.text}
        body["access_token"] = access_token

        response = await self._post(url, json=body)
        try:
            data = response.json()
        except ValueError:
            data = {}
        post_id = (data.get("post_id") or data.get("id")) if isinstance(data, dict) else None
        return PublishResult.ok(post_id, POST_URL_TEMPLATE.format(id=post_id) if post_id else None)
