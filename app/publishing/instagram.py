import logging
from app.errors import MissingRequiredMedia
from app.models import Platform, PostContent, PublishResult
from app.publishing.base import PublishAdapter

logger = logging.getLogger(__name__)

GRAPH_URL = "https://graph.instagram.com/v18.0"


class InstagramAdapter(PublishAdapter):
    """
    Two-phase publish: create a media container, then publish it by container id.
    A container that was created but never published is not a post.
    """

    platform = Platform.INSTAGRAM
    default_error = "Failed to publish Instagram post"

    async def _publish(self, access_token: str, content: PostContent, ig_user_id: str) -> PublishResult:
        if not content.media_url:
            raise MissingRequiredMedia(self.platform.value)

        # Step 1: create media container
        container = {"caption": content.text, "access_token": access_token}
        if content.media_type == "video":
            container["media_type"] = "REELS"
            container["video_url"] = content.media_url
        else:
            container["image_url"] = content.media_url

        created = await self._post(
            f"{GRAPH_URL}/{ig_user_id}/media",
            default_error="Failed to create Instagram media",
            json=container,
        )
        creation_id = created.json()["id"]
        logger.info("Created Instagram media container %s", creation_id)

        # Step 2: publish container
        published = await self._post(
            f"{GRAPH_URL}/{ig_user_id}/media_publish",
            json={"creation_id": creation_id, "access_token": access_token},
        )
        return PublishResult.ok(published.json()["id"])
