from app.models import Platform, PostContent, PublishResult
from app.publishing.base import PublishAdapter

UGC_POSTS_URL = "https://api.linkedin.com/v2/ugcPosts"
POST_URL_TEMPLATE = "https://www.linkedin.com/feed/update/{id}"


def author_urn(account_identifier: str) -> str:
    if account_identifier.startswith("urn:li:"):
        return account_identifier
    return f"urn:li:person:{account_identifier}"


class LinkedInAdapter(PublishAdapter):
    platform = Platform.LINKEDIN
    default_error = "Failed to post to LinkedIn"

    def error_from_body(self, body: dict):
        return body.get("message")

    async def _publish(self, access_token: str, content: PostContent, account_identifier: str) -> PublishResult:
        linkedin_payload = {
            "author": author_urn(account_identifier),
            "lifecycleState": "PUBLISHED",
            "specificContent": {
                "com.linkedin.ugc.ShareContent": {
                    "shareCommentary": {"text": content.text},
                    "shareMediaCategory": "NONE"
                }
            },
            "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"}
        }

        response = await self._post(
            UGC_POSTS_URL,
            json=linkedin_payload,
            headers={
                "Authorization": f"Bearer {access_token}",
                "X-Restli-Protocol-Version": "2.0.0",
                "Content-Type": "application/json"
            }
        )

        # The id comes back in the body or, for 201 with an empty body, in a header
        post_id = response.headers.get("x-restli-id")
        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}
        if isinstance(body, dict):
            post_id = body.get("id") or post_id
        return PublishResult.ok(post_id, POST_URL_TEMPLATE.format(id=post_id) if post_id else None)
