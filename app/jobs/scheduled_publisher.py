import asyncio
import logging
from datetime import datetime, timezone
from supabase import Client
from app.models import PostContent
from app.services.publisher import PublishDispatcher

logger = logging.getLogger(__name__)

POSTS_TABLE = "content_posts"


def final_status(results) -> str:
    succeeded = sum(1 for r in results if r.result.success)
    if succeeded == len(results):
        return "published"
    if succeeded:
        return "partial"
    return "failed"


async def publish_due_posts(supabase: Client, dispatcher: PublishDispatcher) -> int:
    """
    Publish every scheduled post whose time has come. Returns the number handled.
    """
    now = datetime.now(timezone.utc)

    posts_response = supabase.table(POSTS_TABLE)\
        .select("*")\
        .eq("status", "scheduled")\
        .lte("scheduled_for", now.isoformat())\
        .execute()

    posts = posts_response.data
    if not posts:
        return 0

    logger.info("Found %s scheduled posts due", len(posts))

    handled = 0
    for post in posts:
        account_ids = post.get("account_ids") or []
        if not account_ids:
            logger.warning("Scheduled post %s has no accounts, marking as failed", post["id"])
            supabase.table(POSTS_TABLE)\
                .update({"status": "failed", "results": []})\
                .eq("id", post["id"])\
                .eq("status", "scheduled")\
                .execute()
            handled += 1
            continue

        # Claim only while still scheduled; an empty result means another run took it
        claim = supabase.table(POSTS_TABLE)\
            .update({"status": "publishing"})\
            .eq("id", post["id"])\
            .eq("status", "scheduled")\
            .execute()
        if not claim.data:
            logger.info("Scheduled post %s already claimed, skipping", post["id"])
            continue

        content = PostContent(
            text=post["content"],
            media_url=post.get("media_url"),
            media_type=post.get("media_type"),
        )
        results = await dispatcher.publish_to_many(account_ids, content, user_id=post.get("user_id"))
        status = final_status(results)

        supabase.table(POSTS_TABLE)\
            .update({
                "status": status,
                "published_at": datetime.now(timezone.utc).isoformat() if status != "failed" else None,
                "results": [r.model_dump(mode="json") for r in results],
            })\
            .eq("id", post["id"])\
            .execute()

        logger.info("Scheduled post %s finished as %s", post["id"], status)
        handled += 1

    return handled


async def run_scheduled_publisher(supabase: Client, dispatcher: PublishDispatcher, interval_seconds: int = 60):
    """
    Run the scheduled publisher every interval
    """
    logger.info("Scheduled publisher started, checking every %s seconds", interval_seconds)
    while True:
        try:
            await publish_due_posts(supabase, dispatcher)
        except Exception:
            logger.exception("Error in scheduled publisher")

        await asyncio.sleep(interval_seconds)
