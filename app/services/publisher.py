"""
Publish dispatcher: account -> valid token -> platform adapter -> publication record.
"""
import asyncio
import logging
from typing import List, Optional
from app.errors import AccountNotFound, MissingAccountIdentifier, SocialCoreError
from app.models import AccountPublishResult, PostContent, PublicationRecord, PublishResult
from app.publishing.registry import AdapterRegistry
from app.services.credential_store import PublicationStore
from app.services.notifier import EventNotifier
from app.services.token_manager import TokenLifecycleManager

logger = logging.getLogger(__name__)


class PublishDispatcher:
    def __init__(
        self,
        tokens: TokenLifecycleManager,
        adapters: AdapterRegistry,
        publications: PublicationStore,
        notifier: Optional[EventNotifier] = None,
    ):
        self.tokens = tokens
        self.adapters = adapters
        self.publications = publications
        self.notifier = notifier

    async def publish(self, account_id: str, content: PostContent, user_id: Optional[str] = None) -> PublishResult:
        """
        Publish to one account. Raises AccountNotFound, UnsupportedPlatform,
        MissingAccountIdentifier and the token errors before any platform call;
        the adapter outcome itself is always returned as a PublishResult.

        With ``user_id`` set, accounts owned by someone else are treated as missing.
        """
        account = self.tokens.load(account_id)
        if user_id is not None and account.user_id != user_id:
            raise AccountNotFound(account_id)

        adapter = self.adapters.get(account.platform)
        if adapter.requires_account_identifier and not account.platform_user_id:
            raise MissingAccountIdentifier(account.platform)
        access_token = await self.tokens.token_for(account)

        result = await adapter.publish(access_token, content, account.platform_user_id)
        if not result.success:
            return result

        try:
            self.publications.insert(PublicationRecord(
                account_id=account_id,
                content=content.text,
                media_url=content.media_url,
                media_type=content.media_type,
                external_post_id=result.post_id,
                post_url=result.post_url,
            ))
        except Exception:
            # The post is live; a missing record does not make it a failure
            logger.exception("Published to %s (post %s) but failed to record publication for account %s",
                             account.platform, result.post_id, account_id)

        if self.notifier:
            self.notifier.notify(
                "post_published",
                accountId=account_id,
                platform=account.platform,
                postId=result.post_id,
                postUrl=result.post_url,
            )
        return result

    async def _publish_captured(self, account_id: str, content: PostContent, user_id: Optional[str]) -> AccountPublishResult:
        try:
            result = await self.publish(account_id, content, user_id=user_id)
        except SocialCoreError as e:
            logger.warning("Publish to account %s failed: %s", account_id, e.message)
            result = PublishResult.failed(e.message, e.code)
        except Exception as e:
            logger.exception("Unexpected error publishing to account %s", account_id)
            result = PublishResult.failed(str(e) or "Failed to publish post")
        return AccountPublishResult(account_id=account_id, result=result)

    async def publish_to_many(self, account_ids: List[str], content: PostContent, user_id: Optional[str] = None) -> List[AccountPublishResult]:
        """Publish to every account concurrently; one result per account id, in input order"""
        results = await asyncio.gather(*[
            self._publish_captured(account_id, content, user_id) for account_id in account_ids
        ])
        succeeded = sum(1 for r in results if r.result.success)
        logger.info("Published to %s of %s accounts", succeeded, len(results))
        return list(results)
