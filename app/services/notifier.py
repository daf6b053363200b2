import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Set
import httpx

logger = logging.getLogger(__name__)


class EventNotifier:
    """
    Fire-and-forget webhook for side notifications (account connected, post
    published). ``notify`` returns immediately; delivery failures are only logged.
    """

    def __init__(self, webhook_url: str, http_client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.http = http_client
        self.timeout = timeout
        self._pending: Set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def notify(self, event: str, **payload) -> Optional[asyncio.Task]:
        if not self.enabled:
            return None

        body = {"event": event, "timestamp": datetime.now(timezone.utc).isoformat(), **payload}
        task = asyncio.get_running_loop().create_task(self._send(body))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self, body: dict) -> bool:
        try:
            if self.http is not None:
                response = await self.http.post(self.webhook_url, json=body, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(self.webhook_url, json=body, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.warning("Webhook error for %s: %s", body["event"], e)
            return False

        if response.status_code >= 400:
            logger.warning("Webhook for %s answered %s: %s", body["event"], response.status_code, response.text[:200])
            return False
        return True

    async def drain(self):
        """Wait for in-flight notifications (shutdown and tests)"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
