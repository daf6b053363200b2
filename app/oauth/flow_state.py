import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple
from app.errors import FlowExpired, MissingVerifier

logger = logging.getLogger(__name__)


@dataclass
class OAuthFlowState:
    state: str
    code_verifier: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self, ttl: timedelta, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.created_at + ttl


class FlowStateStore:
    """
    In-flight authorization attempts keyed by (session, platform).

    Single process, in memory (use Redis when running more than one worker).
    Starting a new attempt for the same key replaces the previous one, whose
    callback then fails with StateMismatch.
    """

    def __init__(self, ttl_seconds: int = 600):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._flows: Dict[Tuple[str, str], OAuthFlowState] = {}

    def put(self, session_id: str, platform: str, flow: OAuthFlowState) -> None:
        key = (session_id, platform)
        if key in self._flows:
            logger.warning("Replacing in-flight %s authorization for session %s", platform, session_id)
        self._purge_expired()
        self._flows[key] = flow

    def get(self, session_id: str, platform: str) -> OAuthFlowState:
        """Return the live flow, raising MissingVerifier/FlowExpired when there is none"""
        key = (session_id, platform)
        flow = self._flows.get(key)
        if flow is None:
            raise MissingVerifier()
        if flow.is_expired(self.ttl):
            del self._flows[key]
            raise FlowExpired()
        return flow

    def discard(self, session_id: str, platform: str) -> None:
        self._flows.pop((session_id, platform), None)

    def __contains__(self, key) -> bool:
        return key in self._flows

    def __len__(self) -> int:
        return len(self._flows)

    def _purge_expired(self) -> None:
        now = datetime.now(timezone.utc)
        for key in [k for k, f in self._flows.items() if f.is_expired(self.ttl, now)]:
            del self._flows[key]
