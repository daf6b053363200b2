from typing import Dict
import httpx
from app.errors import UnsupportedPlatform
from app.models import Platform
from app.oauth.platforms import parse_platform
from app.publishing.base import PublishAdapter
from app.publishing.facebook import FacebookAdapter
from app.publishing.instagram import InstagramAdapter
from app.publishing.linkedin import LinkedInAdapter
from app.publishing.twitter import TwitterAdapter

ADAPTER_CLASSES = (TwitterAdapter, LinkedInAdapter, FacebookAdapter, InstagramAdapter)


class AdapterRegistry:
    def __init__(self, adapters: Dict[Platform, PublishAdapter]):
        self._adapters = dict(adapters)

    @classmethod
    def default(cls, http_client: httpx.AsyncClient) -> "AdapterRegistry":
        return cls({adapter.platform: adapter(http_client) for adapter in ADAPTER_CLASSES})

    def get(self, platform) -> PublishAdapter:
        platform = parse_platform(platform)
        adapter = self._adapters.get(platform)
        if adapter is None:
            raise UnsupportedPlatform(platform.value)
        return adapter

    def platforms(self):
        return list(self._adapters)
