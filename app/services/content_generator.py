import logging
from openai import OpenAI
from app.models import Platform

logger = logging.getLogger(__name__)

CHARACTER_LIMITS = {
    Platform.TWITTER: 280,
    Platform.LINKEDIN: 3000,
    Platform.INSTAGRAM: 2200,
    Platform.FACEBOOK: 63206,
    Platform.TIKTOK: 2200,
}


class ContentGenerator:
    def __init__(self, client: OpenAI, model: str = "gpt-4o-mini"):
        self.client = client
        self.model = model

    def build_prompt(self, prompt: str, platform: Platform, tone: str) -> str:
        limit = CHARACTER_LIMITS[platform]
        return f"""Write a single social media post for {platform.value} about:

{prompt}

Requirements for {platform.value}:
- {tone} tone
- Include relevant emoji and at most 3 hashtags
- No generic corporate speak
- Keep under {limit} characters
- Return only the post text
"""

    def generate_draft(self, prompt: str, platform: Platform = Platform.TWITTER, tone: str = "friendly") -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": self.build_prompt(prompt, platform, tone)}],
            max_tokens=400,
        )

        content = (response.choices[0].message.content or "").strip().strip('"')
        limit = CHARACTER_LIMITS[platform]
        if len(content) > limit:
            logger.info("Draft for %s was %s characters, truncating to %s", platform.value, len(content), limit)
            content = content[:limit - 1].rstrip() + "…"
        return content
