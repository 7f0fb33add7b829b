"""
Content Moderation Service

DeepSeek uses OpenAI-compatible API, so we use the openai library.

AI is used ONLY to judge whether user text is safe to store:
- profile bios
- mentor request notes
- chat messages

Any transport or parse failure is reported as ModerationUnavailable.
What happens next is decided per call site by a ModerationPolicy:
- blocking: the caller's operation fails
- advisory: a warning is logged and the operation proceeds
An unsafe verdict is always rejected, whatever the policy.
"""
import json
import logging
from enum import Enum
from typing import NamedTuple

from openai import OpenAI, OpenAIError

from campuslink.core.config import get_settings
from campuslink.core.exceptions import ContentRejected, ModerationUnavailable

logger = logging.getLogger(__name__)

settings = get_settings()


class ModerationContext(str, Enum):
    profile = "profile"
    message = "message"
    chat = "chat"


class ModerationPolicy(str, Enum):
    blocking = "blocking"
    advisory = "advisory"


class ModerationResult(NamedTuple):
    safe: bool
    reason: str = ""


SYSTEM_PROMPT = """You moderate a campus mentorship app used by students.
Decide whether the text is safe to show to another student.
Unsafe: harassment, hate, threats, sexual content, self-harm encouragement, sharing personal contact data of others, spam.
Context of the text: {context}.
Return ONLY valid JSON: {{"safe": true or false, "reason": "short reason, empty if safe"}}"""


class ModerationService:
    """
    Wrapper for the DeepSeek chat API that returns a moderation verdict.
    """

    def __init__(self, client: OpenAI = None, model: str = None):
        self.model = model or settings.moderation_model
        self.client = client
        if self.client is None and settings.deepseek_api_key:
            self.client = OpenAI(
                api_key=settings.deepseek_api_key,
                base_url=settings.deepseek_base_url
            )

    def _call_api(self, system_prompt: str, user_content: str, max_tokens: int = 100) -> str:
        """
        Internal method to call DeepSeek API.
        Returns raw text response.
        """
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content}
            ],
            max_tokens=max_tokens,
            temperature=0  # Same text, same verdict
        )
        return response.choices[0].message.content

    def _extract_json(self, text: str) -> dict:
        """
        Extract JSON from API response.
        Handles cases where model wraps JSON in markdown code blocks.
        """
        text = (text or "").strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]

        return json.loads(text.strip())

    def moderate(self, text: str, context: ModerationContext) -> ModerationResult:
        """
        Judge `text`. Raises ModerationUnavailable if no verdict could be obtained.
        """
        if self.client is None:
            raise ModerationUnavailable("Moderation API key not configured")

        try:
            response = self._call_api(
                SYSTEM_PROMPT.format(context=ModerationContext(context).value),
                text
            )
            verdict = self._extract_json(response)
        except (OpenAIError, ValueError) as e:
            raise ModerationUnavailable(f"Moderation failed: {e}") from e

        if not isinstance(verdict, dict) or not isinstance(verdict.get("safe"), bool):
            raise ModerationUnavailable("Moderation returned an unexpected verdict")

        return ModerationResult(safe=verdict["safe"], reason=str(verdict.get("reason") or ""))

    def test_connection(self) -> bool:
        """Test if the moderation API is reachable"""
        try:
            self.moderate("Hello, nice to meet you!", ModerationContext.chat)
            return True
        except ModerationUnavailable as e:
            logger.error("DeepSeek connection failed: %s", e)
            return False


def enforce_moderation(
    moderator: ModerationService,
    text: str,
    context: ModerationContext,
    policy: ModerationPolicy
) -> None:
    """
    Run `text` through the moderator under `policy`.

    Raises ContentRejected on an unsafe verdict. Raises ModerationUnavailable
    only under the blocking policy.
    """
    try:
        result = moderator.moderate(text, context)
    except ModerationUnavailable as e:
        if ModerationPolicy(policy) is ModerationPolicy.blocking:
            raise
        logger.warning("Moderation unavailable for %s content, allowing it: %s", ModerationContext(context).value, e)
        return

    if not result.safe:
        logger.info("Blocked %s content: %s", ModerationContext(context).value, result.reason)
        raise ContentRejected(result.reason or "content flagged as unsafe")


# Singleton instance
_moderation_service: ModerationService = None


def get_moderation_service() -> ModerationService:
    """Get or create moderation service (singleton pattern)"""
    global _moderation_service
    if _moderation_service is None:
        _moderation_service = ModerationService()
    return _moderation_service
