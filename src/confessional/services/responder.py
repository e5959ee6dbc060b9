"""Supportive AI responses that never see confession content.

The server cannot decrypt confessions, so the language model is only told
that someone shared something personal and asked for a short, warm
acknowledgement. Any failure falls back to a fixed message.
"""

from __future__ import annotations

import logging
from typing import Any, Final

import httpx

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION: Final[str] = "2023-06-01"
MAX_RESPONSE_TOKENS: Final[int] = 1024

SUPPORT_PROMPT: Final[str] = (
    "Someone just shared a personal confession with me. Respond with a brief, warm, "
    "non-judgmental message (2-3 sentences) that makes them feel heard and supported, "
    "without asking questions or giving advice. Just acknowledge their courage in sharing."
)
FALLBACK_RESPONSE: Final[str] = (
    "Thank you for sharing. Your words matter, and I'm here to listen without judgment."
)


class SupportResponder:
    """Thin client for the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str | None,
        model: str,
        base_url: str = "https://api.anthropic.com",
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the responder.

        Args:
            api_key: Anthropic API key; without one every call falls back.
            model: Model name sent with each request.
            base_url: API root, overridable for proxies and tests.
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport, used by tests.
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def respond(self) -> str:
        """Return a short supportive message, or the fallback on any failure."""
        if not self.enabled:
            return FALLBACK_RESPONSE

        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": MAX_RESPONSE_TOKENS,
            "messages": [{"role": "user", "content": SUPPORT_PROMPT}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post("/v1/messages", json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
            return str(data["content"][0]["text"])
        except httpx.HTTPStatusError as exc:
            logger.warning("AI response request failed with status %d", exc.response.status_code)
        except httpx.HTTPError as exc:
            logger.warning("AI response request failed: %s", type(exc).__name__)
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning("AI response payload was malformed")
        return FALLBACK_RESPONSE
