"""Gemini-backed threat classifier via langchain-google-genai.

The LLM is built by an injectable factory so tests can hand in a mock
whose ``ainvoke`` returns a canned reply.  Provider exceptions are mapped
onto the ClassifierError taxonomy by HTTP status where one can be found.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Callable

from langchain_core.messages import HumanMessage, SystemMessage

from threat_lens.classifier.base import ThreatClassifier
from threat_lens.classifier.parsers import ResponseParser
from threat_lens.config import settings
from threat_lens.domain.errors import (
    ClassifierError,
    ClassifierPaymentRequired,
    ClassifierRateLimited,
    ClassifierRequestFailed,
    ClassifierTimeout,
    ClassifierUnavailable,
)

logger = logging.getLogger(__name__)

LLMFactory = Callable[[], Any]  # Returns a langchain BaseChatModel


def _default_llm_factory():
    """Create a Gemini chat model from environment config."""
    from langchain_google_genai import ChatGoogleGenerativeAI

    api_key = os.environ.get("GOOGLE_API_KEY") or os.environ.get("THREAT_LENS_GEMINI_API_KEY")
    if not api_key:
        raise ClassifierUnavailable(
            "Gemini API key not found. Set GOOGLE_API_KEY or THREAT_LENS_GEMINI_API_KEY "
            "in your environment variables."
        )

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=api_key,
        temperature=settings.gemini_temperature,
        max_output_tokens=settings.gemini_max_output_tokens,
    )


# ── Provider error mapping ──────────────────────────────────────────────────

_RATE_LIMIT_MARKERS = ("429", "resource_exhausted", "resource exhausted", "rate limit", "quota")
_PAYMENT_MARKERS = ("402", "payment required")


def _status_code(exc: BaseException) -> int | None:
    """Best-effort HTTP status from a provider exception or its causes."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        for attr in ("status_code", "code", "http_status"):
            value = getattr(current, attr, None)
            if isinstance(value, int) and 100 <= value < 600:
                return value
        response = getattr(current, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            return value
        current = current.__cause__ or current.__context__
    return None


def map_provider_error(exc: Exception) -> ClassifierError:
    """Translate an arbitrary LLM client exception into a ClassifierError."""
    status = _status_code(exc)
    message = str(exc).lower()

    if status == 429 or (status is None and any(m in message for m in _RATE_LIMIT_MARKERS)):
        return ClassifierRateLimited("Rate limit exceeded, please try again later.")
    if status == 402 or (status is None and any(m in message for m in _PAYMENT_MARKERS)):
        return ClassifierPaymentRequired("Payment required, please add credits.")
    if status in (401, 403):
        return ClassifierUnavailable(f"Classifier rejected credentials (HTTP {status})")
    return ClassifierRequestFailed(f"Classifier call failed: {exc}", status_code=status)


# ── Classifier ──────────────────────────────────────────────────────────────

class GeminiThreatClassifier(ThreatClassifier):
    """Consults a Gemini chat model for a structured threat verdict.

    Args:
        llm_factory: Zero-argument callable returning a chat model.  Defaults
            to ChatGoogleGenerativeAI configured from settings.
        parser: Reply parser; defaults to the tolerant first-JSON-block parser.
        timeout: Seconds to wait for a reply before raising ClassifierTimeout.
    """

    def __init__(
        self,
        llm_factory: LLMFactory | None = None,
        parser: ResponseParser | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(parser)
        self._llm_factory = llm_factory or _default_llm_factory
        self._timeout = timeout or settings.classifier_timeout_seconds

    @property
    def name(self) -> str:
        return "gemini"

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        llm = self._llm_factory()
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]

        try:
            response = await asyncio.wait_for(llm.ainvoke(messages), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Classifier timed out after %.1fs", self._timeout)
            raise ClassifierTimeout(f"No classifier reply within {self._timeout:.1f}s") from exc
        except ClassifierError:
            raise
        except Exception as exc:
            mapped = map_provider_error(exc)
            logger.error("Classifier error (%s): %s", type(mapped).__name__, exc)
            raise mapped from exc

        content = response.content if hasattr(response, "content") else response
        if isinstance(content, list):
            # Multi-part replies: keep the text parts only.
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        text = "" if content is None else str(content)
        logger.info("Classifier reply length: %d chars", len(text))
        return text
