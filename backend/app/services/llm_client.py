"""
Anthropic-backed AI collaborator.

Everything vendor-specific (request shape, tool definitions, response blocks,
SDK exceptions) stays in this module. Callers see `generate()` and
`complete()` plus plain dataclasses, and only ever receive UpstreamError or
AIConfigurationError on failure.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    AsyncAnthropic,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)

from app.config import get_settings
from app.errors import AIConfigurationError, UpstreamError

logger = logging.getLogger(__name__)
settings = get_settings()

# Transient error types that warrant retrying
_RETRYABLE_ERRORS = (APIConnectionError, RateLimitError)
_OVERLOADED_STATUS = 529

_INLINE_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

WEB_SEARCH_UNAVAILABLE_MESSAGE = (
    "Web search is not enabled for the configured Anthropic API key. "
    "Enable web search in the Anthropic console or send the message without web search."
)
INVALID_KEY_MESSAGE = (
    "The configured ANTHROPIC_API_KEY was rejected by the AI service. "
    "Update the key and restart the server."
)


class ModelTier(str, Enum):
    STANDARD = "standard"
    WEB_SEARCH = "web_search"
    EXTENDED_REASONING = "extended_reasoning"


@dataclass
class Citation:
    url: str
    title: str
    snippet: str | None = None


@dataclass
class LLMReply:
    text: str
    citations: list[Citation] = field(default_factory=list)
    search_queries: list[str] = field(default_factory=list)


@dataclass
class HistoryTurn:
    """A prior chat message. `role` is "user" or "assistant"."""

    role: str
    content: str


@dataclass
class LoadedAttachment:
    """An attachment fetched from storage. `data` is None when the file is missing."""

    filename: str
    content_type: str
    data: bytes | None


def select_model_tier(web_search: bool, extended_reasoning: bool) -> ModelTier:
    """Extended reasoning wins over web search, which wins over the standard model."""
    if extended_reasoning:
        return ModelTier.EXTENDED_REASONING
    if web_search:
        return ModelTier.WEB_SEARCH
    return ModelTier.STANDARD


def model_for_tier(tier: ModelTier) -> str:
    if tier is ModelTier.EXTENDED_REASONING:
        return settings.llm_reasoning_model
    if tier is ModelTier.WEB_SEARCH:
        return settings.llm_search_model
    return settings.llm_model


async def _retry_anthropic(coro_factory, *, max_attempts: int = 3, base_delay: float = 1.0):
    """
    Retry an Anthropic API call with exponential backoff.

    Args:
        coro_factory: Callable that returns a new coroutine each invocation.
        max_attempts: Maximum number of attempts.
        base_delay: Base delay in seconds (doubles each retry).

    Returns:
        The result of the coroutine.
    """
    for attempt in range(max_attempts):
        try:
            return await coro_factory()
        except _RETRYABLE_ERRORS as e:
            if attempt == max_attempts - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Anthropic API transient error (attempt %d/%d), retrying in %.1fs: %s",
                attempt + 1, max_attempts, delay, str(e),
            )
            await asyncio.sleep(delay)
        except APIStatusError as e:
            # Only "overloaded" is retried among status errors
            if e.status_code != _OVERLOADED_STATUS or attempt == max_attempts - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Anthropic API overloaded (attempt %d/%d), retrying in %.1fs",
                attempt + 1, max_attempts, delay,
            )
            await asyncio.sleep(delay)
    raise UpstreamError()


# =============================================================================
# REQUEST BUILDING
# =============================================================================


def _attachment_blocks(attachments: list[LoadedAttachment]) -> list[dict[str, Any]]:
    blocks: list[dict[str, Any]] = []
    for attachment in attachments:
        if attachment.data is None:
            blocks.append({"type": "text", "text": f"[Attached file: {attachment.filename} (file not found)]"})
        elif attachment.content_type in _INLINE_IMAGE_TYPES:
            blocks.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": attachment.content_type,
                    "data": base64.b64encode(attachment.data).decode("ascii"),
                },
            })
        elif attachment.content_type == "application/pdf":
            blocks.append({
                "type": "document",
                "source": {
                    "type": "base64",
                    "media_type": "application/pdf",
                    "data": base64.b64encode(attachment.data).decode("ascii"),
                },
            })
        elif attachment.content_type == "text/plain":
            text = attachment.data.decode("utf-8", errors="replace")
            blocks.append({"type": "text", "text": f"[Attached file: {attachment.filename}]\n{text}"})
        else:
            blocks.append({"type": "text", "text": f"[Attached file: {attachment.filename}]"})
    return blocks


def build_messages(
    history: list[HistoryTurn],
    message: str,
    attachments: list[LoadedAttachment] | None = None,
) -> list[dict[str, Any]]:
    """
    Build the Messages API payload.

    The API needs strictly alternating roles starting with "user", so runs of
    same-role turns are merged and leading assistant turns are dropped.
    """
    turns: list[dict[str, Any]] = []
    for turn in history:
        if not turn.content:
            continue
        if not turns and turn.role != "user":
            continue
        if turns and turns[-1]["role"] == turn.role:
            turns[-1]["content"] += "\n\n" + turn.content
        else:
            turns.append({"role": turn.role, "content": turn.content})

    new_content: list[dict[str, Any]] = _attachment_blocks(attachments or [])
    new_content.append({"type": "text", "text": message})

    if turns and turns[-1]["role"] == "user":
        previous = turns.pop()
        new_content.insert(0, {"type": "text", "text": previous["content"]})
    turns.append({"role": "user", "content": new_content})
    return turns


# =============================================================================
# RESPONSE PARSING
# =============================================================================


def parse_response(response: Any) -> LLMReply:
    """Extract text, web-search citations and search queries from a Messages API response."""
    text_parts: list[str] = []
    citations: list[Citation] = []
    result_citations: list[Citation] = []
    queries: list[str] = []

    for block in response.content:
        block_type = getattr(block, "type", None)
        if block_type == "text":
            text_parts.append(block.text)
            for cite in getattr(block, "citations", None) or []:
                if getattr(cite, "type", None) == "web_search_result_location":
                    citations.append(
                        Citation(url=cite.url, title=cite.title or cite.url, snippet=getattr(cite, "cited_text", None))
                    )
        elif block_type == "server_tool_use" and getattr(block, "name", None) == "web_search":
            query = (getattr(block, "input", None) or {}).get("query")
            if query:
                queries.append(query)
        elif block_type == "web_search_tool_result":
            content = getattr(block, "content", None)
            # An error result is a single object rather than a list
            if isinstance(content, list):
                for result in content:
                    if getattr(result, "type", None) == "web_search_result":
                        result_citations.append(Citation(url=result.url, title=result.title or result.url))

    deduped: list[Citation] = []
    seen: set[str] = set()
    for cite in citations or result_citations:
        if cite.url in seen:
            continue
        seen.add(cite.url)
        deduped.append(cite)

    return LLMReply(text="".join(text_parts).strip(), citations=deduped, search_queries=queries)


# =============================================================================
# CLIENT
# =============================================================================


class LLMClient:
    """Narrow interface over the Anthropic Messages API."""

    def __init__(self, api_key: str | None = None):
        self._api_key = api_key
        self._client: AsyncAnthropic | None = None

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            if not self._api_key:
                raise AIConfigurationError()
            self._client = AsyncAnthropic(
                api_key=self._api_key,
                timeout=settings.llm_timeout_seconds,
                max_retries=0,  # Retries are handled by _retry_anthropic
            )
        return self._client

    async def _create(self, *, web_search: bool = False, **kwargs: Any) -> Any:
        client = self.client
        try:
            return await _retry_anthropic(
                lambda: client.messages.create(**kwargs),
                max_attempts=settings.llm_max_attempts,
            )
        except PermissionDeniedError as e:
            logger.error("Anthropic API permission denied (web_search=%s): %s", web_search, e)
            raise AIConfigurationError(WEB_SEARCH_UNAVAILABLE_MESSAGE if web_search else INVALID_KEY_MESSAGE) from e
        except AuthenticationError as e:
            logger.error("Anthropic API rejected the configured key: %s", e)
            raise AIConfigurationError(INVALID_KEY_MESSAGE) from e
        except APIError as e:
            logger.exception("Anthropic API call failed")
            raise UpstreamError() from e

    async def generate(
        self,
        system_prompt: str,
        history: list[HistoryTurn],
        message: str,
        attachments: list[LoadedAttachment] | None = None,
        *,
        web_search: bool = False,
        extended_reasoning: bool = False,
    ) -> LLMReply:
        """
        Produce a chat reply.

        Args:
            system_prompt: Persona plus student profile
            history: Prior turns in chronological order
            message: The new user message
            attachments: Files attached to the new message
            web_search: Allow the model to search the web (citations returned)
            extended_reasoning: Use the reasoning model with a thinking budget

        Returns:
            LLMReply with the reply text, any citations and the search queries issued
        """
        tier = select_model_tier(web_search, extended_reasoning)
        kwargs: dict[str, Any] = {
            "model": model_for_tier(tier),
            "max_tokens": settings.llm_max_tokens,
            "system": system_prompt,
            "messages": build_messages(history, message, attachments),
        }
        if web_search:
            kwargs["tools"] = [{
                "type": "web_search_20250305",
                "name": "web_search",
                "max_uses": settings.llm_web_search_max_uses,
            }]
        if extended_reasoning:
            budget = settings.llm_thinking_budget_tokens
            kwargs["thinking"] = {"type": "enabled", "budget_tokens": budget}
            kwargs["max_tokens"] = settings.llm_max_tokens + budget

        logger.info("Generating chat reply with tier=%s model=%s", tier.value, kwargs["model"])
        response = await self._create(web_search=web_search, **kwargs)
        reply = parse_response(response)
        if not reply.text:
            logger.error("Anthropic API returned no text (stop_reason=%s)", getattr(response, "stop_reason", None))
            raise UpstreamError()
        return reply

    async def complete(self, prompt: str, *, max_tokens: int | None = None) -> str:
        """Single-shot completion for profile and recommendation prompts."""
        response = await self._create(
            model=settings.llm_model,
            max_tokens=max_tokens or settings.llm_max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        text = parse_response(response).text
        if not text:
            raise UpstreamError()
        return text


# Singleton instance
llm_client = LLMClient(api_key=settings.anthropic_api_key)
