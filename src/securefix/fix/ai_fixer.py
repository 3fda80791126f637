"""Generative rewrites through OpenAI, Groq or Anthropic."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from securefix.core.config import EngineConfig, SecureFixConfig
from securefix.core.errors import (
    AuthError,
    EngineUnavailable,
    GenerativeError,
    QuotaExceeded,
    TransportError,
)
from securefix.core.models import EngineId, Prompt

logger = logging.getLogger(__name__)

ClientFactory = Callable[[EngineId, str, float], Any]

# The three SDKs share exception class names.
_AUTH_ERRORS = {"AuthenticationError", "PermissionDeniedError"}
_QUOTA_ERRORS = {"RateLimitError"}
_TRANSPORT_ERRORS = {"APITimeoutError", "APIConnectionError", "TimeoutError"}


def create_client(engine: EngineId, api_key: str, timeout: float) -> Any:
    """Build the async SDK client for an engine. Retries are disabled."""
    if engine is EngineId.OPENAI:
        import openai

        return openai.AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
    if engine is EngineId.GROQ:
        import groq

        return groq.AsyncGroq(api_key=api_key, timeout=timeout, max_retries=0)
    if engine is EngineId.ANTHROPIC:
        import anthropic

        return anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
    raise EngineUnavailable(f"Unknown engine: {engine}")


def translate_provider_error(exc: BaseException) -> GenerativeError:
    """Map an SDK exception onto the SecureFix error taxonomy."""
    names = {cls.__name__ for cls in type(exc).__mro__}
    message = str(exc) or type(exc).__name__
    lowered = message.lower()

    if names & _AUTH_ERRORS or "authentication" in lowered or "api key" in lowered:
        return AuthError(message)
    if names & _QUOTA_ERRORS or "quota" in lowered or "rate limit" in lowered:
        return QuotaExceeded(message)
    if names & _TRANSPORT_ERRORS:
        return TransportError(message)
    return TransportError(f"{type(exc).__name__}: {message}")


class GenerativeRewriter:
    """Thin client: one prompt in, raw reply text out.

    No retries: a failure is reported immediately so the caller can fall
    back instead of waiting on backoff.
    """

    def __init__(
        self,
        config: SecureFixConfig,
        client_factory: ClientFactory | None = None,
    ):
        self.config = config
        self._client_factory = client_factory or create_client
        self._clients: dict[EngineId, Any] = {}

    def is_available(self, engine: EngineId) -> bool:
        return self.config.engine_available(engine)

    def _get_client(self, engine: EngineId, api_key: str) -> Any:
        """Lazy-initialize the SDK client for an engine."""
        if engine not in self._clients:
            self._clients[engine] = self._client_factory(
                engine, api_key, self.config.fix.timeout_seconds
            )
        return self._clients[engine]

    async def invoke(self, engine: EngineId, prompt: Prompt) -> str:
        engine_cfg = self.config.fix.engines.get(engine)
        if engine_cfg is None:
            raise EngineUnavailable(f"{engine.value} is not configured")
        api_key = self.config.api_key(engine)
        if not api_key:
            raise EngineUnavailable(f"{engine.value} is not configured (set {engine_cfg.api_key_env})")

        client = self._get_client(engine, api_key)
        logger.debug("Requesting rewrite from %s (%s)", engine.value, engine_cfg.model)

        try:
            return await asyncio.wait_for(
                self._complete(engine, client, engine_cfg, prompt),
                timeout=self.config.fix.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"{engine.value} did not answer within {self.config.fix.timeout_seconds}s"
            ) from e
        except GenerativeError:
            raise
        except Exception as e:
            raise translate_provider_error(e) from e

    async def _complete(
        self, engine: EngineId, client: Any, engine_cfg: EngineConfig, prompt: Prompt
    ) -> str:
        if engine is EngineId.ANTHROPIC:
            response = await client.messages.create(
                model=engine_cfg.model,
                system=prompt.system,
                messages=[{"role": "user", "content": prompt.user}],
                max_tokens=engine_cfg.max_tokens,
                temperature=engine_cfg.temperature,
            )
            return "".join(
                block.text for block in response.content if getattr(block, "type", "") == "text"
            )

        response = await client.chat.completions.create(
            model=engine_cfg.model,
            messages=[
                {"role": "system", "content": prompt.system},
                {"role": "user", "content": prompt.user},
            ],
            max_tokens=engine_cfg.max_tokens,
            temperature=engine_cfg.temperature,
            top_p=engine_cfg.top_p,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
