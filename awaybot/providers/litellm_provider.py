"""LiteLLM provider implementation for multi-provider support."""

import os
import time
from dataclasses import dataclass
from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from awaybot.providers.base import GenerationError, LLMProvider, LLMResponse


@dataclass
class ProviderHealth:
    """Health status of a model."""
    healthy: bool = True
    last_failure: float = 0.0
    failure_count: int = 0
    cooldown_until: float = 0.0
    last_error: str = ""

    def mark_failed(self, error: str, cooldown_seconds: int = 300) -> None:
        """Mark as failed and start cooldown."""
        self.healthy = False
        self.last_failure = time.time()
        self.failure_count += 1
        self.cooldown_until = time.time() + cooldown_seconds
        self.last_error = error

    def mark_success(self) -> None:
        """Mark as healthy after successful call."""
        self.healthy = True
        self.failure_count = 0
        self.last_error = ""

    def is_available(self) -> bool:
        """Check if available (healthy or cooldown expired)."""
        if self.healthy:
            return True
        return time.time() >= self.cooldown_until


class LiteLLMProvider(LLMProvider):
    """
    LLM provider using LiteLLM.

    Defaults to Groq-hosted Llama; any LiteLLM model string works. Models
    are tried in order (primary, then fallbacks), skipping models still in
    cooldown after a failure.
    """

    # Environment variable LiteLLM reads for each model prefix
    PROVIDER_ENV_KEYS = {
        "groq/": "GROQ_API_KEY",
        "openrouter/": "OPENROUTER_API_KEY",
        "anthropic/": "ANTHROPIC_API_KEY",
        "openai/": "OPENAI_API_KEY",
        "deepseek/": "DEEPSEEK_API_KEY",
    }

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "groq/llama-3.3-70b-versatile",
        fallback_models: list[str] | None = None,
        cooldown_seconds: int = 300,
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        self.fallback_models = fallback_models or []
        self.cooldown_seconds = cooldown_seconds

        # Health tracking (per model)
        self._model_health: dict[str, ProviderHealth] = {}

        # Usage tracking
        self._total_tokens = 0
        self._request_count = 0

        self._configure_environment(api_key)

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True

    def _configure_environment(self, api_key: str | None) -> None:
        """Expose the configured key under the variable LiteLLM expects."""
        if not api_key:
            return

        for prefix, env_key in self.PROVIDER_ENV_KEYS.items():
            if self.default_model.startswith(prefix):
                os.environ.setdefault(env_key, api_key)
                return

        os.environ.setdefault("OPENAI_API_KEY", api_key)

    def _get_model_health(self, model: str) -> ProviderHealth:
        """Get or create health tracking for a model."""
        if model not in self._model_health:
            self._model_health[model] = ProviderHealth()
        return self._model_health[model]

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Send a chat completion request via LiteLLM with failover.

        Raises:
            GenerationError: If every candidate model failed or is cooling down.
        """
        model = model or self.default_model
        models_to_try = [model] + [
            fb for fb in self.fallback_models if fb != model
        ]
        last_error = "no model available"

        for try_model in models_to_try:
            health = self._get_model_health(try_model)

            # Skip unhealthy models
            if not health.is_available():
                continue

            try:
                response = await self._call_model(
                    try_model, messages, max_tokens, temperature
                )
            except Exception as e:
                last_error = str(e)
                logger.warning(f"Model {try_model} failed: {e}")
                health.mark_failed(last_error, self.cooldown_seconds)
                continue

            health.mark_success()
            self._request_count += 1
            self._total_tokens += response.usage.get("total_tokens", 0)
            return response

        raise GenerationError(f"All models failed. Last error: {last_error}")

    async def _call_model(
        self,
        model: str,
        messages: list[dict[str, Any]],
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        """Make a single API call to a model."""
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        if self.api_base:
            kwargs["api_base"] = self.api_base

        response = await acompletion(**kwargs)
        return self._parse_response(response, model)

    def _parse_response(self, response: Any, model: str) -> LLMResponse:
        """Parse LiteLLM response into our standard format."""
        choice = response.choices[0] if response.choices else None
        content = choice.message.content if choice and choice.message else None

        usage = {}
        if hasattr(response, "usage") and response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=content,
            finish_reason=(choice.finish_reason if choice else None) or "stop",
            model=model,
            usage=usage,
        )

    def get_default_model(self) -> str:
        """Get the default model."""
        return self.default_model

    def get_stats(self) -> dict[str, Any]:
        """Get usage statistics."""
        return {
            "request_count": self._request_count,
            "total_tokens": self._total_tokens,
            "unhealthy_models": [
                m for m, h in self._model_health.items() if not h.is_available()
            ],
        }
