"""Generation provider backed by a chat-completions endpoint or a local model CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple

from ..logging import get_logger
from .transports import CliTransport, HttpTransport, LLMError, LLMRequest, Transport

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..config import LLMConfig

DEFAULT_MODEL = "ai/qwen2.5-coder"
DEFAULT_BASE_URL = "http://localhost:12434/engines/v1"

# Checked in order; the OpenAI names let existing client setups work unchanged.
ENV_KEYS: Dict[str, Tuple[str, ...]] = {
    "model": ("SPECGEN_LLM_MODEL", "OPENAI_MODEL"),
    "base_url": ("SPECGEN_LLM_BASE_URL", "OPENAI_BASE_URL"),
    "api_key": ("SPECGEN_LLM_API_KEY", "OPENAI_API_KEY"),
}


@dataclass(frozen=True)
class ProviderSettings:
    """Connection and sampling defaults for one :class:`LLMRunner`.

    ``base_url=None`` selects the CLI transport.
    """

    model: str = DEFAULT_MODEL
    base_url: Optional[str] = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    executable: str = "ollama"
    temperature: Optional[float] = 0.2
    max_tokens: Optional[int] = None
    request_timeout: float = 60.0

    @classmethod
    def resolve(
        cls, config: LLMConfig | None = None, environ: Mapping[str, str] | None = None
    ) -> ProviderSettings:
        """Layer built-in defaults, then environment variables, then ``config``."""
        env = os.environ if environ is None else environ
        settings = cls(
            model=_first_set(env, ENV_KEYS["model"]) or DEFAULT_MODEL,
            base_url=_first_set(env, ENV_KEYS["base_url"]) or DEFAULT_BASE_URL,
            api_key=_first_set(env, ENV_KEYS["api_key"]),
        )
        if config is not None:
            fields = (
                "model",
                "base_url",
                "api_key",
                "executable",
                "temperature",
                "max_tokens",
                "request_timeout",
            )
            overrides = {
                name: getattr(config, name) for name in fields if getattr(config, name) is not None
            }
            settings = replace(settings, **overrides)
            if config.transport == "cli":
                settings = replace(settings, base_url=None)
        if settings.base_url:
            return replace(settings, base_url=settings.base_url.rstrip("/"))
        return replace(settings, base_url=None)


class LLMRunner:
    """Provider that sends prompts to the configured model runtime.

    ``transport`` replaces the wire layer entirely, which is how tests and
    alternative backends plug in.
    """

    def __init__(
        self, settings: ProviderSettings | None = None, *, transport: Transport | None = None
    ) -> None:
        self.settings = settings or ProviderSettings.resolve()
        if transport is None:
            if self.settings.base_url:
                transport = HttpTransport(self.settings.request_timeout)
            else:
                transport = CliTransport(self.settings.executable, self.settings.request_timeout)
        self.transport = transport
        self.logger = get_logger("llm")

    @classmethod
    def from_config(cls, config: LLMConfig | None, *, transport: Transport | None = None) -> LLMRunner:
        """Build a runner from the ``llm:`` section of .specgen.yml plus the environment."""
        return cls(ProviderSettings.resolve(config), transport=transport)

    def run(
        self,
        prompt: str,
        *,
        system: str | None = None,
        model: str | None = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Return the stripped completion text; per-call values beat the settings."""
        settings = self.settings
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=model or settings.model,
            temperature=settings.temperature if temperature is None else temperature,
            max_tokens=settings.max_tokens if max_tokens is None else max_tokens,
            base_url=settings.base_url,
            api_key=settings.api_key,
        )
        self.logger.debug(
            "Requesting completion from %s (model=%s, max_tokens=%s)",
            settings.base_url or settings.executable,
            request.model,
            request.max_tokens,
        )
        text = self.transport(request).strip()
        if not text:
            raise LLMError(f"Model {request.model} returned an empty completion")
        return text


def _first_set(environ: Mapping[str, str], keys: Tuple[str, ...]) -> Optional[str]:
    return next((environ[key] for key in keys if environ.get(key)), None)


__all__ = ["DEFAULT_BASE_URL", "DEFAULT_MODEL", "ENV_KEYS", "LLMRunner", "ProviderSettings"]
