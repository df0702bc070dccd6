"""Tests for provider settings resolution and the runner."""

from __future__ import annotations

from typing import List

import pytest

from specgen.config import LLMConfig
from specgen.llm import CliTransport, HttpTransport, LLMError, LLMRequest, LLMRunner, ProviderSettings
from specgen.llm.runner import DEFAULT_BASE_URL, DEFAULT_MODEL


class RecordingTransport:
    def __init__(self, reply: str = "  response\n") -> None:
        self.reply = reply
        self.requests: List[LLMRequest] = []

    def __call__(self, request: LLMRequest) -> str:
        self.requests.append(request)
        return self.reply


def test_settings_fall_back_to_builtin_defaults() -> None:
    settings = ProviderSettings.resolve(environ={})

    assert settings.model == DEFAULT_MODEL
    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.api_key is None
    assert settings.temperature == 0.2


def test_environment_overrides_defaults_and_config_overrides_environment() -> None:
    environ = {
        "SPECGEN_LLM_MODEL": "env-model",
        "OPENAI_BASE_URL": "http://example.test/v1/",
        "OPENAI_API_KEY": "openai-key",
        "SPECGEN_LLM_API_KEY": "specgen-key",
    }

    from_env = ProviderSettings.resolve(environ=environ)
    layered = ProviderSettings.resolve(LLMConfig(model="cfg-model", max_tokens=64), environ=environ)

    assert (from_env.model, from_env.base_url, from_env.api_key) == (
        "env-model",
        "http://example.test/v1",
        "specgen-key",
    )
    assert (layered.model, layered.max_tokens, layered.base_url) == ("cfg-model", 64, "http://example.test/v1")


@pytest.mark.parametrize(
    "config",
    [LLMConfig(transport="cli", base_url="http://localhost:1/v1"), LLMConfig(base_url="")],
)
def test_cli_transport_is_selected_without_base_url(config: LLMConfig) -> None:
    settings = ProviderSettings.resolve(config, environ={})
    runner = LLMRunner(settings)

    assert settings.base_url is None
    assert isinstance(runner.transport, CliTransport)


def test_http_transport_is_the_default() -> None:
    runner = LLMRunner(ProviderSettings.resolve(environ={}))

    assert isinstance(runner.transport, HttpTransport)
    assert runner.transport.timeout == 60.0


def test_run_builds_request_from_settings() -> None:
    transport = RecordingTransport()
    settings = ProviderSettings(model="coder", base_url=None, temperature=0.15, max_tokens=256)

    result = LLMRunner(settings, transport=transport).run("Hello world", system="system message")

    assert result == "response"
    assert transport.requests == [
        LLMRequest(
            prompt="Hello world",
            system="system message",
            model="coder",
            temperature=0.15,
            max_tokens=256,
            base_url=None,
            api_key=None,
        )
    ]


def test_per_call_values_override_settings() -> None:
    transport = RecordingTransport()
    runner = LLMRunner(ProviderSettings(model="default", max_tokens=100), transport=transport)

    runner.run("prompt", model="other", temperature=0.0, max_tokens=10)

    request = transport.requests[0]
    assert (request.model, request.temperature, request.max_tokens) == ("other", 0.0, 10)


def test_blank_completion_is_an_error() -> None:
    runner = LLMRunner(ProviderSettings(), transport=RecordingTransport(" \n"))

    with pytest.raises(LLMError, match="empty completion"):
        runner.run("prompt")


def test_from_config_passes_transport_through() -> None:
    transport = RecordingTransport()

    runner = LLMRunner.from_config(None, transport=transport)

    assert runner.transport is transport
