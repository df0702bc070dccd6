"""Tests for the HTTP and CLI transports."""

from __future__ import annotations

import json
import subprocess

import pytest

from specgen.llm import CliTransport, HttpTransport, LLMError, LLMRequest
from specgen.llm.transports import completion_text


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _request(**overrides) -> LLMRequest:
    values = dict(
        prompt="Write code",
        system="Be precise",
        model="coder",
        temperature=0.05,
        max_tokens=128,
        base_url="http://localhost:12434/engines/v1",
        api_key="local-key",
    )
    values.update(overrides)
    return LLMRequest(**values)


def test_http_transport_posts_chat_payload(monkeypatch) -> None:
    captured: dict = {}

    def fake_urlopen(request, timeout=None):
        captured["url"] = request.full_url
        captured["headers"] = {key.lower(): value for key, value in request.header_items()}
        captured["payload"] = json.loads(request.data.decode("utf-8"))
        captured["timeout"] = timeout
        body = {"choices": [{"message": {"content": "// File: a.py\nx = 1\n"}}]}
        return FakeResponse(json.dumps(body).encode("utf-8"))

    monkeypatch.setattr("specgen.llm.transports.urlopen", fake_urlopen)

    text = HttpTransport(timeout=15.0)(_request())

    assert text == "// File: a.py\nx = 1\n"
    assert captured["url"] == "http://localhost:12434/engines/v1/chat/completions"
    assert captured["headers"]["authorization"] == "Bearer local-key"
    assert captured["payload"] == {
        "model": "coder",
        "messages": [
            {"role": "system", "content": "Be precise"},
            {"role": "user", "content": "Write code"},
        ],
        "temperature": 0.05,
        "max_tokens": 128,
    }
    assert captured["timeout"] == 15.0


def test_http_transport_omits_unset_options(monkeypatch) -> None:
    captured: dict = {}

    def fake_urlopen(request, timeout=None):
        captured["payload"] = json.loads(request.data.decode("utf-8"))
        captured["headers"] = {key.lower() for key, _ in request.header_items()}
        return FakeResponse(b'{"choices": [{"text": "legacy"}]}')

    monkeypatch.setattr("specgen.llm.transports.urlopen", fake_urlopen)

    text = HttpTransport()(_request(system=None, temperature=None, max_tokens=None, api_key=None))

    assert text == "legacy"
    assert captured["payload"] == {"model": "coder", "messages": [{"role": "user", "content": "Write code"}]}
    assert "authorization" not in captured["headers"]


def test_http_transport_rejects_non_json(monkeypatch) -> None:
    monkeypatch.setattr("specgen.llm.transports.urlopen", lambda request, timeout=None: FakeResponse(b"<html>"))

    with pytest.raises(LLMError, match="non-JSON"):
        HttpTransport()(_request())


def test_http_transport_requires_base_url() -> None:
    with pytest.raises(LLMError, match="base_url"):
        HttpTransport()(_request(base_url=None))


@pytest.mark.parametrize(
    "payload",
    [{"choices": []}, {}, [], {"choices": ["text"]}, {"choices": [{"message": {"content": None}}]}],
)
def test_completion_text_rejects_unusable_payloads(payload) -> None:
    with pytest.raises(LLMError):
        completion_text(payload)


def test_cli_transport_builds_command() -> None:
    command = CliTransport("ollama").command(_request())

    assert command == [
        "ollama",
        "run",
        "coder",
        "--system",
        "Be precise",
        "--temperature",
        "0.05",
        "--num-predict",
        "128",
        "Write code",
    ]


def test_cli_transport_returns_stdout(monkeypatch) -> None:
    calls: list = []

    def fake_run(command, **kwargs):
        calls.append((command, kwargs))
        return subprocess.CompletedProcess(command, 0, stdout="generated\n", stderr="")

    monkeypatch.setattr("specgen.llm.transports.subprocess.run", fake_run)

    assert CliTransport("llm-cli", timeout=5.0)(_request(system=None)) == "generated\n"
    assert calls[0][0][:3] == ["llm-cli", "run", "coder"]
    assert calls[0][1]["timeout"] == 5.0


def test_cli_transport_reports_failures(monkeypatch) -> None:
    monkeypatch.setattr(
        "specgen.llm.transports.subprocess.run",
        lambda command, **kwargs: subprocess.CompletedProcess(command, 2, stdout="", stderr="model not found\n"),
    )

    with pytest.raises(LLMError, match="status 2: model not found"):
        CliTransport()(_request())


def test_cli_transport_reports_missing_executable(monkeypatch) -> None:
    def fake_run(command, **kwargs):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr("specgen.llm.transports.subprocess.run", fake_run)

    with pytest.raises(LLMError, match="not installed"):
        CliTransport("nope")(_request())
