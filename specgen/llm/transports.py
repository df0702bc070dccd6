"""Wire transports used by :class:`specgen.llm.LLMRunner`.

A transport is any callable taking an :class:`LLMRequest` and returning the
raw completion text. Two are shipped: an OpenAI-compatible
``/chat/completions`` client built on urllib and a subprocess wrapper for
local model CLIs such as ``ollama``.
"""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


class LLMError(RuntimeError):
    """Raised when the model runtime fails or returns nothing usable."""


@dataclass(frozen=True)
class LLMRequest:
    """One completion request, fully resolved against provider settings."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None

    def messages(self) -> List[Dict[str, str]]:
        conversation = [{"role": "user", "content": self.prompt}]
        if self.system:
            conversation.insert(0, {"role": "system", "content": self.system})
        return conversation

    def chat_payload(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"model": self.model, "messages": self.messages()}
        for key, value in (("temperature", self.temperature), ("max_tokens", self.max_tokens)):
            if value is not None:
                payload[key] = value
        return payload


Transport = Callable[[LLMRequest], str]


def completion_text(payload: object) -> str:
    """Return the first choice of a chat or legacy completions payload."""
    try:
        first = payload["choices"][0]  # type: ignore[index]
    except (KeyError, IndexError, TypeError):
        raise LLMError("Completion payload has no choices") from None
    if not isinstance(first, dict):
        raise LLMError("Completion choice is not an object")
    message = first.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    if isinstance(first.get("text"), str):
        return first["text"]
    raise LLMError("Completion choice carries no text")


class HttpTransport:
    """POSTs requests to ``<base_url>/chat/completions``."""

    def __init__(self, timeout: float = 60.0) -> None:
        self.timeout = timeout

    def __call__(self, request: LLMRequest) -> str:
        if not request.base_url:
            raise LLMError("HTTP transport requires llm.base_url")
        http_request = Request(
            f"{request.base_url}/chat/completions",
            data=json.dumps(request.chat_payload()).encode("utf-8"),
            headers=self._headers(request.api_key),
            method="POST",
        )
        try:
            with urlopen(http_request, timeout=self.timeout) as response:
                body = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace").strip() if exc.fp else ""
            raise LLMError(f"{request.base_url} answered {exc.code}: {detail or exc.reason}") from exc
        except URLError as exc:
            raise LLMError(f"Cannot reach {request.base_url}: {exc.reason}") from exc

        try:
            decoded = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise LLMError(f"{request.base_url} returned a non-JSON body") from exc
        return completion_text(decoded)

    @staticmethod
    def _headers(api_key: Optional[str]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers


class CliTransport:
    """Runs ``<executable> run <model> [options] <prompt>`` and returns stdout."""

    def __init__(self, executable: str = "ollama", timeout: Optional[float] = None) -> None:
        self.executable = executable
        self.timeout = timeout

    def command(self, request: LLMRequest) -> List[str]:
        command = [self.executable, "run", request.model]
        if request.system:
            command += ["--system", request.system]
        if request.temperature is not None:
            command += ["--temperature", str(request.temperature)]
        if request.max_tokens is not None:
            command += ["--num-predict", str(request.max_tokens)]
        command.append(request.prompt)
        return command

    def __call__(self, request: LLMRequest) -> str:
        try:
            completed = subprocess.run(
                self.command(request),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise LLMError(
                f"'{self.executable}' is not installed; install it or set llm.base_url"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise LLMError(f"'{self.executable}' timed out after {self.timeout}s") from exc
        if completed.returncode != 0:
            raise LLMError(
                f"'{self.executable}' exited with status {completed.returncode}: {completed.stderr.strip()}"
            )
        return completed.stdout


__all__ = [
    "CliTransport",
    "HttpTransport",
    "LLMError",
    "LLMRequest",
    "Transport",
    "completion_text",
]
