"""Content generators: the provider-backed path and the template path.

The orchestrator only depends on :class:`ContentGenerator`; which
implementation it builds is decided by ``use_templates``.
"""

from __future__ import annotations

import re
from typing import List, Mapping, Optional, Protocol, Tuple

from .logging import get_logger
from .models import GeneratedFile
from .prompting import GeneratedPrompt
from .templates import TemplateEngine

_FILE_MARKER = re.compile(r"^\s*(?://|#)\s*File:\s*(?P<path>\S+)\s*$")
_FENCE = re.compile(r"^\s*```(?P<info>[^`]*)$")

_FENCE_EXTENSIONS = {
    "python": ".py",
    "py": ".py",
    "rust": ".rs",
    "typescript": ".ts",
    "ts": ".ts",
    "javascript": ".js",
    "js": ".js",
    "go": ".go",
    "java": ".java",
    "json": ".json",
    "yaml": ".yaml",
    "yml": ".yaml",
    "markdown": ".md",
}


class Provider(Protocol):
    """Anything that turns a prompt into text, e.g. :class:`specgen.llm.LLMRunner`."""

    def run(
        self,
        prompt: str,
        *,
        system: str | None = None,
        model: str | None = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str: ...


class ContentGenerator(Protocol):
    def generate(self, prompt: GeneratedPrompt) -> List[GeneratedFile]: ...


class ProviderContentGenerator:
    """Asks a provider for code and splits the response into files."""

    def __init__(
        self,
        provider: Provider,
        *,
        default_path: str,
        model: str | None = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> None:
        self.provider = provider
        self.default_path = default_path
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.logger = get_logger("generation")

    def generate(self, prompt: GeneratedPrompt) -> List[GeneratedFile]:
        response = self.provider.run(
            prompt.user_prompt,
            system=prompt.system_prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        files = extract_files(response, self.default_path)
        self.logger.info("Provider returned %d file(s)", len(files))
        return files


class TemplateContentGenerator:
    """Renders every discovered template; template paths may use placeholders too."""

    def __init__(self, templates: Mapping[str, str], engine: TemplateEngine) -> None:
        self.templates = dict(templates)
        self.engine = engine

    def generate(self, prompt: GeneratedPrompt) -> List[GeneratedFile]:
        if not self.templates:
            raise ValueError("No templates available to render")
        files: List[GeneratedFile] = []
        for relative, text in sorted(self.templates.items()):
            path = self.engine.render_simple(relative)
            files.append(GeneratedFile(path=path, content=self.engine.render(text).content))
        return files


def extract_files(response: str, default_path: str) -> List[GeneratedFile]:
    """Split a provider response into files.

    Recognised forms, in order: ``// File: path`` or ``# File: path`` marker
    lines, fenced blocks whose info string names a path (```` ```python app.py ````),
    and finally the whole response as one file at ``default_path``.
    """
    if not response.strip():
        raise ValueError("Provider returned an empty response")
    lines = response.splitlines()

    marked = _split_on_markers(lines)
    if marked:
        return marked

    fenced = _fenced_blocks(lines)
    named = [(info, body) for info, body in fenced if _path_from_info(info)]
    if named:
        return [GeneratedFile(path=_path_from_info(info) or "", content=body) for info, body in named]

    if len(fenced) == 1:
        info, body = fenced[0]
        return [GeneratedFile(path=_with_fence_extension(default_path, info), content=body)]
    return [GeneratedFile(path=default_path, content=_join(lines))]


def _split_on_markers(lines: List[str]) -> List[GeneratedFile]:
    files: List[GeneratedFile] = []
    current: Optional[str] = None
    buffer: List[str] = []
    for line in lines:
        match = _FILE_MARKER.match(line)
        if match:
            if current is not None:
                files.append(GeneratedFile(path=current, content=_join(_strip_fence(buffer))))
            current = match.group("path")
            buffer = []
        elif current is not None:
            buffer.append(line)
    if current is not None:
        files.append(GeneratedFile(path=current, content=_join(_strip_fence(buffer))))
    return files


def _fenced_blocks(lines: List[str]) -> List[Tuple[str, str]]:
    blocks: List[Tuple[str, str]] = []
    info: Optional[str] = None
    body: List[str] = []
    for line in lines:
        match = _FENCE.match(line)
        if match is None:
            if info is not None:
                body.append(line)
            continue
        if info is None:
            info = match.group("info").strip()
            body = []
        else:
            blocks.append((info, _join(body)))
            info = None
    return blocks


def _strip_fence(lines: List[str]) -> List[str]:
    trimmed = list(lines)
    while trimmed and not trimmed[0].strip():
        trimmed.pop(0)
    while trimmed and not trimmed[-1].strip():
        trimmed.pop()
    if len(trimmed) >= 2 and _FENCE.match(trimmed[0]) and trimmed[-1].strip() == "```":
        return trimmed[1:-1]
    return trimmed


def _path_from_info(info: str) -> Optional[str]:
    for token in reversed(info.split()):
        if "/" in token or "." in token:
            return token
    return None


def _with_fence_extension(default_path: str, info: str) -> str:
    language = info.split()[0].lower() if info.split() else ""
    extension = _FENCE_EXTENSIONS.get(language)
    if extension is None or "." in default_path.rsplit("/", 1)[-1]:
        return default_path
    return default_path + extension


def _join(lines: List[str]) -> str:
    return "\n".join(lines).strip("\n") + "\n"


__all__ = [
    "ContentGenerator",
    "Provider",
    "ProviderContentGenerator",
    "TemplateContentGenerator",
    "extract_files",
]
