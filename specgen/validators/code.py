"""Structural and syntax checks for generated files."""

from __future__ import annotations

import ast
import json
import re
from dataclasses import dataclass
from functools import partial
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

import yaml

from ..models import GeneratedFile, ValidationIssue, ValidationResult

SyntaxCheck = Callable[[str, str], Optional[ValidationIssue]]
LintCheck = Callable[[str, str], List[ValidationIssue]]


def _check_python(path: str, content: str) -> Optional[ValidationIssue]:
    try:
        ast.parse(content, filename=path)
    except SyntaxError as exc:
        return ValidationIssue(path=path, message=f"Python syntax error: {exc.msg}", line=exc.lineno)
    return None


def _check_json(path: str, content: str) -> Optional[ValidationIssue]:
    try:
        json.loads(content)
    except json.JSONDecodeError as exc:
        return ValidationIssue(path=path, message=f"Invalid JSON: {exc.msg}", line=exc.lineno)
    return None


def _check_yaml(path: str, content: str) -> Optional[ValidationIssue]:
    try:
        yaml.safe_load(content)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        return ValidationIssue(path=path, message=f"Invalid YAML: {exc}", line=line)
    return None


@dataclass(frozen=True)
class BraceSyntax:
    """Literal rules for a C-family language.

    Quotes in ``quotes`` honour backslash escapes; ``raw_quotes`` end at the
    next matching quote.
    """

    quotes: str = '"'
    raw_quotes: str = ""
    char_literals: bool = True


RUST = BraceSyntax()
TYPESCRIPT = BraceSyntax(quotes="\"'`", char_literals=False)
GO = BraceSyntax(raw_quotes="`")
JAVA = BraceSyntax()

_CLOSERS = {")": "(", "]": "[", "}": "{"}
# 'a', '\n', '\u{1F600}'; any other quote is a Rust lifetime.
_CHAR_LITERAL = re.compile(r"'(?:\\[^'\n]{1,10}|[^\\'\n])'")
_JAVA_TYPE = re.compile(r"\b(?:class|interface|enum|record)\s+\w+")
_JAVA_DESCRIPTORS = {"package-info.java", "module-info.java"}


def check_delimiters(path: str, content: str, syntax: BraceSyntax) -> Optional[ValidationIssue]:
    """Report the first unbalanced bracket, string or block comment."""
    stack: List[Tuple[str, int]] = []
    line = 1
    index = 0
    while index < len(content):
        char = content[index]
        if char == "\n":
            line += 1
        elif content.startswith("//", index):
            end = content.find("\n", index)
            index = len(content) if end == -1 else end
            continue
        elif content.startswith("/*", index):
            end = content.find("*/", index + 2)
            if end == -1:
                return ValidationIssue(path=path, message="Unterminated block comment", line=line)
            line += content.count("\n", index, end)
            index = end + 2
            continue
        elif char in syntax.quotes or char in syntax.raw_quotes:
            end = _literal_end(content, index, escapes=char in syntax.quotes)
            if end == -1:
                return ValidationIssue(path=path, message="Unterminated string literal", line=line)
            line += content.count("\n", index, end)
            index = end + 1
            continue
        elif char == "'" and syntax.char_literals:
            match = _CHAR_LITERAL.match(content, index)
            if match is not None:
                index = match.end()
                continue
        elif char in "([{":
            stack.append((char, line))
        elif char in _CLOSERS:
            if not stack or stack[-1][0] != _CLOSERS[char]:
                return ValidationIssue(path=path, message=f"Unmatched '{char}'", line=line)
            stack.pop()
        index += 1
    if stack:
        opener, opened_at = stack[-1]
        return ValidationIssue(path=path, message=f"Unclosed '{opener}'", line=opened_at)
    return None


def _literal_end(content: str, start: int, *, escapes: bool) -> int:
    quote = content[start]
    index = start + 1
    while index < len(content):
        char = content[index]
        if escapes and char == "\\":
            index += 2
            continue
        if char == quote:
            return index
        index += 1
    return -1


def _check_java(path: str, content: str) -> Optional[ValidationIssue]:
    issue = check_delimiters(path, content, JAVA)
    if issue is not None or PurePosixPath(path).name in _JAVA_DESCRIPTORS:
        return issue
    if not _JAVA_TYPE.search(content):
        return ValidationIssue(
            path=path, message="Missing class, interface, enum or record declaration", line=1
        )
    return None


SYNTAX_CHECKS: Dict[str, SyntaxCheck] = {
    ".py": _check_python,
    ".json": _check_json,
    ".yaml": _check_yaml,
    ".yml": _check_yaml,
    ".rs": partial(check_delimiters, syntax=RUST),
    ".ts": partial(check_delimiters, syntax=TYPESCRIPT),
    ".go": partial(check_delimiters, syntax=GO),
    ".java": _check_java,
}


def line_rules(*rules: Tuple[str, str]) -> LintCheck:
    """Build a lint that warns on every non-comment line matching a pattern."""
    compiled = [(re.compile(pattern), message) for pattern, message in rules]

    def lint(path: str, content: str) -> List[ValidationIssue]:
        warnings: List[ValidationIssue] = []
        for number, line in enumerate(content.splitlines(), start=1):
            if line.lstrip().startswith("//"):
                continue
            warnings.extend(
                ValidationIssue(path=path, message=message, line=number)
                for pattern, message in compiled
                if pattern.search(line)
            )
        return warnings

    return lint


_UNSAFE = re.compile(r"\bunsafe\b")
_rust_rules = line_rules(
    (r"\.unwrap\(\)", "unwrap() call may panic"),
    (r"\bpanic!", "panic! call may crash the application"),
)


def _lint_rust(path: str, content: str) -> List[ValidationIssue]:
    warnings = _rust_rules(path, content)
    lines = content.splitlines()
    for number, line in enumerate(lines, start=1):
        if not _UNSAFE.search(line) or line.lstrip().startswith("//"):
            continue
        if number == 1 or not lines[number - 2].lstrip().startswith("//"):
            warnings.append(
                ValidationIssue(path=path, message="unsafe block without a comment above it", line=number)
            )
    return sorted(warnings, key=lambda issue: issue.line or 0)


LINT_CHECKS: Dict[str, LintCheck] = {
    ".rs": _lint_rust,
    ".ts": line_rules(
        (r":\s*any\b", "Use of 'any' type"),
        (r"\bconsole\.", "console usage in production code"),
        (r"\bthrow (?!.*Error)", "throw without an Error value"),
    ),
    ".go": line_rules(
        (r"\bpanic\(", "panic() call may crash the application"),
        (r"(?<!\w)_ = .*err", "Error ignored with blank identifier"),
    ),
    ".java": line_rules(
        (r"^(?!.*<).*\b(?:List|Map|Set)\s+\w+", "Raw type usage without generics"),
        (r"\bSystem\.(?:out|err)\.print", "System.out usage in production code"),
    ),
}


class CodeValidator:
    """Rejects unsafe paths and files that do not parse.

    Python, JSON and YAML go through real parsers. Rust, TypeScript, Go and
    Java only get a bracket balance check plus line lints, which are reported
    as warnings and never block a write.
    """

    def __init__(
        self,
        checks: Optional[Dict[str, SyntaxCheck]] = None,
        lints: Optional[Dict[str, LintCheck]] = None,
    ) -> None:
        self.checks = dict(SYNTAX_CHECKS if checks is None else checks)
        self.lints = dict(LINT_CHECKS if lints is None else lints)

    def validate(self, files: Sequence[GeneratedFile]) -> ValidationResult:
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []
        seen: Set[str] = set()

        for file in files:
            path_error = self._check_path(file.path, seen)
            if path_error is not None:
                errors.append(path_error)
                continue
            seen.add(PurePosixPath(file.path.replace("\\", "/")).as_posix())

            if not file.content.strip():
                warnings.append(ValidationIssue(path=file.path, message="File is empty"))
                continue
            suffix = PurePosixPath(file.path).suffix.lower()
            check = self.checks.get(suffix)
            if check is not None:
                issue = check(file.path, file.content)
                if issue is not None:
                    errors.append(issue)
            lint = self.lints.get(suffix)
            if lint is not None:
                warnings.extend(lint(file.path, file.content))

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    @staticmethod
    def _check_path(path: str, seen: Set[str]) -> Optional[ValidationIssue]:
        if not path.strip():
            return ValidationIssue(path=path, message="Empty file path")
        candidate = PurePosixPath(path.replace("\\", "/"))
        if candidate.is_absolute() or path[1:3] == ":\\" or path[1:3] == ":/":
            return ValidationIssue(path=path, message="Absolute paths are not allowed")
        if ".." in candidate.parts:
            return ValidationIssue(path=path, message="Path escapes the target directory")
        if candidate.as_posix() in seen:
            return ValidationIssue(path=path, message="Duplicate file path")
        return None


__all__ = [
    "BraceSyntax",
    "CodeValidator",
    "LINT_CHECKS",
    "LintCheck",
    "SYNTAX_CHECKS",
    "SyntaxCheck",
    "check_delimiters",
    "line_rules",
]
