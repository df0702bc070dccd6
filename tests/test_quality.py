from __future__ import annotations

from specgen.models import GeneratedFile
from specgen.quality import CodeQualityEnforcer


def test_enforce_normalises_whitespace() -> None:
    files = [GeneratedFile(path="a.py", content="\r\n\nimport os  \r\n\n\n\n\ndef f():\t\n    return 1")]

    (cleaned,) = CodeQualityEnforcer().enforce(files)

    assert cleaned.path == "a.py"
    assert cleaned.content == "import os\n\n\ndef f():\n    return 1\n"


def test_blank_line_limit_is_configurable() -> None:
    enforcer = CodeQualityEnforcer(max_blank_lines=1)

    assert enforcer.clean("a\n\n\n\nb\n") == "a\n\nb\n"


def test_whitespace_only_content_becomes_empty() -> None:
    assert CodeQualityEnforcer().clean(" \n\t\n") == ""
    assert CodeQualityEnforcer().clean("tabs\tinside\n") == "tabs\tinside\n"
