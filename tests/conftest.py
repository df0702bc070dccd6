from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from specgen.models import Priority, Specification
from tests._fixtures.specs import build_spec, requirement


@pytest.fixture
def sample_spec() -> Specification:
    return build_spec(
        requirement(
            "REQ-1",
            "As a user I want to add todo items to a list",
            "functions use snake_case names",
        ),
        requirement(
            "REQ-2",
            "As a user I want to complete todo items",
            "every public function has a doc comment",
            priority=Priority.SHOULD,
        ),
        requirement(
            "REQ-3",
            "As a maintainer I want failures reported clearly",
            "error handling uses a dedicated error type",
            priority=Priority.COULD,
        ),
    )


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    target = tmp_path / "project"
    target.mkdir()
    return target


@pytest.fixture(autouse=True)
def _restore_specgen_logger() -> Iterator[None]:
    """The CLI reconfigures the specgen logger; undo it between tests."""
    logger = logging.getLogger("specgen")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
