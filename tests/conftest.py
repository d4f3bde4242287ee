import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

WEBAPP_DIR = Path(__file__).parent / "webapp"


@pytest.fixture
def webapp_dir() -> Path:
    return WEBAPP_DIR


@pytest.fixture
def static_webapp_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "static-webapp"
    directory.mkdir()
    (directory / "index.html").write_text("<html><body>static welcome</body></html>")
    return directory


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo structlog and root logger changes made by the test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
