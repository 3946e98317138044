"""Shared test fixtures for vaultclip."""

import logging
import shlex
import sys

import pytest
from unittest.mock import AsyncMock, MagicMock

from vaultclip.config.models import OutputConfig, VaultclipConfig, VaultConfig
from vaultclip.llm.base import ArticleBackend, BackendKind


@pytest.fixture
def sample_html():
    return """\
<html>
  <head><title>Page Title</title><style>body { color: red; }</style></head>
  <body>
    <nav><p>Home | About</p></nav>
    <article>
      <h1>Article Heading</h1>
      <p>First paragraph.</p>
      <h2>Section</h2>
      <ul><li>One</li><li>Two</li></ul>
      <blockquote>Quoted words</blockquote>
    </article>
    <aside><p>Sidebar ad</p></aside>
    <footer><p>Copyright</p></footer>
    <script>alert("x")</script>
  </body>
</html>
"""


@pytest.fixture
def quiet_logger():
    """Logger that drops everything, for injecting into backends."""
    logger = logging.getLogger("vaultclip.tests.quiet")
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


@pytest.fixture
def python_command():
    """Build a command string that runs a Python snippet with this interpreter."""

    def _make(code: str) -> str:
        return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"

    return _make


@pytest.fixture
def mock_backend():
    backend = MagicMock(spec=ArticleBackend)
    backend.kind = BackendKind.MOCK
    backend.name = "Fake"
    backend.convert = AsyncMock(return_value="# Converted\n\nBody text.")
    return backend


@pytest.fixture
def sample_config():
    return VaultclipConfig()


@pytest.fixture
def output_config(tmp_path):
    return OutputConfig(base_dir=str(tmp_path / "output"))


@pytest.fixture
def vault_config(tmp_path):
    return VaultConfig(notes_path=str(tmp_path / "notes"))


@pytest.fixture
def notes_dir(tmp_path):
    notes = tmp_path / "notes"
    notes.mkdir()
    return notes
