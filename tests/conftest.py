import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_path():
    """Allow tests to import project modules without installation."""
    repo_root = Path(__file__).resolve().parent.parent
    repo_str = str(repo_root)
    if repo_str not in sys.path:
        sys.path.insert(0, repo_str)


_ensure_repo_root_on_path()

from airportmap.config import ENV_FIELDS  # noqa: E402


@pytest.fixture(autouse=True)
def clear_pipeline_env(monkeypatch):
    """Ensure each test starts without pipeline-specific environment variables."""
    for name in ENV_FIELDS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
