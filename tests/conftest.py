"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

# Ensure tests run from the project root so config.default.yaml is found
PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def _set_project_root(monkeypatch, tmp_path):
    """Point DOCMIND_ROOT at the project root and use tmp_path for data."""
    monkeypatch.setenv("DOCMIND_ROOT", str(PROJECT_ROOT))
    monkeypatch.setenv("DOCMIND_STORE__PATH", str(tmp_path / "docmind.db"))
    monkeypatch.delenv("DOCMIND_ACTIVE_PROFILE", raising=False)

    # Keep password hashing fast in tests
    monkeypatch.setattr("docmind.users._ITERATIONS", 1_000)

    # Reset settings cache between tests
    from docmind.config import reset_settings
    reset_settings()


@pytest.fixture
def store():
    from docmind.stores.records import RecordStore

    db = RecordStore(":memory:")
    yield db
    db.close()


@pytest.fixture
def client():
    """A ModelClient on the default profile; tests patch its methods."""
    from docmind.config import LLMProfile
    from docmind.llm import ModelClient

    return ModelClient(LLMProfile())
