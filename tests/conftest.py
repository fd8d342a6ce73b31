"""Shared pytest fixtures."""

import os
import shutil
from pathlib import Path

import pytest

FIXTURES_NOTES = Path(__file__).parent / "fixtures" / "notes"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Run every test without NOTETAGS_* variables from the outer environment."""
    for name in list(os.environ):
        if name.startswith("NOTETAGS_"):
            monkeypatch.delenv(name)


@pytest.fixture
def notes_root(tmp_path):
    """A writable copy of the sample notes."""
    root = tmp_path / "notes"
    shutil.copytree(FIXTURES_NOTES, root)
    return root
