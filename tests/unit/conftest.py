"""
Global fixtures for all unit tests.

This conftest provides:
- Environment variable isolation (no real API endpoints or tokens)
- In-memory collaborators for the editor core (store, rewriter, renderer)
- A short autosave debounce window so async tests stay fast

These fixtures apply to ALL tests in tests/unit/.
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Make `src` importable when tests run without an installed package
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

# Set test environment BEFORE any imports to prevent Config from loading real values
os.environ["COMPETENCE_API_URL"] = "http://competence.test"
os.environ["COMPETENCE_API_TOKEN"] = "test-token"
os.environ["PDF_SERVICE_URL"] = "http://pdf.test"
os.environ["ENABLE_PDF_SERVICE"] = "true"
os.environ["DEBUG_MODE"] = "false"

# Debounce window used by async tests (seconds)
TEST_DEBOUNCE = 0.05


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and endpoints.

    Config reads the environment at import time, so the class attributes are
    pinned as well.
    """
    from src.common.config import Config

    monkeypatch.setenv("COMPETENCE_API_URL", "http://competence.test")
    monkeypatch.setenv("COMPETENCE_API_TOKEN", "test-token")
    monkeypatch.setenv("PDF_SERVICE_URL", "http://pdf.test")
    monkeypatch.setattr(Config, "COMPETENCE_API_URL", "http://competence.test")
    monkeypatch.setattr(Config, "COMPETENCE_API_TOKEN", "test-token")
    monkeypatch.setattr(Config, "PDF_SERVICE_URL", "http://pdf.test")
    monkeypatch.setattr(Config, "ENABLE_PDF_SERVICE", True)
    monkeypatch.setattr(Config, "AUTOSAVE_DEBOUNCE_MS", 800)
    monkeypatch.setattr(Config, "AUTOSAVE_STATUS", "DRAFT")
    monkeypatch.setattr(Config, "RENDER_MAX_ATTEMPTS", 3)


class RecordingStore:
    """Persistence store that records every save."""

    def __init__(self, fail_with: Optional[Exception] = None, delay: float = 0.0):
        self.saves: List[Dict[str, Any]] = []
        self.started = 0
        self.cancelled = 0
        self.fail_with = fail_with
        self.delay = delay

    async def save(self, document_id, sections, status):
        self.started += 1
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        if self.fail_with is not None:
            raise self.fail_with
        self.saves.append({"document_id": document_id, "sections": sections, "status": status})


class StubRewriter:
    """Rewrite service returning a canned HTML proposal."""

    def __init__(self, html: str = "<p>Rewritten</p>", fail_with: Optional[Exception] = None):
        self.html = html
        self.fail_with = fail_with
        self.calls: List[Dict[str, str]] = []

    async def rewrite(self, intent, text, section_id, kind):
        self.calls.append({"intent": intent, "text": text, "section_id": section_id, "kind": kind})
        if self.fail_with is not None:
            raise self.fail_with
        return {"html": self.html}


class StubRenderer:
    """Renderer returning fixed bytes and recording the sections it saw."""

    def __init__(self, formats=("pdf", "docx"), fail_with: Optional[Exception] = None):
        self.formats = formats
        self.fail_with = fail_with
        self.calls: List[Dict[str, Any]] = []

    def supports(self, format):
        return format in self.formats

    async def render(self, sections, format):
        self.calls.append({"sections": sections, "format": format})
        if self.fail_with is not None:
            raise self.fail_with
        return f"{format}-bytes".encode()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def make_store():
    """Factory for stores with failure / latency behavior."""
    return RecordingStore


@pytest.fixture
def rewriter():
    return StubRewriter()


@pytest.fixture
def make_rewriter():
    return StubRewriter


@pytest.fixture
def renderer():
    return StubRenderer()


@pytest.fixture
def make_renderer():
    return StubRenderer


@pytest.fixture
def sample_sections():
    """A small competence file covering every section kind."""
    return [
        {"id": "summary", "title": "Profile", "html": "Senior engineer.\n\nLoves Python.", "order": 0},
        {"id": "skills", "title": "Technical Skills", "html": "Python • SQL • Docker", "order": 1},
        {
            "id": "languages",
            "title": "Languages",
            "kind": "languages",
            "html": "<ul><li><strong>English</strong> - Native</li><li><strong>German</strong> - Advanced</li></ul>",
            "order": 2,
        },
        {
            "id": "exp",
            "title": "Professional Experience",
            "html": "<p>Acme AG 01/2021 - 10/2022 Zurich, Switzerland</p>",
            "order": 3,
        },
    ]
