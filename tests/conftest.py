"""Shared test fixtures for the debugport test suite.

Provides collaborator stores rooted in ``tmp_path``, a mock automation
engine, and helpers for writing captures to disk.
"""

from __future__ import annotations

import base64
import json
import socket
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock

import pytest

from debugport.capture.filesystem import FileCaptureStore
from debugport.config.store import PreferenceStore, Preferences
from debugport.domain.models import ActionResult, CaptureResult
from debugport.engine.base import AutomationEngine
from debugport.subscriptions.store import SubscriptionStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


# ---------------------------------------------------------------------------
# Collaborator Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_engine() -> AsyncMock:
    """A running automation engine that clicks successfully."""
    engine = AsyncMock(spec=AutomationEngine)
    engine.is_running.return_value = True
    engine.exec_action.return_value = ActionResult(action="click", result=True)
    engine.capture.return_value = CaptureResult(
        snapshot={
            "appId": "com.example.app",
            "activityId": "com.example.app.MainActivity",
            "screenWidth": 1080,
            "screenHeight": 2400,
            "isLandscape": False,
            "nodes": [],
        },
        screenshot=base64.b64encode(PNG_BYTES).decode(),
    )
    return engine


@pytest.fixture
def capture_store(tmp_path: Path, mock_engine: AsyncMock) -> FileCaptureStore:
    return FileCaptureStore(tmp_path / "snapshots", tmp_path / "screenshots", mock_engine)


@pytest.fixture
def subscription_store(tmp_path: Path) -> SubscriptionStore:
    return SubscriptionStore(tmp_path / "subscriptions")


@pytest.fixture
def preference_store(tmp_path: Path) -> PreferenceStore:
    return PreferenceStore(
        tmp_path / "preferences.json",
        defaults=Preferences(http_server_port=8080, auto_clear_memory_subs=True),
    )


@pytest.fixture
def free_port() -> int:
    """A loopback port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def write_snapshot(capture_store: FileCaptureStore) -> Callable[..., None]:
    """Put a snapshot document and its screenshot on disk."""

    def _write(snapshot_id: int, **fields: object) -> None:
        path = capture_store.snapshot_file(snapshot_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"id": snapshot_id, **fields}))
        shot = capture_store.screenshot_file(snapshot_id)
        shot.parent.mkdir(parents=True, exist_ok=True)
        shot.write_bytes(PNG_BYTES)

    return _write
