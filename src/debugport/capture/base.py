"""Abstract base class for the capture store.

Snapshots (node-tree documents) and screenshots (PNG files) are stored
by numeric id. The control plane only reads them and asks for new ones.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from debugport.domain.models import SnapshotInfo

logger = logging.getLogger(__name__)


class CaptureStore(ABC):
    """Abstract interface for snapshot/screenshot storage."""

    @abstractmethod
    def snapshot_file(self, snapshot_id: int) -> Path:
        """Path where the snapshot document for ``snapshot_id`` lives.

        The file may not exist; callers check.
        """
        ...

    @abstractmethod
    def screenshot_file(self, snapshot_id: int) -> Path:
        """Path where the screenshot for ``snapshot_id`` lives."""
        ...

    @abstractmethod
    async def capture_snapshot(self) -> SnapshotInfo:
        """Capture the current screen and store it.

        Raises:
            CaptureError: If the capture cannot be taken.
        """
        ...

    @abstractmethod
    async def list_snapshots(self) -> list[SnapshotInfo]:
        """All stored snapshot descriptors, newest first."""
        ...


class CaptureError(Exception):
    """Raised when a capture cannot be taken."""
