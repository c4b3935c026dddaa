"""Directory-backed capture store.

Layout::

    <snapshot_dir>/<id>.json     node tree document with descriptor fields
    <screenshot_dir>/<id>.png    screenshot taken with it
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from pathlib import Path

from pydantic import ValidationError

from debugport.capture.base import CaptureError, CaptureStore
from debugport.domain.models import SnapshotInfo
from debugport.engine.base import AutomationEngine, EngineError

logger = logging.getLogger(__name__)


class FileCaptureStore(CaptureStore):
    """Stores captures produced by the automation engine on disk."""

    def __init__(
        self,
        snapshot_dir: Path,
        screenshot_dir: Path,
        engine: AutomationEngine,
    ) -> None:
        self._snapshot_dir = Path(snapshot_dir)
        self._screenshot_dir = Path(screenshot_dir)
        self._engine = engine

    def snapshot_file(self, snapshot_id: int) -> Path:
        return self._snapshot_dir / f"{snapshot_id}.json"

    def screenshot_file(self, snapshot_id: int) -> Path:
        return self._screenshot_dir / f"{snapshot_id}.png"

    async def capture_snapshot(self) -> SnapshotInfo:
        if not await self._engine.is_running():
            raise CaptureError("Accessibility engine is not running")
        try:
            result = await self._engine.capture()
        except EngineError as e:
            raise CaptureError(f"Capture failed: {e}") from e
        try:
            png = base64.b64decode(result.screenshot, validate=True)
        except binascii.Error as e:
            raise CaptureError("Capture returned an invalid screenshot") from e

        snapshot_id = int(time.time() * 1000)
        document = {**result.snapshot, "id": snapshot_id}
        try:
            info = SnapshotInfo.model_validate(document)
        except ValidationError as e:
            raise CaptureError(f"Capture returned an invalid snapshot: {e}") from e

        self._snapshot_dir.mkdir(parents=True, exist_ok=True)
        self._screenshot_dir.mkdir(parents=True, exist_ok=True)
        self.screenshot_file(snapshot_id).write_bytes(png)
        self.snapshot_file(snapshot_id).write_text(json.dumps(document), encoding="utf-8")
        logger.info("Stored snapshot %d (%s)", snapshot_id, info.app_id or "unknown app")
        return info

    async def list_snapshots(self) -> list[SnapshotInfo]:
        if not self._snapshot_dir.is_dir():
            return []
        snapshots = []
        for path in self._snapshot_dir.glob("*.json"):
            try:
                snapshots.append(SnapshotInfo.model_validate_json(path.read_bytes()))
            except (OSError, ValidationError) as e:
                logger.warning("Skipping unreadable snapshot %s: %s", path.name, e)
        snapshots.sort(key=lambda s: s.id, reverse=True)
        return snapshots
