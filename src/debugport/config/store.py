"""Live preference cell owned outside the server.

The listen port and the ephemeral-rules policy can change while the
service is running. ``PreferenceStore`` persists them as JSON and exposes
the port as a ``StateFlow`` so the lifecycle manager can follow it.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from debugport.utils.flow import StateFlow

logger = logging.getLogger(__name__)


class Preferences(BaseModel):
    """User preferences that the control plane reacts to at runtime."""

    model_config = ConfigDict(frozen=True)

    http_server_port: int = Field(default=8888, ge=0, le=65535)
    auto_clear_memory_subs: bool = Field(default=True)


class PreferenceStore:
    """JSON-backed preferences with a port change feed.

    Every ``update()`` that names ``http_server_port`` emits on the port
    flow, even when the value did not change.
    """

    def __init__(self, path: Path | None = None, defaults: Preferences | None = None) -> None:
        self._path = path
        self._preferences = defaults or Preferences()
        self._mtime: float | None = None
        if path is not None and path.exists():
            self._preferences = self._read()
            logger.info("Loaded preferences from %s", path)
        self.http_server_port: StateFlow[int] = StateFlow(self._preferences.http_server_port)

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    @property
    def auto_clear_memory_subs(self) -> bool:
        return self._preferences.auto_clear_memory_subs

    def update(self, **changes: object) -> Preferences:
        """Apply and persist ``changes``.

        Raises:
            pydantic.ValidationError: If a value is out of range.
        """
        self._preferences = Preferences.model_validate(
            {**self._preferences.model_dump(), **changes}
        )
        self._write()
        if "http_server_port" in changes:
            self.http_server_port.set(self._preferences.http_server_port)
        return self._preferences

    async def follow(self, interval: float = 1.0) -> None:
        """Poll the backing file and apply edits made by other processes."""
        if self._path is None:
            return
        while True:
            await asyncio.sleep(interval)
            try:
                mtime = self._path.stat().st_mtime
            except FileNotFoundError:
                continue
            if mtime == self._mtime:
                continue
            try:
                loaded = self._read()
            except ValueError as e:
                logger.warning("Ignoring unreadable preferences file %s: %s", self._path, e)
                self._mtime = mtime
                continue
            changes: dict[str, object] = {}
            for name, value in loaded.model_dump().items():
                if getattr(self._preferences, name) != value:
                    changes[name] = value
            if changes:
                logger.info("Preferences changed on disk: %s", changes)
                self.update(**changes)

    def _read(self) -> Preferences:
        assert self._path is not None
        self._mtime = self._path.stat().st_mtime
        return Preferences.model_validate_json(self._path.read_text(encoding="utf-8"))

    def _write(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(self._preferences.model_dump_json(indent=2), encoding="utf-8")
        self._mtime = self._path.stat().st_mtime
