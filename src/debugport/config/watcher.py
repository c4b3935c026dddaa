"""Config Watcher: the listen-port change feed consumed by the lifecycle."""

from __future__ import annotations

import logging
from typing import AsyncIterator

from debugport.utils.flow import StateFlow

logger = logging.getLogger(__name__)


class ConfigWatcher:
    """Observes the desired listen port.

    ``watch()`` yields the current port immediately, then every emission
    of the underlying flow. Repeated values are passed through unchanged.
    """

    def __init__(self, port_flow: StateFlow[int]) -> None:
        self._port_flow = port_flow

    @property
    def current(self) -> int:
        return self._port_flow.value

    async def watch(self) -> AsyncIterator[int]:
        async for port in self._port_flow.collect():
            logger.debug("Observed listen port %d", port)
            yield port
