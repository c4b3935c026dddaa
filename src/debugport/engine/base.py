"""Abstract base class for the automation engine.

The engine owns the accessibility connection: it decides whether it is
running, performs actions on matched nodes, and produces captures. The
control plane only forwards requests to it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from debugport.domain.models import ActionRequest, ActionResult, CaptureResult

logger = logging.getLogger(__name__)


class AutomationEngine(ABC):
    """Abstract interface to the on-device automation engine.

    Example usage::

        async with HttpAutomationEngine(base_url="http://localhost:8765") as engine:
            if await engine.is_running():
                result = await engine.exec_action(ActionRequest(selector="[text='OK']"))
    """

    async def connect(self) -> None:
        """Acquire any transport resources. Default: nothing to do."""

    async def disconnect(self) -> None:
        """Release transport resources. Safe to call multiple times."""

    @abstractmethod
    async def is_running(self) -> bool:
        """Whether the engine is currently able to act on the UI."""
        ...

    @abstractmethod
    async def exec_action(self, action: ActionRequest) -> ActionResult:
        """Find the node matching ``action.selector`` and act on it.

        Raises:
            EngineError: If the engine cannot be reached or rejects the request.
        """
        ...

    @abstractmethod
    async def capture(self) -> CaptureResult:
        """Capture the current node tree and a screenshot.

        Raises:
            EngineError: If the engine cannot be reached or the capture fails.
        """
        ...

    async def __aenter__(self) -> AutomationEngine:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()


class EngineError(Exception):
    """Raised when the automation engine cannot serve a request."""

    def __init__(self, message: str, backend: str = "") -> None:
        super().__init__(message)
        self.backend = backend
