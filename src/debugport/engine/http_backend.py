"""HTTP automation engine backend.

Talks to an engine process exposing ``/health``, ``/exec`` and
``/capture`` over HTTP.
"""

from __future__ import annotations

import logging

import httpx

from debugport.domain.models import ActionRequest, ActionResult, CaptureResult
from debugport.engine.base import AutomationEngine, EngineError

logger = logging.getLogger(__name__)


class HttpAutomationEngine(AutomationEngine):
    """Forwards actions and capture requests to an engine over HTTP."""

    def __init__(
        self,
        base_url: str = "http://localhost:8765",
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the HTTP client. The engine may come up later."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
            )
            logger.info("Using automation engine at %s", self._base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from automation engine")

    async def is_running(self) -> bool:
        """Ping ``/health``; any transport error means not running."""
        if self._client is None:
            return False
        try:
            resp = await self._client.get("/health")
        except httpx.HTTPError as e:
            logger.debug("Engine health check failed: %s", e)
            return False
        if resp.status_code != 200:
            return False
        return bool(resp.json().get("running", False))

    async def exec_action(self, action: ActionRequest) -> ActionResult:
        resp = await self._post("/exec", action.model_dump(by_alias=True))
        logger.debug("Executed action %s on %s", action.action, action.selector)
        return ActionResult.model_validate(resp.json())

    async def capture(self) -> CaptureResult:
        resp = await self._post("/capture", {})
        return CaptureResult.model_validate(resp.json())

    async def _post(self, path: str, payload: dict) -> httpx.Response:
        """Send a POST request to the engine."""
        if self._client is None:
            raise EngineError("Not connected to automation engine", backend="http")
        try:
            resp = await self._client.post(path, json=payload)
            resp.raise_for_status()
            return resp
        except httpx.HTTPError as e:
            raise EngineError(
                f"HTTP request to {path} failed: {e}", backend="http"
            ) from e
