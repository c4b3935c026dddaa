"""FastAPI application for the control-plane RPC surface.

Endpoints (all under ``/api``, all ``POST``)::

    /getServerInfo        {}            -> {device, agentVersion}
    /getSnapshot          {id}          -> snapshot file
    /getScreenshot        {id}          -> screenshot file
    /captureSnapshot      {}            -> snapshot descriptor
    /getSnapshots         {}            -> [snapshot descriptor]
    /updateSubscription   rule document -> {message}
    /execSelector         action        -> action result

``GET /`` serves a bootstrap page that loads the inspector client.
Failures always come back as ``{"message": ...}``.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import APIRouter, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from debugport import __version__
from debugport.capture.base import CaptureStore
from debugport.config.settings import DEFAULT_SCRIPT_URL
from debugport.device import server_info
from debugport.domain.models import (
    MEMORY_SUBS_ID,
    MEMORY_SUBS_ORDER,
    ActionRequest,
    ActionResult,
    RawSubscription,
    ReqId,
    RpcOk,
    ServerInfo,
    SnapshotInfo,
    SubsItem,
)
from debugport.engine.base import AutomationEngine
from debugport.server.errors import ErrorTranslatingRoute, RpcError, http_exception_handler
from debugport.subscriptions.parser import parse_subscription, pin_memory_identity
from debugport.subscriptions.store import SubscriptionStore

logger = logging.getLogger(__name__)

MEMORY_SUBS_ITEM = SubsItem(id=MEMORY_SUBS_ID, order=MEMORY_SUBS_ORDER, enable_update=False)

# Stamped on every response, with or without an Origin header.
OPEN_ACCESS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Expose-Headers": "*",
    "Access-Control-Allow-Private-Network": "true",
}


def create_app(
    engine: AutomationEngine,
    capture_store: CaptureStore,
    subscriptions: SubscriptionStore,
    script_url: str = DEFAULT_SCRIPT_URL,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Create the control-plane application.

    Args:
        engine: Automation engine that executes actions.
        capture_store: Where snapshots and screenshots are read and taken.
        subscriptions: Store receiving the ephemeral rule subscription.
        script_url: Inspector client script referenced by ``GET /``.
        clock: Seconds-since-epoch source used to stamp ``mtime``.
    """
    app = FastAPI(
        title="debugport",
        description="HTTP control plane for the on-device automation agent",
        version=__version__,
    )
    app.router.route_class = ErrorTranslatingRoute
    app.state.engine = engine
    app.state.capture_store = capture_store
    app.state.subscriptions = subscriptions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    @app.middleware("http")
    async def open_access(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(OPEN_ACCESS_HEADERS)
        return response

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return f"<script type='module' src='{script_url}'></script>"

    api = APIRouter(prefix="/api", route_class=ErrorTranslatingRoute)

    @api.post("/getServerInfo")
    async def get_server_info() -> ServerInfo:
        return server_info()

    @api.post("/getSnapshot")
    async def get_snapshot(request: ReqId) -> FileResponse:
        fp = app.state.capture_store.snapshot_file(request.id)
        if not fp.exists():
            raise RpcError("Snapshot does not exist")
        return FileResponse(fp, media_type="application/json")

    @api.post("/getScreenshot")
    async def get_screenshot(request: ReqId) -> FileResponse:
        fp = app.state.capture_store.screenshot_file(request.id)
        if not fp.exists():
            raise RpcError("Screenshot does not exist")
        return FileResponse(fp, media_type="image/png")

    @api.post("/captureSnapshot")
    async def capture_snapshot() -> SnapshotInfo:
        return await app.state.capture_store.capture_snapshot()

    @api.post("/getSnapshots")
    async def get_snapshots() -> list[SnapshotInfo]:
        return await app.state.capture_store.list_snapshots()

    @api.post("/updateSubscription")
    async def update_subscription(request: Request) -> RpcOk:
        text = (await request.body()).decode("utf-8", errors="replace")
        subscription = pin_memory_identity(parse_subscription(text, json5=False))
        await run_in_threadpool(
            store_memory_subscription, app.state.subscriptions, subscription, clock
        )
        return RpcOk()

    @api.post("/execSelector")
    async def exec_selector(request: Request) -> ActionResult:
        engine: AutomationEngine = app.state.engine
        if not await engine.is_running():
            raise RpcError("Accessibility engine is not running")
        action = ActionRequest.model_validate_json(await request.body())
        return await engine.exec_action(action)

    app.include_router(api)
    return app


def store_memory_subscription(
    store: SubscriptionStore, subscription: RawSubscription, clock: Callable[[], float]
) -> None:
    """Persist the ephemeral rule set and refresh its catalogue entry.

    Does blocking file I/O; call it off the event loop.
    """
    store.upsert_subscription(subscription)
    item = store.find_item(MEMORY_SUBS_ID) or MEMORY_SUBS_ITEM
    store.insert_item(item.model_copy(update={"mtime": int(clock() * 1000)}))
