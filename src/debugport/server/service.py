"""Server lifecycle manager.

``HttpService`` follows the listen-port feed from ``ConfigWatcher``. For
each emission it fully stops the current server, checks the new port and
starts a fresh instance. A busy port or a failed start is fatal: the
service tears itself down instead of retrying and stays FAILED.

States::

    STOPPED --port--> STARTING --ok--> RUNNING --port--> STARTING ...
                         |
                         +--busy/failed--> FAILED (service torn down)

    any --shutdown()--> STOPPED

An explicit ``shutdown()`` always lands in STOPPED; whether a start ever
failed stays visible through ``failed``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from fastapi import FastAPI

from debugport.config.store import PreferenceStore
from debugport.config.watcher import ConfigWatcher
from debugport.domain.models import MEMORY_SUBS_ID, ServerState
from debugport.notify.base import LoggingNotifier, Notifier
from debugport.server.handle import ServerHandle
from debugport.subscriptions.store import SubscriptionStore
from debugport.utils.flow import StateFlow
from debugport.utils.network import is_port_available, local_network_addresses

logger = logging.getLogger(__name__)


class HttpService:
    """Owns the single published ``ServerHandle`` and its restarts."""

    def __init__(
        self,
        app_factory: Callable[[], FastAPI],
        watcher: ConfigWatcher,
        preferences: PreferenceStore,
        subscriptions: SubscriptionStore,
        notifier: Notifier | None = None,
        host: str = "0.0.0.0",
        log_level: str = "warning",
        startup_timeout: float = 5.0,
        port_check: Callable[[int, str], bool] = is_port_available,
        address_lookup: Callable[[], list[str]] = local_network_addresses,
        handle_factory: Callable[..., ServerHandle] = ServerHandle,
    ) -> None:
        self._app_factory = app_factory
        self._watcher = watcher
        self._preferences = preferences
        self._subscriptions = subscriptions
        self._notifier = notifier or LoggingNotifier()
        self._host = host
        self._log_level = log_level
        self._startup_timeout = startup_timeout
        self._port_check = port_check
        self._address_lookup = address_lookup
        self._handle_factory = handle_factory

        self.is_running: StateFlow[bool] = StateFlow(False)
        self.local_network_ips: list[str] = []
        self.status_label = "HTTP service"
        self._state = ServerState.STOPPED
        self._server: ServerHandle | None = None
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._alive = False
        self._failed = False

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def failed(self) -> bool:
        """Whether a start failed since the last ``start()``."""
        return self._failed

    @property
    def server(self) -> ServerHandle | None:
        """The published server handle; written only by this manager."""
        return self._server

    def start(self) -> asyncio.Task[None]:
        """Bring the service up and start following the port feed."""
        if self._task is not None and not self._task.done():
            return self._task
        self._alive = True
        self._failed = False
        self._notifier.notify("HTTP service started")
        self.local_network_ips = self._address_lookup()
        self._task = asyncio.create_task(self.run(), name="debugport-lifecycle")
        return self._task

    async def run(self) -> None:
        """Apply every observed port until one fails."""
        async for port in self._watcher.watch():
            async with self._lock:
                started = await self._restart(port)
            if not started:
                break
        async with self._lock:
            await self._teardown(ServerState.FAILED)

    async def shutdown(self) -> None:
        """Stop following the feed, stop the server, clear ephemeral state."""
        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        async with self._lock:
            await self._teardown(ServerState.STOPPED)

    async def _restart(self, port: int) -> bool:
        self._state = ServerState.STARTING
        await self._stop_server()

        if not self._port_check(port, self._host):
            self._fail(f"Port {port} is in use, choose another one and retry")
            return False

        try:
            handle = self._handle_factory(
                self._app_factory(),
                host=self._host,
                port=port,
                log_level=self._log_level,
                startup_timeout=self._startup_timeout,
            )
            await handle.start()
        except Exception as e:
            logger.error("HTTP server failed to start on port %d", port, exc_info=True)
            self._fail(f"HTTP server failed to start: {e}")
            return False

        self._server = handle
        self._state = ServerState.RUNNING
        self.is_running.set(True)
        self.status_label = f"HTTP service - {port}"
        self._notifier.notify(self.status_label)
        return True

    async def _stop_server(self) -> None:
        handle, self._server = self._server, None
        if handle is not None:
            await handle.stop()
        if self.is_running.value:
            self.is_running.set(False)

    def _fail(self, message: str) -> None:
        self._failed = True
        self._state = ServerState.FAILED
        self._notifier.notify(message)

    async def _teardown(self, final_state: ServerState) -> None:
        was_alive, self._alive = self._alive, False
        await self._stop_server()
        self._state = final_state
        if not was_alive:
            return
        if self._preferences.auto_clear_memory_subs:
            self._subscriptions.delete_subscription(MEMORY_SUBS_ID)
        self._notifier.notify("HTTP service stopped")


def clear_stale_memory_subscription(
    service_running: bool,
    preferences: PreferenceStore,
    subscriptions: SubscriptionStore,
) -> bool:
    """Drop an ephemeral rule set left behind by an unclean exit.

    Called once at process start. Returns whether anything was deleted.
    """
    if service_running or not preferences.auto_clear_memory_subs:
        return False
    return subscriptions.delete_subscription(MEMORY_SUBS_ID)
