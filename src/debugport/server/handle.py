"""Ownership of one running uvicorn instance.

The handle binds the listening socket itself before handing it to
uvicorn, so a port lost to another process shows up as an ``OSError``
from ``start()`` instead of uvicorn exiting the interpreter.
"""

from __future__ import annotations

import asyncio
import logging
import socket

import uvicorn
from fastapi import FastAPI

logger = logging.getLogger(__name__)


class ServerStartError(RuntimeError):
    """Raised when a bound server does not come up."""


class ServerHandle:
    """One uvicorn server bound to ``host:port``, served as an asyncio task."""

    def __init__(
        self,
        app: FastAPI,
        host: str,
        port: int,
        log_level: str = "warning",
        startup_timeout: float = 5.0,
    ) -> None:
        self._app = app
        self._host = host
        self._port = port
        self._startup_timeout = startup_timeout
        self._config = uvicorn.Config(app, host=host, port=port, log_level=log_level)
        self._server = uvicorn.Server(self._config)
        self._socket: socket.socket | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def is_serving(self) -> bool:
        return self._task is not None and not self._task.done() and self._server.started

    async def start(self) -> None:
        """Bind, serve in the background, and wait until connections are accepted.

        Raises:
            OSError: If the port cannot be bound.
            ServerStartError: If uvicorn exits or stalls during startup.
        """
        self._socket = _bind_socket(self._host, self._port)
        self._task = asyncio.create_task(
            self._serve(), name=f"debugport-server-{self._port}"
        )
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._startup_timeout
        try:
            while not self._server.started:
                if self._task.done():
                    exc = self._task.exception()
                    raise ServerStartError(
                        f"Server on port {self._port} exited during startup"
                    ) from exc
                if loop.time() > deadline:
                    raise ServerStartError(
                        f"Server on port {self._port} did not start within "
                        f"{self._startup_timeout:.1f}s"
                    )
                await asyncio.sleep(0.05)
        except BaseException:
            await self.stop()
            raise
        logger.info("Server listening on %s:%d", self._host, self._port)

    async def stop(self) -> None:
        """Ask uvicorn to exit and wait for it. Idempotent."""
        task, self._task = self._task, None
        try:
            if task is not None:
                self._server.should_exit = True
                try:
                    await task
                except Exception as e:
                    logger.warning("Server on port %d stopped with error: %s", self._port, e)
                logger.info("Server on port %d stopped", self._port)
        finally:
            if self._socket is not None:
                self._socket.close()
                self._socket = None

    async def _serve(self) -> None:
        assert self._socket is not None
        # _serve skips uvicorn's signal capture; the owning process handles signals.
        server = self._server
        serve_coro = (
            server._serve(sockets=[self._socket])
            if hasattr(server, "_serve")
            else server.serve(sockets=[self._socket])
        )
        try:
            await serve_coro
        except SystemExit as e:
            raise ServerStartError(f"uvicorn exited with status {e.code}") from e


def _bind_socket(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    sock.set_inheritable(True)
    return sock
