"""Tests for the HttpService lifecycle manager."""

from __future__ import annotations

import asyncio
from typing import Callable
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI

from debugport.config.store import PreferenceStore
from debugport.config.watcher import ConfigWatcher
from debugport.domain.models import MEMORY_SUBS_ID, RawSubscription, ServerState
from debugport.notify.base import Notifier
from debugport.server.service import HttpService, clear_stale_memory_subscription
from debugport.subscriptions.store import SubscriptionStore


class HandleRecorder:
    """Stands in for ServerHandle; records starts/stops and live instances."""

    def __init__(self) -> None:
        self.events: list[tuple[str, int]] = []
        self.live: set[FakeHandle] = set()
        self.max_live = 0
        self.bind_failures: set[int] = set()

    def __call__(self, app: FastAPI, **kwargs: object) -> FakeHandle:
        return FakeHandle(self, **kwargs)  # type: ignore[arg-type]


class FakeHandle:
    def __init__(self, recorder: HandleRecorder, host: str, port: int, **_: object) -> None:
        self._recorder = recorder
        self.host = host
        self.port = port

    async def start(self) -> None:
        await asyncio.sleep(0)
        if self.port in self._recorder.bind_failures:
            raise OSError(98, "Address already in use")
        self._recorder.live.add(self)
        self._recorder.max_live = max(self._recorder.max_live, len(self._recorder.live))
        self._recorder.events.append(("start", self.port))

    async def stop(self) -> None:
        await asyncio.sleep(0)
        self._recorder.live.discard(self)
        self._recorder.events.append(("stop", self.port))


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def recorder() -> HandleRecorder:
    return HandleRecorder()


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=Notifier)


@pytest.fixture
def busy_ports() -> set[int]:
    return {0}


@pytest.fixture
def service(
    recorder: HandleRecorder,
    notifier: MagicMock,
    busy_ports: set[int],
    preference_store: PreferenceStore,
    subscription_store: SubscriptionStore,
) -> HttpService:
    return HttpService(
        app_factory=FastAPI,
        watcher=ConfigWatcher(preference_store.http_server_port),
        preferences=preference_store,
        subscriptions=subscription_store,
        notifier=notifier,
        port_check=lambda port, host: port not in busy_ports,
        address_lookup=lambda: ["192.168.1.20"],
        handle_factory=recorder,
    )


def _store_memory_subscription(store: SubscriptionStore) -> None:
    store.upsert_subscription(RawSubscription(id=MEMORY_SUBS_ID, name="Memory Subscription"))


class TestStartup:
    @pytest.mark.asyncio
    async def test_reaches_running_on_initial_port(
        self, service: HttpService, recorder: HandleRecorder, notifier: MagicMock
    ) -> None:
        service.start()
        await wait_for(lambda: service.state is ServerState.RUNNING)

        assert service.is_running.value is True
        assert service.server is not None and service.server.port == 8080
        assert service.status_label == "HTTP service - 8080"
        assert service.local_network_ips == ["192.168.1.20"]
        assert recorder.events == [("start", 8080)]
        notifier.notify.assert_any_call("HTTP service started")
        notifier.notify.assert_any_call("HTTP service - 8080")
        await service.shutdown()

    @pytest.mark.asyncio
    async def test_busy_port_fails_without_retry(
        self,
        service: HttpService,
        recorder: HandleRecorder,
        busy_ports: set[int],
        notifier: MagicMock,
    ) -> None:
        busy_ports.add(8080)
        await asyncio.wait_for(service.start(), 2.0)

        assert service.state is ServerState.FAILED
        assert service.is_running.value is False
        assert service.server is None
        assert recorder.events == []
        assert service.failed is True
        notifier.notify.assert_any_call("Port 8080 is in use, choose another one and retry")
        notifier.notify.assert_called_with("HTTP service stopped")

    @pytest.mark.asyncio
    async def test_bind_race_fails(
        self, service: HttpService, recorder: HandleRecorder
    ) -> None:
        recorder.bind_failures.add(8080)
        await asyncio.wait_for(service.start(), 2.0)

        assert service.state is ServerState.FAILED
        assert service.server is None
        assert recorder.live == set()

    @pytest.mark.asyncio
    async def test_port_check_uses_bind_host(
        self,
        recorder: HandleRecorder,
        preference_store: PreferenceStore,
        subscription_store: SubscriptionStore,
    ) -> None:
        port_check = MagicMock(return_value=True)
        service = HttpService(
            app_factory=FastAPI,
            watcher=ConfigWatcher(preference_store.http_server_port),
            preferences=preference_store,
            subscriptions=subscription_store,
            host="127.0.0.1",
            port_check=port_check,
            address_lookup=lambda: [],
            handle_factory=recorder,
        )
        service.start()
        await wait_for(lambda: service.state is ServerState.RUNNING)

        port_check.assert_called_once_with(8080, "127.0.0.1")
        assert service.server is not None and service.server.host == "127.0.0.1"
        await service.shutdown()


class TestRestart:
    @pytest.mark.asyncio
    async def test_port_change_stops_old_before_starting_new(
        self,
        service: HttpService,
        recorder: HandleRecorder,
        preference_store: PreferenceStore,
    ) -> None:
        service.start()
        await wait_for(lambda: service.state is ServerState.RUNNING)

        preference_store.update(http_server_port=9090)
        await wait_for(lambda: ("start", 9090) in recorder.events)

        assert recorder.events == [("start", 8080), ("stop", 8080), ("start", 9090)]
        assert recorder.max_live == 1
        assert service.server is not None and service.server.port == 9090
        await service.shutdown()

    @pytest.mark.asyncio
    async def test_same_port_restart_then_failure(
        self,
        service: HttpService,
        recorder: HandleRecorder,
        preference_store: PreferenceStore,
    ) -> None:
        seen: list[bool] = []

        async def _collect() -> None:
            async for value in service.is_running.collect():
                seen.append(value)

        collector = asyncio.create_task(_collect())
        await asyncio.sleep(0)

        lifecycle = service.start()
        await wait_for(lambda: service.state is ServerState.RUNNING)

        preference_store.update(http_server_port=8080)
        await wait_for(lambda: recorder.events.count(("start", 8080)) == 2)
        assert service.is_running.value is True

        preference_store.update(http_server_port=0)
        await asyncio.wait_for(lifecycle, 2.0)
        await asyncio.sleep(0)
        collector.cancel()

        assert recorder.events == [("start", 8080), ("stop", 8080), ("start", 8080), ("stop", 8080)]
        assert seen == [False, True, False, True, False]
        assert service.state is ServerState.FAILED
        assert recorder.max_live == 1


class TestShutdown:
    @pytest.mark.asyncio
    async def test_shutdown_stops_server_and_clears_memory_subscription(
        self,
        service: HttpService,
        recorder: HandleRecorder,
        subscription_store: SubscriptionStore,
        notifier: MagicMock,
    ) -> None:
        service.start()
        await wait_for(lambda: service.state is ServerState.RUNNING)
        _store_memory_subscription(subscription_store)

        await service.shutdown()

        assert service.state is ServerState.STOPPED
        assert service.server is None
        assert service.is_running.value is False
        assert recorder.live == set()
        assert subscription_store.get_subscription(MEMORY_SUBS_ID) is None
        notifier.notify.assert_called_with("HTTP service stopped")

    @pytest.mark.asyncio
    async def test_shutdown_keeps_memory_subscription_when_policy_disabled(
        self,
        service: HttpService,
        subscription_store: SubscriptionStore,
        preference_store: PreferenceStore,
    ) -> None:
        preference_store.update(auto_clear_memory_subs=False)
        service.start()
        await wait_for(lambda: service.state is ServerState.RUNNING)
        _store_memory_subscription(subscription_store)

        await service.shutdown()

        assert subscription_store.get_subscription(MEMORY_SUBS_ID) is not None

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(
        self, service: HttpService, notifier: MagicMock
    ) -> None:
        service.start()
        await wait_for(lambda: service.state is ServerState.RUNNING)

        await service.shutdown()
        await service.shutdown()

        stopped = [c for c in notifier.notify.call_args_list if c.args == ("HTTP service stopped",)]
        assert len(stopped) == 1

    @pytest.mark.asyncio
    async def test_shutdown_after_failure_reports_stopped(
        self, service: HttpService, busy_ports: set[int], notifier: MagicMock
    ) -> None:
        busy_ports.add(8080)
        await asyncio.wait_for(service.start(), 2.0)
        assert service.state is ServerState.FAILED

        await service.shutdown()

        assert service.state is ServerState.STOPPED
        assert service.failed is True
        stopped = [c for c in notifier.notify.call_args_list if c.args == ("HTTP service stopped",)]
        assert len(stopped) == 1

    @pytest.mark.asyncio
    async def test_restart_clears_failure(
        self, service: HttpService, busy_ports: set[int]
    ) -> None:
        busy_ports.add(8080)
        await asyncio.wait_for(service.start(), 2.0)
        assert service.failed is True

        busy_ports.discard(8080)
        service.start()
        await wait_for(lambda: service.state is ServerState.RUNNING)

        assert service.failed is False
        await service.shutdown()
        assert service.failed is False


class TestClearStaleMemorySubscription:
    def test_deletes_when_not_running(
        self, preference_store: PreferenceStore, subscription_store: SubscriptionStore
    ) -> None:
        _store_memory_subscription(subscription_store)
        assert clear_stale_memory_subscription(False, preference_store, subscription_store)
        assert subscription_store.get_subscription(MEMORY_SUBS_ID) is None

    def test_skips_when_running(
        self, preference_store: PreferenceStore, subscription_store: SubscriptionStore
    ) -> None:
        _store_memory_subscription(subscription_store)
        assert not clear_stale_memory_subscription(True, preference_store, subscription_store)
        assert subscription_store.get_subscription(MEMORY_SUBS_ID) is not None

    def test_skips_when_policy_disabled(
        self, preference_store: PreferenceStore, subscription_store: SubscriptionStore
    ) -> None:
        preference_store.update(auto_clear_memory_subs=False)
        _store_memory_subscription(subscription_store)
        assert not clear_stale_memory_subscription(False, preference_store, subscription_store)
