"""Command-line interface for debugport.

Runs the control-plane service, changes the live listen port, or prints
the server identity.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="debugport",
        description="HTTP control plane for the on-device automation agent",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/debugport.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Run the control-plane server until interrupted")
    port_parser = subparsers.add_parser(
        "set-port",
        help="Change the listen port (a running server restarts on it)",
    )
    port_parser.add_argument("port", type=int, help="New listen port")
    subparsers.add_parser("info", help="Print the server info payload")

    return parser.parse_args(argv)


async def _serve(settings) -> int:
    """Build the collaborators and run the lifecycle until it ends."""
    from debugport.capture.filesystem import FileCaptureStore
    from debugport.config.store import PreferenceStore, Preferences
    from debugport.config.watcher import ConfigWatcher
    from debugport.engine.http_backend import HttpAutomationEngine
    from debugport.server.app import create_app
    from debugport.server.service import HttpService, clear_stale_memory_subscription
    from debugport.subscriptions.store import SubscriptionStore

    storage = settings.storage
    preferences = PreferenceStore(
        storage.preferences_file,
        defaults=Preferences(
            http_server_port=settings.server.port,
            auto_clear_memory_subs=settings.policy.auto_clear_memory_subs,
        ),
    )
    subscriptions = SubscriptionStore(storage.subscription_dir)
    if clear_stale_memory_subscription(False, preferences, subscriptions):
        logger.info("Cleared ephemeral rules left over from a previous run")

    async with HttpAutomationEngine(
        base_url=settings.engine.base_url,
        timeout=settings.engine.timeout,
    ) as engine:
        capture_store = FileCaptureStore(storage.snapshot_dir, storage.screenshot_dir, engine)
        service = HttpService(
            app_factory=lambda: create_app(
                engine=engine,
                capture_store=capture_store,
                subscriptions=subscriptions,
                script_url=settings.server.script_url,
            ),
            watcher=ConfigWatcher(preferences.http_server_port),
            preferences=preferences,
            subscriptions=subscriptions,
            host=settings.server.host,
            log_level=settings.server.log_level,
            startup_timeout=settings.server.startup_timeout,
        )
        follower = asyncio.create_task(preferences.follow(settings.policy.follow_interval))
        lifecycle = service.start()
        if service.local_network_ips:
            logger.info("Reachable at: %s", ", ".join(service.local_network_ips))
        try:
            await lifecycle
        finally:
            follower.cancel()
            await service.shutdown()
    return 1 if service.failed else 0


def _set_port(settings, port: int) -> int:
    from pydantic import ValidationError

    from debugport.config.store import PreferenceStore, Preferences

    store = PreferenceStore(
        settings.storage.preferences_file,
        defaults=Preferences(
            http_server_port=settings.server.port,
            auto_clear_memory_subs=settings.policy.auto_clear_memory_subs,
        ),
    )
    try:
        store.update(http_server_port=port)
    except ValidationError as e:
        print(f"Invalid port {port}: {e.errors()[0]['msg']}", file=sys.stderr)
        return 2
    print(f"Listen port set to {port} in {settings.storage.preferences_file}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the debugport CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from debugport.config.settings import load_settings
    from debugport.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info("Starting control-plane service")
        try:
            code = asyncio.run(_serve(settings))
        except KeyboardInterrupt:
            code = 0
        sys.exit(code)

    elif args.command == "set-port":
        sys.exit(_set_port(settings, args.port))

    elif args.command == "info":
        from debugport.device import server_info
        print(server_info().model_dump_json(by_alias=True, indent=2))


if __name__ == "__main__":
    main()
