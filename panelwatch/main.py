"""panelwatch entry point: wires everything together and runs the poller."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from panelwatch import __version__
from panelwatch.config import Settings, load_settings
from panelwatch.core.bus import EventBus
from panelwatch.core.detector import PanelistChangeDetector
from panelwatch.core.emitter import EventEmitter
from panelwatch.core.scheduler import IntervalTimer
from panelwatch.models import ChangeEvent
from panelwatch.sinks.log import log_event
from panelwatch.sinks.webhook import WebhookForwarder
from panelwatch.store.snapshots import SnapshotStore
from panelwatch.utils.logging import get_logger, setup_logging
from panelwatch.zoom.client import ZoomAdminClient

log = get_logger(__name__)


class PanelWatch:
    """Application root. Owns the client, store, bus, sink and timer."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

        self.bus = EventBus()
        self.store = SnapshotStore(settings.get_data_dir() / "snapshots.db")
        self.client = ZoomAdminClient(settings.zoom)
        self.emitter = EventEmitter(self.bus, dedupe_window=settings.sink.dedupe_window)
        self.detector = PanelistChangeDetector(
            client=self.client,
            store=self.store,
            sink=self.emitter,
            webinars=settings.detector.webinars,
            canonical_fingerprint=settings.detector.canonical_fingerprint,
        )
        self.timer = IntervalTimer(settings.timer, self.poll)

        self.forwarder: WebhookForwarder | None = None
        if settings.sink.webhook_url:
            self.forwarder = WebhookForwarder(settings.sink)

    async def start(self, with_timer: bool = True) -> None:
        log.info(
            "panelwatch_starting",
            version=__version__,
            webinars=self.settings.detector.webinars or "all",
        )
        await self.store.start()

        self.bus.subscribe_all(log_event)
        if self.forwarder:
            self.bus.subscribe_all(self.forwarder.handle)
        await self.bus.start()

        if with_timer:
            await self.timer.start()
        log.info("panelwatch_ready")

    async def stop(self) -> None:
        log.info("panelwatch_stopping")
        if self.timer.running:
            await self.timer.stop()
        await self.bus.drain()
        await self.bus.stop()
        if self.forwarder:
            await self.forwarder.close()
        await self.client.close()
        await self.store.stop()
        log.info("panelwatch_stopped")

    async def poll(self) -> list[ChangeEvent]:
        return await self.detector.run()


async def run(settings: Settings) -> None:
    app = PanelWatch(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    try:
        await app.start()
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


async def run_once(settings: Settings) -> list[ChangeEvent]:
    """Single poll without the timer. Upstream errors propagate."""
    app = PanelWatch(settings)
    try:
        await app.start(with_timer=False)
        return await app.poll()
    finally:
        await app.stop()


async def show_status(settings: Settings) -> list[dict]:
    store = SnapshotStore(settings.get_data_dir() / "snapshots.db")
    await store.start()
    try:
        return await store.list_webinars()
    finally:
        await store.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--webinar", "webinars", multiple=True, help="Webinar ID to watch (repeatable)")
@click.option("--once", is_flag=True, help="Poll once and exit instead of running the timer")
@click.option("--status", is_flag=True, help="List stored snapshots and exit")
def cli(
    config_path: str | None,
    log_level: str | None,
    webinars: tuple[str, ...],
    once: bool,
    status: bool,
) -> None:
    """Watch Zoom webinars for panelist additions, removals and changes."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    if webinars:
        settings.detector.webinars = list(webinars)
    setup_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        mask_emails=settings.log_mask_emails,
    )

    if status:
        for row in asyncio.run(show_status(settings)):
            click.echo(f"{row['webinar_id']}\t{row['panelist_count']} panelists\t{row['updated_at']}")
        return

    if once:
        events = asyncio.run(run_once(settings))
        for event in events:
            click.echo(event.meta.summary)
        return

    asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
