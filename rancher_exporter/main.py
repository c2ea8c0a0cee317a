"""CLI entrypoint for the rancher environment exporter."""
from __future__ import annotations

import logging
import os
import signal
import sys
import threading
from typing import Optional

from .api import create_app, run_api
from .api_client import RancherClient
from .config import ConfigError, ExporterSettings, load_settings
from .publisher import MetricPublisher
from .scheduler import Scheduler
from .walker import ResourceWalker


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s:%(lineno)d | %(message)s",
        stream=sys.stdout,
    )


def _exit_on_signal(signum, frame) -> None:  # type: ignore[no-untyped-def]
    logging.getLogger(__name__).info("Received signal %s, exiting", signum)
    logging.shutdown()
    # skip interpreter shutdown, which would join in-flight request threads
    os._exit(0)


def install_signal_handlers() -> None:
    signal.signal(signal.SIGTERM, _exit_on_signal)
    signal.signal(signal.SIGINT, _exit_on_signal)


def build_scheduler(settings: ExporterSettings, publisher: MetricPublisher) -> Scheduler:
    client = RancherClient(
        settings.api_access_key,
        settings.api_secret_key,
        timeout=settings.request_timeout,
    )
    walker = ResourceWalker(client, max_concurrency=settings.max_concurrency)
    return Scheduler(
        walker,
        publisher,
        base_url=settings.base_url,
        interval_seconds=settings.update_interval_seconds,
    )


def main(stop_event: Optional[threading.Event] = None) -> int:
    configure_logging()
    logger = logging.getLogger(__name__)

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("%s", exc)
        return 1

    logging.getLogger().setLevel(settings.log_level)
    install_signal_handlers()
    logger.info("Starting exporter for %s", settings.base_url)

    publisher = MetricPublisher()
    scheduler = build_scheduler(settings, publisher)

    app = create_app(publisher, scheduler)
    api_thread = threading.Thread(
        target=run_api,
        name="exporter-api",
        args=(app, settings),
        daemon=True,
    )
    api_thread.start()
    logger.info("listening on %s:%s", settings.listen_host, settings.listen_port)

    try:
        scheduler.run_forever(stop_event)
    finally:
        scheduler.walker.client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
