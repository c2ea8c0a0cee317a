"""HTTP exposition endpoint for Prometheus scrapes."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .config import ExporterSettings
from .publisher import MetricPublisher
from .scheduler import CycleResult, Scheduler

logger = logging.getLogger(__name__)


def _describe(result: Optional[CycleResult]) -> Optional[Dict[str, Any]]:
    if result is None:
        return None
    return {
        "started_at": result.started_at,
        "duration": result.duration,
        "stage": result.stage,
        "error": result.error,
        "url": result.url,
    }


def create_app(publisher: MetricPublisher, scheduler: Optional[Scheduler] = None) -> FastAPI:
    app = FastAPI(title="Rancher Environment Exporter", version="1.0.0")

    @app.get("/metrics")
    def read_metrics() -> Response:
        return Response(content=generate_latest(publisher.registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    def read_health() -> dict:
        last = scheduler.last_result if scheduler is not None else None
        last_success = scheduler.last_success if scheduler is not None else None
        if last is None:
            status = "starting"
        elif last.success:
            status = "ok"
        else:
            status = "degraded"
        return {
            "status": status,
            "last_success": _describe(last_success),
            "last_error": None if last is None or last.success else _describe(last),
            "environments": dict(last_success.environments) if last_success else {},
            "series": publisher.series,
        }

    return app


def run_api(app: FastAPI, settings: ExporterSettings) -> None:
    """Run the FastAPI app using uvicorn."""
    import uvicorn  # Imported lazily to avoid mandatory dependency in tests

    config = uvicorn.Config(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    server.install_signal_handlers = False
    server.run()


__all__ = ["create_app", "run_api"]
