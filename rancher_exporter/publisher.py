"""Prometheus gauges for per-environment health."""
from __future__ import annotations

import logging
import re
import threading
from typing import Dict, Mapping, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge

from .aggregator import ACTIVE_STATE

logger = logging.getLogger(__name__)

NAMESPACE = "rancher"
SERIES_PREFIX = "environment_"
GAUGE_HELP = "Value of 1 if all containers in a stack are active"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_:]")


def sanitize(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name)


def series_name(environment: str) -> str:
    return SERIES_PREFIX + sanitize(environment)


class MetricPublisher:
    """Owns the gauge registry.

    Gauges are created lazily, one per sanitized environment name, and live
    for as long as the publisher does. Environments that disappear upstream
    keep their last value.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._gauges: Dict[str, Gauge] = {}
        self._lock = threading.Lock()

        self.cycles_total = Counter(
            "exporter_cycles",
            "Poll cycles run, by outcome",
            ["outcome"],
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.last_success_timestamp = Gauge(
            "exporter_last_success_timestamp_seconds",
            "Unix time of the last successful poll cycle",
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.cycle_duration = Gauge(
            "exporter_cycle_duration_seconds",
            "Duration of the last poll cycle",
            namespace=NAMESPACE,
            registry=self.registry,
        )
        self.environments_seen = Gauge(
            "exporter_environments",
            "Environments reported by the last successful poll cycle",
            namespace=NAMESPACE,
            registry=self.registry,
        )

    @property
    def series(self) -> list[str]:
        with self._lock:
            return sorted(self._gauges)

    def _gauge(self, name: str) -> Gauge:
        with self._lock:
            gauge = self._gauges.get(name)
            if gauge is None:
                gauge = Gauge(
                    name,
                    GAUGE_HELP,
                    ["name"],
                    namespace=NAMESPACE,
                    registry=self.registry,
                )
                self._gauges[name] = gauge
                logger.info("Registered gauge %s_%s", NAMESPACE, name)
            return gauge

    def publish(self, env_state: Mapping[str, str]) -> None:
        for environment, state in env_state.items():
            name = series_name(environment)
            value = 1 if state == ACTIVE_STATE else 0
            logger.debug("setting gauge %s to %s (state=%s)", name, value, state)
            self._gauge(name).labels(name=environment).set(value)
        self.environments_seen.set(len(env_state))

    def record_cycle(self, *, success: bool, duration: float, finished_at: float) -> None:
        self.cycles_total.labels(outcome="success" if success else "failure").inc()
        self.cycle_duration.set(duration)
        if success:
            self.last_success_timestamp.set(finished_at)


__all__ = [
    "GAUGE_HELP",
    "MetricPublisher",
    "NAMESPACE",
    "SERIES_PREFIX",
    "sanitize",
    "series_name",
]
