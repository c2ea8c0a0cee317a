"""Poll loop that drives walk -> aggregate -> publish."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from .aggregator import aggregate
from .api_client import ExporterError
from .publisher import MetricPublisher
from .walker import ResourceWalker

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    success: bool
    started_at: float
    duration: float
    environments: Dict[str, str] = field(default_factory=dict)
    stage: Optional[str] = None
    error: Optional[str] = None
    url: Optional[str] = None


class Scheduler:
    def __init__(
        self,
        walker: ResourceWalker,
        publisher: MetricPublisher,
        base_url: str,
        interval_seconds: float,
    ) -> None:
        self.walker = walker
        self.publisher = publisher
        self.base_url = base_url
        self.interval_seconds = interval_seconds
        self.last_result: Optional[CycleResult] = None
        self.last_success: Optional[CycleResult] = None

    def run_once(self) -> CycleResult:
        """Run a single cycle; failures are logged and reported, never raised."""
        started = time.time()
        stage = "walk"
        try:
            logger.debug("requesting environment state from %s", self.base_url)
            services = self.walker.walk(self.base_url)
            stage = "aggregate"
            env_state = aggregate(services)
            logger.debug("got environment state %s", env_state)
            stage = "publish"
            self.publisher.publish(env_state)
        except ExporterError as exc:
            result = self._failed(started, stage, str(exc), exc.url)
            logger.warning("Poll cycle failed during %s (url=%s): %s", stage, exc.url, exc)
            return result
        except Exception as exc:
            result = self._failed(started, stage, str(exc), None)
            logger.exception("Unexpected error in poll cycle during %s: %s", stage, exc)
            return result

        finished = time.time()
        result = CycleResult(
            success=True,
            started_at=started,
            duration=finished - started,
            environments=dict(env_state),
        )
        self.publisher.record_cycle(success=True, duration=result.duration, finished_at=finished)
        self.last_result = result
        self.last_success = result
        logger.info(
            "Published %s environments in %.3fs", len(env_state), result.duration
        )
        return result

    def _failed(
        self, started: float, stage: str, error: str, url: Optional[str]
    ) -> CycleResult:
        finished = time.time()
        result = CycleResult(
            success=False,
            started_at=started,
            duration=finished - started,
            stage=stage,
            error=error,
            url=url,
        )
        self.publisher.record_cycle(success=False, duration=result.duration, finished_at=finished)
        self.last_result = result
        return result

    def run_forever(self, stop_event: Optional[threading.Event] = None) -> None:
        """Blocking loop: one cycle now, then one per interval until stopped.

        Cycles run one at a time on this thread. The wait between them is the
        interval minus the cycle's own duration, so an overrunning cycle
        pushes the next one back rather than overlapping it.
        """
        stop = stop_event or threading.Event()
        logger.info("Starting poll loop with interval %s seconds", self.interval_seconds)
        while not stop.is_set():
            start = time.time()
            self.run_once()
            elapsed = time.time() - start
            sleep_for = max(self.interval_seconds - elapsed, 0)
            if stop.wait(sleep_for):
                break
        logger.info("Poll loop stopped")


__all__ = ["CycleResult", "Scheduler"]
