"""Walks projects -> environments -> services on the Rancher v1 API."""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from .api_client import RancherClient, UpstreamShapeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Environment:
    id: str
    name: str
    services_url: str


@dataclass(frozen=True)
class Service:
    name: str
    state: str
    environment_id: Optional[str]
    environment: Optional[str]


def _records(payload: Any, url: str) -> List[Dict[str, Any]]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise UpstreamShapeError(url, "missing 'data' list")
    for item in data:
        if not isinstance(item, dict):
            raise UpstreamShapeError(url, f"expected an object in 'data', got {type(item).__name__}")
    return data


def _text(record: Dict[str, Any], field: str, url: str, kind: str) -> str:
    value = record.get(field)
    if not isinstance(value, str) or not value:
        raise UpstreamShapeError(url, f"{kind} record missing {field}")
    return value


def _link(record: Dict[str, Any], name: str, url: str) -> str:
    links = record.get("links")
    value = links.get(name) if isinstance(links, dict) else None
    if not isinstance(value, str) or not value:
        raise UpstreamShapeError(url, f"missing links.{name}")
    return value


class ResourceWalker:
    """Flattens every service of the first project into one list.

    Stage failures propagate immediately; nothing is returned for a partial walk.
    """

    def __init__(self, client: RancherClient, max_concurrency: int = 16) -> None:
        self.client = client
        self.max_concurrency = max_concurrency

    def walk(self, base_url: str) -> List[Service]:
        environments_url = self._environments_url(base_url)
        environments = self._environments(environments_url)
        lookup = {env.id: env.name for env in environments}
        batches = self._fetch_services([env.services_url for env in environments])

        services: List[Service] = []
        for batch in batches:
            for service in batch:
                services.append(replace(service, environment=lookup.get(service.environment_id)))
        logger.debug(
            "walked %s services across %s environments", len(services), len(environments)
        )
        return services

    def _environments_url(self, base_url: str) -> str:
        url = base_url.rstrip("/") + "/v1/projects"
        projects = _records(self.client.fetch_json(url), url)
        if not projects:
            raise UpstreamShapeError(url, "no projects returned")
        # only the first project is polled
        return _link(projects[0], "environments", url)

    def _environments(self, url: str) -> List[Environment]:
        environments: List[Environment] = []
        for record in _records(self.client.fetch_json(url), url):
            environments.append(
                Environment(
                    id=_text(record, "id", url, "environment"),
                    name=_text(record, "name", url, "environment"),
                    services_url=_link(record, "services", url),
                )
            )
        return environments

    def _fetch_services(self, urls: List[str]) -> List[List[Service]]:
        if not urls:
            return []
        workers = len(urls) if self.max_concurrency <= 0 else min(self.max_concurrency, len(urls))
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="services-fetch")
        try:
            futures = [pool.submit(self._services, url) for url in urls]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for future in done:
                exc = future.exception()
                if exc is not None:
                    raise exc
            return [future.result() for future in futures]
        finally:
            # queued requests are dropped when the walk fails or is interrupted
            pool.shutdown(wait=False, cancel_futures=True)

    def _services(self, url: str) -> List[Service]:
        services: List[Service] = []
        for record in _records(self.client.fetch_json(url), url):
            raw_id = record.get("environmentId")
            name = record.get("name")
            services.append(
                Service(
                    name=name if isinstance(name, str) else "",
                    state=_text(record, "state", url, "service"),
                    environment_id=None if raw_id is None else str(raw_id),
                    environment=None,
                )
            )
        return services


__all__ = ["Environment", "ResourceWalker", "Service"]
