"""JSON client for the Rancher v1 API."""
from __future__ import annotations

import logging
import secrets
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)


class ExporterError(RuntimeError):
    """Base class for failures raised while polling the upstream API."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class TransportError(ExporterError):
    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"request to {url} failed: {cause}", url=url)
        self.cause = cause


class DecodeError(ExporterError):
    def __init__(self, url: str, status_code: int, body: str) -> None:
        super().__init__(f"json decode failed for {url} (status={status_code})", url=url)
        self.status_code = status_code
        self.body = body


class UpstreamShapeError(ExporterError):
    def __init__(self, url: str, detail: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"unexpected response from {url}: {detail}", url=url)
        self.detail = detail
        self.status_code = status_code


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        for key in ("message", "detail", "code"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return "error response"


def _request_id() -> int:
    return secrets.randbelow(100_000_000_000_000)


class RancherClient:
    """Issues authenticated GET requests and decodes JSON bodies."""

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        timeout: Optional[float] = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self._http = session or requests.Session()
        # requests attaches basic credentials to the first request, no 401 round-trip
        self._http.auth = (access_key, secret_key)
        self._http.headers.update({"Accept": "application/json"})

    def fetch_json(self, url: str) -> Any:
        request_id = _request_id()
        logger.debug("send request %s: %s", request_id, url)
        try:
            response = self._http.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.debug("got error response for %s: %s", request_id, exc)
            raise TransportError(url, exc) from exc

        logger.debug("got response for %s with code %s", request_id, response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            logger.debug("Failed to JSON decode response body for %s", request_id)
            raise DecodeError(url, response.status_code, response.text) from exc

        if response.status_code >= 400:
            raise UpstreamShapeError(
                url,
                f"HTTP {response.status_code}: {_error_message(payload)}",
                status_code=response.status_code,
            )
        return payload

    def close(self) -> None:
        self._http.close()


__all__ = [
    "DecodeError",
    "ExporterError",
    "RancherClient",
    "TransportError",
    "UpstreamShapeError",
]
