import threading
from typing import Any, Dict, List, Optional

from rancher_exporter.api_client import TransportError


class FakeClient:
    """Serves canned JSON by URL and records every fetch."""

    def __init__(self, routes: Dict[str, Any], failures: Optional[Dict[str, Exception]] = None):
        self.routes = routes
        self.failures = failures or {}
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch_json(self, url: str) -> Any:
        with self._lock:
            self.calls.append(url)
        if url in self.failures:
            raise self.failures[url]
        if url not in self.routes:
            raise TransportError(url, ConnectionError("no route"))
        return self.routes[url]


BASE_URL = "http://rancher:8080"
ENVIRONMENTS_URL = "http://rancher:8080/v1/projects/1a5/environments"


def projects_payload(environments_url: str = ENVIRONMENTS_URL) -> Dict[str, Any]:
    return {"data": [{"id": "1a5", "links": {"environments": environments_url}}]}


def environment(env_id: str, name: str, services_url: str) -> Dict[str, Any]:
    return {"id": env_id, "name": name, "links": {"services": services_url}}


def service(name: str, state: str, env_id: str) -> Dict[str, Any]:
    return {"name": name, "state": state, "environmentId": env_id}
