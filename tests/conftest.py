"""Shared fakes standing in for Playwright's request context."""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest

from openprocessing_downloader.api import OpenProcessingApi
from openprocessing_downloader.config import Settings, build_settings


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, body: bytes = b"", raw: Optional[str] = None):
        self.status = status
        self._payload = payload
        self._body = body
        self._raw = raw

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    async def json(self) -> Any:
        if self._raw is not None:
            return json.loads(self._raw)
        return self._payload

    async def body(self) -> bytes:
        return self._body


Route = Union[FakeResponse, Exception, Callable[[Dict[str, Any]], Any]]


class FakeRequestContext:
    """Answers GETs from a dict of path (or absolute URL) to canned responses."""

    def __init__(self, routes: Dict[str, Route]):
        self.routes = routes
        self.calls: List[Tuple[str, Optional[Dict[str, Any]]]] = []

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Any = None) -> FakeResponse:
        self.calls.append((url, params))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404, {"success": False, "message": "Not found"})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            route = route(params or {})
            if isinstance(route, Exception):
                raise route
        return route

    def called(self, url: str) -> bool:
        return any(called_url == url for called_url, _ in self.calls)


def ok(payload: Any) -> FakeResponse:
    return FakeResponse(200, payload)


def sketch_routes(
    sketch_id: str,
    metadata: Dict[str, Any],
    code: Any = None,
    files: Any = None,
    libraries: Any = None,
    users: Optional[Dict[str, str]] = None,
) -> Dict[str, Route]:
    routes: Dict[str, Route] = {
        f"/api/sketch/{sketch_id}": ok(metadata),
        f"/api/sketch/{sketch_id}/code": code if isinstance(code, FakeResponse) else ok(code or []),
        f"/api/sketch/{sketch_id}/files": files if isinstance(files, FakeResponse) else ok(files or []),
        f"/api/sketch/{sketch_id}/libraries": (
            libraries if isinstance(libraries, FakeResponse) else ok(libraries or [])
        ),
    }
    for user_id, fullname in (users or {}).items():
        routes[f"/api/user/{user_id}"] = ok({"fullname": fullname})
    return routes


def metadata_for(sketch_id: str, **overrides: Any) -> Dict[str, Any]:
    data = {
        "visualID": None,
        "title": f"Sketch {sketch_id}",
        "mode": "p5js",
        "userID": 7,
        "parentID": None,
        "fileBase": None,
        "engineURL": "/assets/js/vendor/p5-1.9.0.min.js",
        "libraries": [],
    }
    data.update(overrides)
    return data


@pytest.fixture
def settings(tmp_path) -> Settings:
    return build_settings(
        {
            "save_dir": str(tmp_path / "downloads"),
            "verbose": False,
            "settle_delay_ms": 0,
            "load_more_delay_ms": 0,
        }
    )


@pytest.fixture
def make_api(settings):
    def factory(routes: Dict[str, Route], custom_settings: Optional[Settings] = None):
        request = FakeRequestContext(routes)
        return OpenProcessingApi(request, custom_settings or settings), request

    return factory
