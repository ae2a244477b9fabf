"""
Thin client over the OpenProcessing REST API, built on Playwright's APIRequestContext.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from playwright.async_api import APIRequestContext, Error as PlaywrightError, Playwright
from pydantic import TypeAdapter, ValidationError

from .config import API_BASE_URL, Settings
from .models import (
    ApiFailure,
    CodeFailed,
    CodeHidden,
    CodeLoaded,
    CodeOutcome,
    CodePartList,
    CurationInfo,
    LibraryList,
    LibraryRef,
    ListedSketchList,
    SketchFile,
    SketchFileList,
    SketchMetadata,
    UserInfo,
)

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MAX_PAGES = 100


class ApiError(Exception):
    """A request completed but did not produce a usable response."""


# Everything a single API call may raise for reasons outside our control.
FETCH_ERRORS = (ApiError, PlaywrightError, ValueError)


class OpenProcessingApi:
    def __init__(self, request: APIRequestContext, settings: Settings):
        self._request = request
        self._timeout = settings.request_timeout_ms
        self._page_size = settings.page_size
        self._hidden_code_message = settings.hidden_code_message

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self._request.get(path, params=params, timeout=self._timeout)
        if not response.ok:
            raise ApiError(f"HTTP {response.status} for {path}")
        try:
            return await response.json()
        except ValueError as exc:
            raise ApiError(f"Malformed JSON from {path}: {exc}") from exc

    async def get_bytes(self, url: str) -> bytes:
        response = await self._request.get(url, timeout=self._timeout)
        if not response.ok:
            raise ApiError(f"HTTP {response.status} for {url}")
        return await response.body()

    async def sketch_metadata(self, sketch_id: str) -> Dict[str, Any]:
        """Raw metadata object of a sketch, checked against SketchMetadata."""
        data = await self.get_json(f"/api/sketch/{sketch_id}")
        if not isinstance(data, dict) or not data:
            raise ApiError(f"Unexpected response format for metadata of sketch {sketch_id}")
        SketchMetadata.model_validate(data)
        return data

    async def user(self, user_id: Any) -> UserInfo:
        return UserInfo.model_validate(await self.get_json(f"/api/user/{user_id}"))

    async def curation(self, curation_id: Any) -> CurationInfo:
        return CurationInfo.model_validate(await self.get_json(f"/api/curation/{curation_id}"))

    async def user_sketch_ids(self, user_id: Any) -> List[str]:
        listed = ListedSketchList.validate_python(await self.get_json(f"/api/user/{user_id}/sketches"))
        return [str(item.visualID) for item in listed]

    async def curation_sketch_ids(self, curation_id: Any) -> List[str]:
        listed = ListedSketchList.validate_python(
            await self.get_json(f"/api/curation/{curation_id}/sketches")
        )
        return [str(item.visualID) for item in listed]

    async def code(self, sketch_id: str) -> CodeOutcome:
        """Fetch code parts; the hidden-source reply is told apart from real failures."""
        path = f"/api/sketch/{sketch_id}/code"
        try:
            response = await self._request.get(path, timeout=self._timeout)
            try:
                data = await response.json()
            except ValueError:
                data = None
        except PlaywrightError as exc:
            return CodeFailed(f"Error fetching code for sketch {sketch_id}: {exc}")

        if isinstance(data, dict) and data.get("success") is False:
            failure = ApiFailure.model_validate(data)
            if failure.message == self._hidden_code_message:
                return CodeHidden(failure.message)
            return CodeFailed(failure.message or f"Code of sketch {sketch_id} is unavailable")

        if not response.ok:
            return CodeFailed(f"HTTP {response.status} for {path}")
        if not isinstance(data, list):
            return CodeFailed(f"Unexpected response format for sketch code {sketch_id}")
        try:
            return CodeLoaded(tuple(CodePartList.validate_python(data)))
        except ValidationError as exc:
            return CodeFailed(f"Malformed code parts for sketch {sketch_id}: {exc.error_count()} errors")

    async def files(self, sketch_id: str) -> List[SketchFile]:
        return await self._paged(f"/api/sketch/{sketch_id}/files", SketchFileList)

    async def libraries(self, sketch_id: str) -> List[LibraryRef]:
        return await self._paged(f"/api/sketch/{sketch_id}/libraries", LibraryList)

    async def _paged(self, path: str, adapter: TypeAdapter) -> List[Any]:
        items: List[Any] = []
        offset = 0
        for _ in range(MAX_PAGES):
            data = await self.get_json(path, params={"limit": self._page_size, "offset": offset})
            if not isinstance(data, list):
                raise ApiError(f"Unexpected response format for {path}")
            page = adapter.validate_python(data)
            items.extend(page)
            if len(page) < self._page_size:
                break
            offset += self._page_size
        else:
            logger.warning(f"Stopped paging {path} after {MAX_PAGES} pages")
        return items


@asynccontextmanager
async def open_api(playwright: Playwright, settings: Settings) -> AsyncIterator[OpenProcessingApi]:
    request = await playwright.request.new_context(
        base_url=API_BASE_URL,
        user_agent=USER_AGENT,
        timeout=settings.request_timeout_ms,
    )
    try:
        yield OpenProcessingApi(request, settings)
    finally:
        await request.dispose()
