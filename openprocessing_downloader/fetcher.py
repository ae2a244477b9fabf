"""
Gathering of everything known about a single sketch into a SketchRecord.
"""

import asyncio
import logging
from typing import Any, Awaitable, List, Optional, Tuple, TypeVar

from .api import FETCH_ERRORS, OpenProcessingApi
from .models import (
    CodeFailed,
    CodeHidden,
    CodeLoaded,
    CodeOutcome,
    CodePart,
    LibraryRef,
    ParentInfo,
    SketchMetadata,
    SketchRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Errors:
    def __init__(self, sketch_id: str):
        self.sketch_id = sketch_id
        self.last = ""

    def record(self, what: str, exc: Any) -> None:
        self.last = f"{what}: {exc}"
        logger.error(f"😬 Error fetching {what} for sketch {self.sketch_id}: {exc}")


async def _guarded(errors: _Errors, what: str, call: Awaitable[T], default: T) -> T:
    try:
        return await call
    except FETCH_ERRORS as exc:
        errors.record(what, exc)
        return default


async def _author(api: OpenProcessingApi, errors: _Errors, user_id: Any) -> str:
    if user_id in (None, ""):
        return ""
    user = await _guarded(errors, f"user {user_id}", api.user(user_id), None)
    return (user.fullname or "") if user is not None else ""


async def _parent(api: OpenProcessingApi, errors: _Errors, parent_id: str) -> ParentInfo:
    data = await _guarded(errors, f"parent sketch {parent_id}", api.sketch_metadata(parent_id), None)
    if data is None:
        return ParentInfo(sketch_id=parent_id, title="", author="")
    parent = SketchMetadata.model_validate(data)
    author = await _author(api, errors, parent.userID)
    return ParentInfo(sketch_id=parent_id, title=parent.title or "", author=author)


async def fetch_sketch_info(api: OpenProcessingApi, sketch_id: Any) -> Optional[SketchRecord]:
    """Build the record of one sketch.

    Sub-fetches that fail leave an empty value and set ``error``; only a sketch
    whose metadata cannot be obtained at all (or an unexpected fault) yields None.
    """
    sketch_id = str(sketch_id)
    errors = _Errors(sketch_id)
    try:
        try:
            metadata = await api.sketch_metadata(sketch_id)
        except FETCH_ERRORS as exc:
            logger.error(f"😬 Unexpected response for metadata of sketch {sketch_id}: {exc}")
            return None
        meta = SketchMetadata.model_validate(metadata)
        is_fork = meta.is_fork

        async def no_parent() -> None:
            return None

        parent_task = _parent(api, errors, str(meta.parentID)) if is_fork else no_parent()
        results: Tuple[Any, ...] = await asyncio.gather(
            parent_task,
            _author(api, errors, meta.userID),
            api.code(sketch_id),
            _guarded(errors, "files", api.files(sketch_id), []),
            _guarded(errors, "libraries", api.libraries(sketch_id), []),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        parent, author, outcome, files, libraries = results
        code_parts, hidden = _unpack_code(outcome, errors)

        return SketchRecord(
            sketch_id=sketch_id,
            metadata=metadata,
            author=author,
            is_fork=is_fork,
            parent=parent,
            code_parts=code_parts,
            hidden_code=hidden,
            files=tuple(files),
            libraries=_merge_libraries(libraries, meta.libraries),
            error=errors.last,
        )
    except Exception as exc:
        logger.exception(f"😬 Error gathering information for sketch {sketch_id}: {exc}")
        return None


def _unpack_code(outcome: CodeOutcome, errors: _Errors) -> Tuple[Tuple[CodePart, ...], bool]:
    # Hidden code is checked first: it is an expected state, not an error.
    if isinstance(outcome, CodeHidden):
        return (), True
    if isinstance(outcome, CodeFailed):
        errors.record("code", outcome.message)
        return (), False
    if isinstance(outcome, CodeLoaded):
        return outcome.parts, False
    raise TypeError(f"Unknown code outcome: {outcome!r}")


def _merge_libraries(fetched: List[LibraryRef], declared: List[LibraryRef]) -> Tuple[LibraryRef, ...]:
    if fetched:
        return tuple(fetched)
    return tuple(declared)
