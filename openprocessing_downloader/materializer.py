"""
Writes a fetched sketch to disk: code files, assets, index.html, metadata and thumbnail.
"""

import asyncio
import json
import logging
import posixpath
from pathlib import Path
from typing import List, Optional, Set, Tuple

from .api import FETCH_ERRORS, OpenProcessingApi
from .config import META_DIR, THUMBNAIL_URL_TEMPLATE, Settings
from .html_generator import render_index_html
from .models import SketchFile, SketchRecord
from .utils import resolve_asset_url, sanitize_filename, unique_name

logger = logging.getLogger(__name__)

DEFAULT_CODE_EXTENSION = ".js"
INDEX_HTML = "index.html"
DOWNLOAD_ERRORS = FETCH_ERRORS + (OSError,)


def code_filename(title: Optional[str], index: int) -> str:
    """Filename for the code part at 0-based ``index``, before de-duplication."""
    name = posixpath.basename((title or "").replace("\\", "/")) or f"part_{index + 1}"
    if not posixpath.splitext(name)[1]:
        name += DEFAULT_CODE_EXTENSION
    return sanitize_filename(name) or f"part_{index + 1}{DEFAULT_CODE_EXTENSION}"


def reserved_names(record: SketchRecord) -> Set[str]:
    """Names the materializer writes itself; code parts and assets must not take them."""
    if record.html_mode:
        # The sketch ships its own index.html as a code part
        return {META_DIR}
    return {META_DIR, INDEX_HTML}


class SketchMaterializer:
    def __init__(self, settings: Settings, api: OpenProcessingApi):
        self.settings = settings
        self.api = api

    def sketch_dir(self, sketch_id: str) -> Path:
        return self.settings.save_dir / f"sketch_{sketch_id}"

    async def materialize(self, record: SketchRecord) -> Path:
        sketch_dir = self.sketch_dir(record.sketch_id)
        sketch_dir.mkdir(parents=True, exist_ok=True)
        taken = reserved_names(record)

        code_files = self.write_code_parts(record, sketch_dir, taken)

        if self.settings.download_assets:
            await self.download_assets(record, sketch_dir, taken)

        if not record.html_mode:
            html = render_index_html(record.metadata, code_files, record.libraries)
            (sketch_dir / INDEX_HTML).write_text(html, encoding="utf-8")

        metadata_dir = sketch_dir / META_DIR
        metadata_dir.mkdir(exist_ok=True)
        (metadata_dir / "metadata.json").write_text(
            json.dumps(dict(record.metadata), ensure_ascii=False, indent=2), encoding="utf-8"
        )

        await self.download_thumbnail(record, metadata_dir)
        return sketch_dir

    def write_code_parts(
        self, record: SketchRecord, sketch_dir: Path, taken: Set[str]
    ) -> List[Tuple[Optional[str], str]]:
        written: List[Tuple[Optional[str], str]] = []
        for index, part in enumerate(record.code_parts):
            filename = unique_name(code_filename(part.title, index), taken)
            (sketch_dir / filename).write_text(part.code, encoding="utf-8")
            written.append((part.title, filename))
        return written

    async def download_assets(self, record: SketchRecord, sketch_dir: Path, taken: Set[str]) -> None:
        if not record.files:
            return
        base_url = record.metadata.get("fileBase")
        if not base_url:
            logger.error(f"😬 'fileBase' URL is missing in metadata of sketch {record.sketch_id}")
            return

        files: List[SketchFile] = []
        jobs = []
        for file in record.files:
            if not file.name:
                logger.warning(f"A file of sketch {record.sketch_id} is missing its name, skipped")
                continue
            filename = sanitize_filename(posixpath.basename(file.name))
            if not filename:
                logger.warning(f"Asset name {file.name!r} of sketch {record.sketch_id} is unusable, skipped")
                continue
            target = sketch_dir / unique_name(filename, taken)
            files.append(file)
            jobs.append(self._download_asset(base_url, file, target))

        # All downloads are joined; one failing does not stop the others.
        results = await asyncio.gather(*jobs, return_exceptions=True)
        for file, result in zip(files, results):
            if isinstance(result, Exception):
                logger.error(
                    f"😬 Unexpected error downloading asset {file.name} of sketch {record.sketch_id}: {result!r}"
                )
            elif isinstance(result, BaseException):
                raise result

    async def _download_asset(self, base_url: str, file: SketchFile, target: Path) -> bool:
        url = resolve_asset_url(base_url, file.name or "")
        if not url:
            logger.error(f"😬 Could not resolve URL for {file.name}")
            return False
        try:
            content = await self.api.get_bytes(url)
            target.write_bytes(content)
        except DOWNLOAD_ERRORS as exc:
            logger.error(f"😬 Error downloading asset from URL: {url} ({exc})")
            return False
        return True

    async def download_thumbnail(self, record: SketchRecord, metadata_dir: Path) -> None:
        visual_id = record.metadata.get("visualID")
        if not visual_id:
            return
        url = THUMBNAIL_URL_TEMPLATE.format(visualID=visual_id)
        try:
            content = await self.api.get_bytes(url)
            (metadata_dir / "thumbnail.jpg").write_bytes(content)
        except DOWNLOAD_ERRORS as exc:
            logger.debug(f"No thumbnail available for sketch {record.sketch_id}: {exc}")
