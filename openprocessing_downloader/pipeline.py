"""
Sequential driver: discover IDs, then fetch, filter and materialize one sketch at a time.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from playwright.async_api import BrowserType

from .api import OpenProcessingApi
from .config import Settings
from .console import log_sketch
from .discovery import collect_sketch_ids
from .fetcher import fetch_sketch_info
from .materializer import SketchMaterializer
from .models import RunSummary, SketchRecord

logger = logging.getLogger(__name__)

Fetch = Callable[[OpenProcessingApi, str], Awaitable[Optional[SketchRecord]]]


class Pipeline:
    def __init__(
        self,
        settings: Settings,
        api: OpenProcessingApi,
        browser_type: BrowserType,
        fetch: Fetch = fetch_sketch_info,
        materializer: Optional[SketchMaterializer] = None,
    ):
        self.settings = settings
        self.api = api
        self.browser_type = browser_type
        self.fetch = fetch
        self.materializer = materializer or SketchMaterializer(settings, api)

    async def run(self) -> RunSummary:
        self.settings.save_dir.mkdir(parents=True, exist_ok=True)
        summary = RunSummary(output_dir=self.settings.save_dir)

        sketch_ids = await collect_sketch_ids(self.settings, self.api, self.browser_type)
        summary.discovered = len(sketch_ids)
        logger.info(f"ℹ️ Total sketches to process: {len(sketch_ids)}")

        for sketch_id in sketch_ids:
            await self.process(str(sketch_id), summary)
        return summary

    async def process(self, sketch_id: str, summary: RunSummary) -> None:
        logger.info("")
        record = await self.fetch(self.api, sketch_id)
        if record is None:
            logger.info(f"Skipping sketch ID: {sketch_id} due to failed information gathering")
            summary.skip(sketch_id, "failed")
            return

        log_sketch(record, self.settings)

        if record.hidden_code:
            logger.info(f"🙈 Skipping sketch ID: {sketch_id} because its source code is hidden")
            summary.skip(sketch_id, "hidden")
            return
        if record.is_fork and self.settings.skip_forks:
            logger.info(f"🍴 Skipping sketch ID: {sketch_id} because it is a fork")
            summary.skip(sketch_id, "fork")
            return

        try:
            sketch_dir = await self.materializer.materialize(record)
        except OSError as exc:
            logger.error(f"😬 Could not save sketch {sketch_id}: {exc}")
            summary.skip(sketch_id, "failed")
            return
        summary.processed += 1
        logger.debug(f"Saved to {sketch_dir}")


async def run_pipeline(
    settings: Settings,
    api: OpenProcessingApi,
    browser_type: BrowserType,
) -> RunSummary:
    return await Pipeline(settings, api, browser_type).run()


def format_summary(summary: RunSummary) -> List[str]:
    lines = [
        "\n✅ Download complete",
        f"Sketches saved: {summary.processed} of {summary.discovered}",
        f"Output: {summary.output_dir}",
    ]
    for reason, label in (("failed", "Failed"), ("hidden", "Hidden code"), ("fork", "Forks skipped")):
        ids = summary.skipped_ids(reason)
        if ids:
            lines.append(f"{label}: {', '.join(ids)}")
    return lines
