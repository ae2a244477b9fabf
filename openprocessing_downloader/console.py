"""
Progress lines printed while sketches are gathered.
"""

import logging

from .config import SKETCH_URL_BASE, Settings
from .models import SketchRecord

logger = logging.getLogger("openprocessing_downloader")

SEPARATOR = "-" * 61


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )
    # asyncio reports selector details at debug level
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def log_sketch(record: SketchRecord, settings: Settings) -> None:
    logger.info(SEPARATOR)
    logger.info(f'{record.mode_emoji} "{record.title or "Untitled"}" (ID: {record.sketch_id})')
    logger.info(f"🥚 by {record.author}")
    logger.info(f"🔗 {SKETCH_URL_BASE}{record.sketch_id}")

    if record.hidden_code:
        logger.info("🙈 Source code is hidden")
    elif settings.verbose:
        logger.info(f"   📁Files ({len(record.code_parts)}):")
        for part in record.code_parts:
            logger.info(f"      📄{part.title}")

    if settings.verbose:
        logger.info(f"   📁Assets ({len(record.files)}):")
        for file in record.files:
            logger.info(f"      📄{file.name}")
        logger.info(f"   📚Libraries ({len(record.libraries)}):")
        for library in record.libraries:
            logger.info(f"      🔗 {library.url}")

    if record.files and not settings.download_assets and settings.verbose:
        logger.warning(
            "Asset downloading is disabled. To enable, set download_assets in the config "
            "file or use the --download-assets flag."
        )

    if record.parent is not None:
        parent = record.parent
        logger.info(f'🍴 Fork of "{parent.title}" (ID: {parent.sketch_id}) by {parent.author}')
        logger.info(f"🔗 {SKETCH_URL_BASE}{parent.sketch_id}")
