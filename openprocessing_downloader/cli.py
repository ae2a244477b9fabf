"""
Command line entry point.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from playwright.async_api import async_playwright

from .api import open_api
from .config import ConfigError, Mode, Settings, build_settings
from .console import configure_logging
from .pipeline import format_summary, run_pipeline

MODE_FLAGS = {
    "search_term": Mode.SEARCH_BY_TERM,
    "user_id": Mode.SEARCH_BY_USER_ID,
    "curation_id": Mode.SEARCH_BY_CURATION_ID,
    "sketch_id": Mode.SEARCH_BY_SKETCH_ID,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Download OpenProcessing sketches (code, assets, metadata) to local folders"
    )
    parser.add_argument("--config", type=Path, help="Path to a JSON file overriding the built-in defaults")
    parser.add_argument(
        "--mode",
        dest="search_mode",
        type=str.upper,
        choices=[m.value for m in Mode],
        help="How sketches are discovered",
    )
    parser.add_argument("--term", dest="search_term", help="Search term (SEARCH_BY_TERM)")
    parser.add_argument("--user-id", dest="user_id", help="User whose sketches are listed (SEARCH_BY_USER_ID)")
    parser.add_argument("--curation-id", dest="curation_id", help="Curation to list (SEARCH_BY_CURATION_ID)")
    parser.add_argument("--sketch-id", dest="sketch_id", help="Single sketch to fetch (SEARCH_BY_SKETCH_ID)")
    parser.add_argument("--output", "-o", dest="save_dir", help="Output directory")
    parser.add_argument(
        "--download-assets",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Download asset files (images, sounds, ...) next to the code",
    )
    parser.add_argument(
        "--skip-forks",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Do not save sketches that are forks of another sketch",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="List files, assets and libraries of every sketch",
    )
    parser.add_argument("--quiet", dest="verbose", action="store_false", default=None, help="Same as --no-verbose")
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run the search browser without a window",
    )
    parser.add_argument("--headed", dest="headless", action="store_false", default=None, help="Same as --no-headless")
    parser.add_argument("--settle-delay", dest="settle_delay_ms", type=int, help="Wait after page load (ms)")
    parser.add_argument(
        "--load-more-delay",
        dest="load_more_delay_ms",
        type=int,
        help='Wait after each "show more" click (ms)',
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    overrides = {
        key: getattr(args, key)
        for key in (
            "search_mode",
            "search_term",
            "user_id",
            "curation_id",
            "sketch_id",
            "save_dir",
            "download_assets",
            "skip_forks",
            "verbose",
            "headless",
            "settle_delay_ms",
            "load_more_delay_ms",
        )
    }
    if overrides["search_mode"] is None:
        # A single selector flag implies its mode
        given = [mode for key, mode in MODE_FLAGS.items() if overrides[key] is not None]
        if len(given) == 1:
            overrides["search_mode"] = given[0].value
    return overrides


async def main_async(settings: Settings) -> int:
    async with async_playwright() as p:
        async with open_api(p, settings) as api:
            summary = await run_pipeline(settings, api, p.chromium)

    for line in format_summary(summary):
        print(line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = build_settings(overrides_from_args(args), config_file=args.config)
    except ConfigError as exc:
        parser.print_usage(sys.stderr)
        print(f"❌ {exc}", file=sys.stderr)
        return 2

    configure_logging(settings.verbose)
    return asyncio.run(main_async(settings))


if __name__ == "__main__":
    sys.exit(main())
