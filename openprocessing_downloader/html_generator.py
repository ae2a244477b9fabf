"""
Synthesized index.html for sketches that are not authored in HTML mode.
"""

from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .models import LibraryRef
from .utils import PLATFORM_ORIGIN

HEAD_START = """<!DOCTYPE html>
<html lang="en">

<head>
    <meta charset="utf-8" />
    <!-- keep the line below for OpenProcessing compatibility -->
    <script src="{origin}/openprocessing_sketch.js"></script>
    <script src="{engine_url}"></script>
"""

PAGE_END = """</head>

<body>

</body>

</html>"""

INDENT = "    "


def resolve_engine_url(raw: Optional[str]) -> str:
    engine_url = (raw or "").replace("\\", "")
    if engine_url.startswith("/"):
        engine_url = PLATFORM_ORIGIN + engine_url
    return engine_url


def _section(tags: List[str]) -> str:
    if not tags:
        return ""
    return INDENT + f"\n{INDENT}".join(tags) + "\n"


def render_index_html(
    metadata: Mapping[str, Any],
    code_files: Sequence[Tuple[Optional[str], str]],
    libraries: Sequence[LibraryRef],
) -> str:
    """Render the entry page.

    ``code_files`` pairs each code part's original title with the filename it
    was saved under, in save order. Scripts whose title ends in ``.js`` come
    first, then titles without an extension, then stylesheets.
    """
    head = HEAD_START.format(
        origin=PLATFORM_ORIGIN,
        engine_url=resolve_engine_url(metadata.get("engineURL")),
    )

    library_tags = [f'<script src="{lib.url}"></script>' for lib in libraries if lib.url]

    script_tags = [
        f'<script src="{saved}"></script>'
        for title, saved in code_files
        if title and title.endswith(".js")
    ]
    default_script_tags = [
        f'<script src="{saved}"></script>'
        for title, saved in code_files
        if not title or "." not in title
    ]
    css_tags = [
        f'<link rel="stylesheet" type="text/css" href="{saved}">'
        for title, saved in code_files
        if title and title.endswith(".css")
    ]

    return (
        head
        + _section(library_tags)
        + _section(script_tags)
        + _section(default_script_tags)
        + _section(css_tags)
        + PAGE_END
    )
