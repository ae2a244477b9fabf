"""
Run configuration: static defaults, an optional JSON config file and CLI overrides,
merged once at startup into an immutable Settings value.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, NonNegativeInt, PositiveInt, ValidationError, field_validator

SEARCH_URL_BASE = "https://openprocessing.org/browse/?time=anytime&type=all&q="
SKETCH_URL_BASE = "https://openprocessing.org/sketch/"
API_BASE_URL = "https://openprocessing.org"
THUMBNAIL_URL_TEMPLATE = (
    "https://openprocessing-usercontent.s3.amazonaws.com/thumbnails/visualThumbnail{visualID}@2x.jpg"
)
SHOW_MORE_SELECTOR = "#showMoreButton"
SHOW_MORE_ACTIVE_CLASS = "show"
SKETCH_LINK_SELECTOR = 'a[href^="/sketch/"]'
CREATE_SKETCH_HREF = "/sketch/create"
HIDDEN_CODE_MESSAGE = "Sketch source code is hidden."
META_DIR = "metadata"
MIN_SEARCH_TERM_LENGTH = 4


class ConfigError(ValueError):
    """Raised when the configuration cannot be turned into Settings."""


class Mode(str, Enum):
    SEARCH_BY_TERM = "SEARCH_BY_TERM"
    SEARCH_BY_USER_ID = "SEARCH_BY_USER_ID"
    SEARCH_BY_CURATION_ID = "SEARCH_BY_CURATION_ID"
    SEARCH_BY_SKETCH_ID = "SEARCH_BY_SKETCH_ID"


class Settings(BaseModel):
    """Immutable run configuration; field defaults are the static defaults."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    search_mode: Mode = Mode.SEARCH_BY_TERM
    search_term: str = "unusual"  # the platform ignores terms shorter than 4 characters
    user_id: str = "22192"
    curation_id: str = "78544"
    sketch_id: str = "2063664"
    download_assets: bool = True
    skip_forks: bool = False
    verbose: bool = True
    save_dir: Path = Path("downloads")
    headless: bool = True
    network_idle_timeout_ms: NonNegativeInt = 60000
    settle_delay_ms: NonNegativeInt = 5000
    load_more_delay_ms: NonNegativeInt = 3000
    request_timeout_ms: NonNegativeInt = 30000
    page_size: PositiveInt = 100
    hidden_code_message: str = HIDDEN_CODE_MESSAGE

    @field_validator("search_mode", mode="before")
    @classmethod
    def _mode_upper(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("save_dir")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def search_url(self) -> str:
        return SEARCH_URL_BASE + quote(self.search_term, safe="")


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read a static JSON config file; keys mirror the Settings fields."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    unknown = sorted(set(data) - set(Settings.model_fields))
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")
    return data


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        where = ".".join(str(part) for part in error["loc"]) or "settings"
        problems.append(f"{where}: {error['msg']}")
    return "Invalid settings: " + "; ".join(problems)


def build_settings(
    overrides: Optional[Dict[str, Any]] = None,
    config_file: Optional[Path] = None,
) -> Settings:
    """Merge defaults, the config file and overrides (in that order) into Settings.

    Override values of ``None`` mean "not given" and leave the lower layer alone.
    """
    merged: Dict[str, Any] = {}
    if config_file is not None:
        merged.update(load_config_file(config_file))
    merged.update({key: value for key, value in (overrides or {}).items() if value is not None})
    try:
        return Settings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(_describe(exc)) from None
