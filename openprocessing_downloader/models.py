"""
Shapes of the API responses and the per-sketch record assembled from them.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

MODE_EMOJI = {"processingjs": "🅿️", "html": "🗂️", "p5js": "🌸", "applet": "📦"}


class ApiModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class LibraryRef(ApiModel):
    url: Optional[str] = None


class SketchMetadata(ApiModel):
    title: Optional[str] = None
    mode: str = ""
    userID: Optional[Union[int, str]] = None
    parentID: Optional[Union[int, str]] = None
    visualID: Optional[Union[int, str]] = None
    fileBase: Optional[str] = None
    engineURL: Optional[str] = None
    libraries: List[LibraryRef] = []

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_or_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("libraries", mode="before")
    @classmethod
    def _libraries_or_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_fork(self) -> bool:
        return self.parentID not in (None, 0, "0", "")


class CodePart(ApiModel):
    title: Optional[str] = None
    code: str = ""

    @field_validator("code", mode="before")
    @classmethod
    def _code_or_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class SketchFile(ApiModel):
    name: Optional[str] = None


class UserInfo(ApiModel):
    fullname: Optional[str] = None


class CurationInfo(ApiModel):
    title: Optional[str] = None


class ListedSketch(ApiModel):
    visualID: Union[int, str]


class ApiFailure(ApiModel):
    success: bool
    message: Optional[str] = None


CodePartList = TypeAdapter(List[CodePart])
SketchFileList = TypeAdapter(List[SketchFile])
LibraryList = TypeAdapter(List[LibraryRef])
ListedSketchList = TypeAdapter(List[ListedSketch])


@dataclass(frozen=True)
class CodeLoaded:
    parts: Tuple[CodePart, ...]


@dataclass(frozen=True)
class CodeHidden:
    message: str = ""


@dataclass(frozen=True)
class CodeFailed:
    message: str


CodeOutcome = Union[CodeLoaded, CodeHidden, CodeFailed]


@dataclass(frozen=True)
class ParentInfo:
    sketch_id: str
    title: str
    author: str


@dataclass(frozen=True)
class SketchRecord:
    sketch_id: str
    metadata: Mapping[str, Any]
    author: str = ""
    is_fork: bool = False
    parent: Optional[ParentInfo] = None
    code_parts: Tuple[CodePart, ...] = ()
    hidden_code: bool = False
    files: Tuple[SketchFile, ...] = ()
    libraries: Tuple[LibraryRef, ...] = ()
    error: str = ""

    def __post_init__(self) -> None:
        if self.hidden_code and self.code_parts:
            raise ValueError("a sketch with hidden code cannot carry code parts")
        if self.is_fork and (self.parent is None or not self.parent.sketch_id):
            raise ValueError("a fork must reference its parent sketch")

    @property
    def mode(self) -> str:
        return self.metadata.get("mode") or ""

    @property
    def title(self) -> Optional[str]:
        return self.metadata.get("title")

    @property
    def html_mode(self) -> bool:
        return self.mode == "html"

    @property
    def mode_emoji(self) -> str:
        return MODE_EMOJI.get(self.mode, "❓")


@dataclass
class RunSummary:
    output_dir: Path
    discovered: int = 0
    processed: int = 0
    skipped: List[Tuple[str, str]] = field(default_factory=list)

    def skip(self, sketch_id: str, reason: str) -> None:
        self.skipped.append((sketch_id, reason))

    def skipped_ids(self, reason: Optional[str] = None) -> List[str]:
        return [sid for sid, why in self.skipped if reason is None or why == reason]

