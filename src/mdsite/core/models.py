"""Data models shared by the parse, index, compose and write stages"""

import datetime as dt
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Optional, Union

from mdsite.errors import SiteError


@dataclass(frozen=True)
class RawValue:
    """Front-matter value that is not a string, date or list of strings (numbers, booleans, mappings)."""
    value: Any


FrontMatterValue = Union[str, dt.date, list[str], RawValue]

UNPUBLISHED = {"false", "no", "off"}


@dataclass(frozen=True)
class FrontMatter:
    """Ordered key/value metadata block from the head of a document."""
    fields: dict[str, FrontMatterValue] = field(default_factory=dict)

    def get(self, key: str, default: Optional[FrontMatterValue] = None) -> Optional[FrontMatterValue]:
        return self.fields.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def __len__(self) -> int:
        return len(self.fields)

    def _text(self, key: str) -> Optional[str]:
        value = self.fields.get(key)
        if isinstance(value, str):
            return value
        if isinstance(value, dt.date):
            return value.isoformat()
        if isinstance(value, RawValue) and value.value is not None:
            return str(value.value)
        return None

    def _strings(self, key: str) -> list[str]:
        value = self.fields.get(key)
        if isinstance(value, list):
            return list(value)
        if isinstance(value, str):
            return [value]
        return []

    @property
    def layout(self) -> Optional[str]:
        return self._text("layout")

    @property
    def title(self) -> Optional[str]:
        return self._text("title")

    @property
    def description(self) -> Optional[str]:
        return self._text("description")

    @property
    def permalink(self) -> Optional[str]:
        return self._text("permalink")

    @property
    def slug(self) -> Optional[str]:
        return self._text("slug")

    @property
    def date(self) -> Optional[dt.date]:
        value = self.fields.get("date")
        return value if isinstance(value, dt.date) else None

    @property
    def tags(self) -> list[str]:
        return self._strings("tags")

    @property
    def categories(self) -> list[str]:
        return self._strings("categories")

    @property
    def published(self) -> bool:
        value = self.fields.get("published")
        if isinstance(value, RawValue) and isinstance(value.value, bool):
            return value.value
        if isinstance(value, str):
            return value.strip().lower() not in UNPUBLISHED
        return True

    def to_plain(self) -> dict[str, Any]:
        """Unwrap RawValue entries, for handing the mapping to templates."""
        return {k: v.value if isinstance(v, RawValue) else v for k, v in self.fields.items()}


@dataclass(frozen=True)
class Document:
    """Raw input file; path is POSIX and relative to the source root."""
    path:   str
    source: Path
    text:   str

    @property
    def suffix(self) -> str:
        return PurePosixPath(self.path).suffix.lower()


@dataclass
class Page:
    """Parsed front matter, rendered body and resolved route of one document."""
    path:        str
    frontmatter: FrontMatter
    content:     str                   # rendered HTML body
    route:       str
    collections: list[str] = field(default_factory=list)

    @property
    def layout(self) -> Optional[str]:
        return self.frontmatter.layout

    @property
    def title(self) -> Optional[str]:
        return self.frontmatter.title

    @property
    def description(self) -> Optional[str]:
        return self.frontmatter.description

    @property
    def date(self) -> Optional[dt.date]:
        return self.frontmatter.date

    @property
    def output_path(self) -> PurePosixPath:
        return route_to_file(self.route)


@dataclass(frozen=True)
class Entry:
    """Listing view record of one collection member."""
    route:       str
    title:       Optional[str]
    description: Optional[str]
    date:        Optional[dt.date]
    excerpt:     str
    path:        str
    tags:        tuple[str, ...] = ()


@dataclass(frozen=True)
class Collection:
    name:    str
    entries: tuple[Entry, ...] = ()

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def routes(self) -> list[str]:
        return [e.route for e in self.entries]


@dataclass
class SiteOutput:
    """Everything a build would write: rendered files keyed by output-relative path."""
    files:       dict[PurePosixPath, str] = field(default_factory=dict)
    pages:       list[Page] = field(default_factory=list)
    collections: dict[str, Collection] = field(default_factory=dict)
    warnings:    list[SiteError] = field(default_factory=list)


@dataclass
class BuildResult:
    output_root: Path
    written:     list[PurePosixPath]
    warnings:    list[SiteError]


def route_to_file(route: str) -> PurePosixPath:
    """Map a route to its file under the output root: '/a/' -> a/index.html, '/feed.xml' -> feed.xml."""
    rel = route.lstrip("/")
    if not rel or route.endswith("/"):
        return PurePosixPath(rel) / "index.html"
    path = PurePosixPath(rel)
    if not path.suffix:
        return path / "index.html"
    return path
