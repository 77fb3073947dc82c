"""Front-matter extraction: split a document into typed metadata and body"""

import datetime as dt
import re
from typing import Any

import yaml

from mdsite.core.models import FrontMatter, FrontMatterValue, RawValue
from mdsite.errors import MalformedFrontMatter


MARKER = "---"
DATE_LIKE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}(?:[T ]\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?(?:\s*(?:Z|[+-]\d{2}:?\d{2}))?$')
DATETIME_FORMATS = ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M %z")
PLAIN_TAGS = {f"tag:yaml.org,2002:{name}" for name in ("bool", "int", "float", "null")}


class FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that leaves bare scalars as strings; only timestamps are still resolved."""


FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in PLAIN_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _parse_date(text: str) -> dt.date | None:
    """Parse an ISO-8601-like token into a date or datetime, else None."""
    text = text.strip()
    if not DATE_LIKE_RE.match(text):
        return None
    if len(text) == 10:
        try:
            return dt.date.fromisoformat(text)
        except ValueError:
            return None
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in DATETIME_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool, dt.date))


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dt.date):
        return value.isoformat()
    return str(value)


def normalize_value(value: Any) -> FrontMatterValue:
    """Narrow a YAML value to the front-matter sum type."""
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        return _parse_date(value) or value
    if isinstance(value, list) and all(_is_scalar(v) for v in value):
        return [_scalar_text(v) for v in value]
    return RawValue(value)


def _split(text: str) -> tuple[str, str] | None:
    """Return (block, body) when text opens with a marker line, else None. Raises ValueError if unterminated."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != MARKER:
        return None
    for i in range(1, len(lines)):
        if lines[i].rstrip() == MARKER:
            return "".join(lines[1:i]), "".join(lines[i + 1:])
    raise ValueError("no closing '---' marker")


def parse_front_matter(text: str, path: str = "<string>") -> tuple[FrontMatter, str]:
    """Return (front_matter, body). Documents without a leading marker get empty front matter."""
    stripped = text.lstrip("\ufeff")
    try:
        split = _split(stripped)
    except ValueError as e:
        raise MalformedFrontMatter(path, str(e)) from e
    if split is None:
        return FrontMatter(), text

    block, body = split
    try:
        data = yaml.load(block, Loader=FrontMatterLoader) if block.strip() else {}
    except yaml.YAMLError as e:
        raise MalformedFrontMatter(path, f"invalid YAML: {e}") from e
    except ValueError as e:
        # timestamps that match the pattern but are not real dates, e.g. 2023-02-30
        raise MalformedFrontMatter(path, f"invalid value: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedFrontMatter(path, f"expected a mapping, got {type(data).__name__}")

    fields = {str(k): normalize_value(v) for k, v in data.items()}
    return FrontMatter(fields=fields), body
