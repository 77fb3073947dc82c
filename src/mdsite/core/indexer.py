"""Collection membership, ordering and listing view records"""

import datetime as dt
from fnmatch import fnmatchcase
from typing import Iterable

from mdsite.config import CollectionRule
from mdsite.core.models import Collection, Entry, Page
from mdsite.core.utils.text import excerpt


def matches(rule: CollectionRule, path: str) -> bool:
    """True when path matches the rule's pattern and none of its exclude globs."""
    if not fnmatchcase(path, rule.pattern):
        return False
    return not any(fnmatchcase(path, ex) for ex in rule.exclude)


def _timestamp(value: dt.date) -> float:
    """Comparable ordinal for dates, naive datetimes and aware datetimes alike."""
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
        return (value - dt.datetime(1970, 1, 1)).total_seconds()
    return (dt.datetime.combine(value, dt.time.min) - dt.datetime(1970, 1, 1)).total_seconds()


def sort_pages(pages: Iterable[Page]) -> list[Page]:
    """Date descending, undated pages last; ties by source path."""
    by_path = sorted(pages, key=lambda p: p.path)
    dated = [p for p in by_path if p.date is not None]
    undated = [p for p in by_path if p.date is None]
    dated.sort(key=lambda p: _timestamp(p.date), reverse=True)  # stable: path order survives ties
    return dated + undated


def to_entry(page: Page, excerpt_length: int) -> Entry:
    return Entry(
        route=page.route,
        title=page.title,
        description=page.description,
        date=page.date,
        excerpt=excerpt(page.content, excerpt_length),
        path=page.path,
        tags=tuple(page.frontmatter.tags),
    )


def index_collections(
    pages: list[Page],
    rules: list[CollectionRule],
    excerpt_length: int,
    ) -> dict[str, Collection]:
    """Group pages into named collections and sort each one.

    Membership is recomputed from scratch; a page appears at most once per
    collection even when several rules share a name. Page.collections is
    updated with the names each page belongs to.
    """
    members: dict[str, dict[str, Page]] = {}
    for rule in rules:
        bucket = members.setdefault(rule.name, {})
        for page in pages:
            if matches(rule, page.path):
                bucket[page.path] = page

    for page in pages:
        page.collections = sorted(name for name, bucket in members.items() if page.path in bucket)

    return {
        name: Collection(
            name=name,
            entries=tuple(to_entry(p, excerpt_length) for p in sort_pages(bucket.values())),
        )
        for name, bucket in members.items()
    }
