"""Internal link validation over rendered HTML"""

import re
from typing import Iterable
from urllib.parse import unquote

from mdsite.core.models import Page, route_to_file
from mdsite.errors import BrokenInternalLink


LINK_RE = re.compile(r'''<(?:a|img|link|script|source)\b[^>]*?\s(?:href|src)\s*=\s*["']([^"']*)["']''', re.IGNORECASE)


def internal_targets(html_text: str) -> list[str]:
    """Root-relative link targets in html_text, without query or fragment, in document order."""
    targets = []
    for raw in LINK_RE.findall(html_text):
        if not raw.startswith('/') or raw.startswith('//'):
            continue
        target = unquote(raw.split('#', 1)[0].split('?', 1)[0])
        if target and target not in targets:
            targets.append(target)
    return targets


def known_targets(routes: Iterable[str], static_files: Iterable[str] = ()) -> set[str]:
    """Every path form under which a route or static file may be linked."""
    known = set()
    for route in routes:
        known.add(route)
        known.add(route.rstrip('/') or '/')
        known.add('/' + route_to_file(route).as_posix())
    for path in static_files:
        known.add('/' + path.lstrip('/'))
    return known


def check_links(pages: Iterable[Page], known: set[str]) -> list[BrokenInternalLink]:
    broken = []
    for page in pages:
        for target in internal_targets(page.content):
            if target not in known and target.rstrip('/') not in known:
                broken.append(BrokenInternalLink(page.path, target))
    return broken
