"""Document discovery, route derivation and page construction"""

from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from mdsite.core.frontmatter import parse_front_matter
from mdsite.core.models import Document, Page, route_to_file
from mdsite.core.render import CONTENT_SUFFIXES, render_body
from mdsite.core.utils.text import slugify
from mdsite.errors import MalformedFrontMatter, RouteCollision


def _is_skipped(rel: PurePosixPath) -> bool:
    """Paths with a segment starting with '_' or '.' are private (partials, drafts, dotfiles)."""
    return any(part.startswith(('_', '.')) for part in rel.parts)


def discover_files(root: Path, exclude: Iterable[Path] = ()) -> list[Path]:
    """Return content files under root in sorted order, skipping private paths and excluded dirs."""
    root = root.resolve()
    excluded = [p.resolve() for p in exclude]
    files = []
    for p in root.rglob('*'):
        if not p.is_file() or p.suffix.lower() not in CONTENT_SUFFIXES:
            continue
        if any(p.resolve().is_relative_to(ex) for ex in excluded):
            continue
        if _is_skipped(PurePosixPath(p.relative_to(root).as_posix())):
            continue
        files.append(p)
    return sorted(files, key=lambda p: p.relative_to(root).as_posix())


def read_document(path: Path, root: Path) -> Document:
    rel = path.resolve().relative_to(root.resolve()).as_posix()
    try:
        text = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise MalformedFrontMatter(rel, "not valid UTF-8") from e
    return Document(path=rel, source=path, text=text)


def normalize_route(route: str) -> str:
    """Ensure a leading slash and collapse repeated slashes. Raises ValueError on '.' or '..' segments."""
    parts = [p for p in route.split('/') if p]
    if any(p in ('.', '..') for p in parts):
        raise ValueError(f"route '{route}' has a '.' or '..' segment")
    normalized = '/' + '/'.join(parts)
    if route.endswith('/') and parts:
        normalized += '/'
    return normalized


def derive_route(path: str, permalink: Optional[str] = None, slug: Optional[str] = None) -> str:
    """Route for a source-relative path: explicit permalink, else a clean URL from the path.

    'index.md' -> '/', 'about.md' -> '/about/', 'blog/My Post.md' -> '/blog/my-post/'.
    A slug replaces the final segment.
    """
    if permalink:
        return normalize_route(permalink)

    rel = PurePosixPath(path)
    segments = [slugify(part) or part for part in rel.parent.parts]
    stem = rel.stem
    if slug:
        segments.append(slugify(slug) or slug)
    elif stem.lower() != 'index':
        segments.append(slugify(stem) or stem)
    if not segments:
        return '/'
    return '/' + '/'.join(segments) + '/'


def make_page(document: Document) -> Page:
    """Parse a document's front matter, render its body, and resolve its route."""
    frontmatter, body = parse_front_matter(document.text, document.path)
    try:
        route = derive_route(document.path, frontmatter.permalink, frontmatter.slug)
    except ValueError as e:
        raise MalformedFrontMatter(document.path, f"invalid permalink: {e}") from e
    return Page(
        path=document.path,
        frontmatter=frontmatter,
        content=render_body(body, document.suffix),
        route=route,
    )


def find_route_collisions(claims: Iterable[tuple[str, str]]) -> list[RouteCollision]:
    """Return one RouteCollision per extra claimant of an output file. claims are (source, route) pairs."""
    owners: dict[PurePosixPath, str] = {}
    collisions = []
    for source, route in sorted(claims, key=lambda c: (c[1], c[0])):
        target = route_to_file(route)
        if target in owners:
            collisions.append(RouteCollision(owners[target], source, route))
        else:
            owners[target] = source
    return collisions
