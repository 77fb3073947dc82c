"""Site build orchestration: parse, index, validate, compose and write"""

import logging
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from typing import Optional

from mdsite.config import CollectionRule, Settings
from mdsite.core.compose import Composer
from mdsite.core.indexer import index_collections
from mdsite.core.links import check_links, known_targets
from mdsite.core.models import BuildResult, Page, SiteOutput, route_to_file
from mdsite.core.pages import discover_files, find_route_collisions, make_page, normalize_route, read_document
from mdsite.errors import (
    BuildFailed,
    InvalidLayout,
    MalformedFrontMatter,
    RouteCollision,
    SiteError,
    UnknownLayout,
)


logger = logging.getLogger(__name__)

MAX_WORKERS = 32


def _worker_count(settings: Settings) -> int:
    n = settings.workers or os.cpu_count() or 1
    return max(1, min(n, MAX_WORKERS))


def _listing_source(rule: CollectionRule) -> str:
    """Pseudo source path naming a generated listing page in error messages."""
    return f"<collection:{rule.name}>"


def _static_files(static_dir: Optional[Path]) -> list[str]:
    if static_dir is None or not static_dir.is_dir():
        return []
    return sorted(p.relative_to(static_dir).as_posix() for p in static_dir.rglob('*') if p.is_file())


def load_pages(settings: Settings) -> tuple[list[Page], list[MalformedFrontMatter]]:
    """Parse and render every published document. Malformed documents are reported, not raised."""
    source_root = Path(settings.source_root)
    if not source_root.is_dir():
        raise FileNotFoundError(f"Source root not found: {source_root}")

    exclude = [Path(settings.output_root), Path(settings.layouts_dir)]
    if settings.static_dir:
        exclude.append(Path(settings.static_dir))
    files = discover_files(source_root, exclude)
    logger.debug("Discovered %d document(s) under %s", len(files), source_root)

    def _load(path: Path) -> tuple[Optional[Page], Optional[MalformedFrontMatter]]:
        try:
            return make_page(read_document(path, source_root)), None
        except MalformedFrontMatter as e:
            return None, e

    with ThreadPoolExecutor(max_workers=_worker_count(settings)) as pool:
        results = list(pool.map(_load, files))

    pages, errors = [], []
    for page, error in results:
        if error is not None:
            errors.append(error)
        elif not page.frontmatter.published:
            logger.debug("Skipping unpublished %s", page.path)
        else:
            pages.append(page)
    return pages, errors


def _layout_errors(composer: Composer, uses: list[tuple[str, str]]) -> list[SiteError]:
    """UnknownLayout per (source, layout) use of a missing layout; one InvalidLayout per broken layout."""
    errors: list[SiteError] = []
    invalid = set()
    for source, name in uses:
        try:
            found = composer.has_layout(name)
        except InvalidLayout as e:
            if name not in invalid:
                invalid.add(name)
                errors.append(e)
            continue
        if not found:
            errors.append(UnknownLayout(source, name))
    return errors


def _static_collisions(claims: list[tuple[str, str]], static_dir: Optional[Path], static_files: list[str]) -> list[RouteCollision]:
    """A static file and a page or listing may not write the same output file."""
    static = {PurePosixPath(rel): rel for rel in static_files}
    collisions = []
    for source, route in sorted(claims, key=lambda c: (c[1], c[0])):
        rel = static.get(route_to_file(route))
        if rel is not None:
            collisions.append(RouteCollision((static_dir / rel).as_posix(), source, route))
    return collisions


def compose_site(settings: Settings) -> SiteOutput:
    """Run the whole pipeline in memory. Raises BuildFailed with every fatal error found."""
    pages, malformed = load_pages(settings)
    errors: list[SiteError] = list(malformed)
    listing_rules = [r for r in settings.collection_rules if r.listing_route]

    claims = [(p.path, p.route) for p in pages]
    claims += [(_listing_source(r), normalize_route(r.listing_route)) for r in listing_rules]
    errors.extend(find_route_collisions(claims))
    static_dir = Path(settings.static_dir) if settings.static_dir else None
    static_files = _static_files(static_dir)
    errors.extend(_static_collisions(claims, static_dir, static_files))

    composer = Composer(settings)
    uses = [(p.path, composer.layout_name(p)) for p in pages]
    uses += [(_listing_source(r), r.listing_layout) for r in listing_rules]
    errors.extend(_layout_errors(composer, uses))

    # every page must exist before any listing is composed
    collections = index_collections(pages, settings.collection_rules, settings.excerpt_length)

    known = known_targets([route for _, route in claims], static_files)
    broken = check_links(pages, known)
    warnings: list[SiteError] = []
    if settings.strict_links:
        errors.extend(broken)
    else:
        for link in broken:
            logger.warning("%s", link)
        warnings.extend(broken)

    if errors:
        raise BuildFailed(errors)

    with ThreadPoolExecutor(max_workers=_worker_count(settings)) as pool:
        rendered = list(pool.map(lambda p: composer.compose(p, collections), pages))

    files: dict[PurePosixPath, str] = {}
    for page, text in zip(pages, rendered):
        files[page.output_path] = text
    for rule in listing_rules:
        files[route_to_file(normalize_route(rule.listing_route))] = composer.compose_listing(rule, collections)

    logger.info("Composed %d page(s) in %d collection(s)", len(files), len(collections))
    return SiteOutput(files=files, pages=pages, collections=collections, warnings=warnings)


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')


def _swap(staging: Path, output_root: Path) -> None:
    """Replace output_root with staging using renames, so readers never see a half-written tree."""
    if not output_root.exists():
        staging.rename(output_root)
        return
    if not output_root.is_dir():
        raise NotADirectoryError(f"Output root is not a directory: {output_root}")
    retired = Path(tempfile.mkdtemp(prefix=f".{output_root.name}-old-", dir=output_root.parent))
    retired.rmdir()
    output_root.rename(retired)
    try:
        staging.rename(output_root)
    except OSError:
        retired.rename(output_root)
        raise
    shutil.rmtree(retired)


def write_site(output: SiteOutput, settings: Settings) -> list[PurePosixPath]:
    """Write output into a staging directory and swap it into place; nothing is written on failure."""
    output_root = Path(settings.output_root).resolve()
    output_root.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{output_root.name}-", dir=output_root.parent))
    staging.chmod(0o755)
    try:
        if settings.static_dir and Path(settings.static_dir).is_dir():
            shutil.copytree(settings.static_dir, staging, dirs_exist_ok=True)
        root = staging.resolve()
        for rel in sorted(output.files):
            target = (staging / rel).resolve()
            if not target.is_relative_to(root):
                raise ValueError(f"Refusing to write outside the output root: {rel}")
            _write_text(target, output.files[rel])
            logger.debug("Wrote %s", rel)
        _swap(staging, output_root)
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    return sorted(output.files)


def build_site(settings: Settings) -> BuildResult:
    """Compose the whole site and write it atomically to settings.output_root."""
    output = compose_site(settings)
    written = write_site(output, settings)
    logger.info("Wrote %d file(s) to %s", len(written), settings.output_root)
    return BuildResult(output_root=Path(settings.output_root), written=written, warnings=output.warnings)
