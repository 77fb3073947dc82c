"""Layout composition: wrap rendered pages in Jinja2 layouts"""

import datetime as dt
from pathlib import Path
from typing import Any, Optional

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)
from markupsafe import Markup

from mdsite.config import CollectionRule, Settings
from mdsite.core.models import Collection, Page
from mdsite.errors import InvalidLayout


LAYOUT_SUFFIX = ".html"


def format_date(value: Optional[dt.date], fmt: str = "%Y-%m-%d") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)


def make_environment(layouts_dir: Optional[Path] = None) -> Environment:
    """Jinja2 environment resolving user layouts first, then the bundled ones."""
    loaders = []
    if layouts_dir is not None:
        loaders.append(FileSystemLoader(str(layouts_dir)))
    loaders.append(PackageLoader("mdsite", "templates"))
    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=select_autoescape(["html", "xml"]),
        keep_trailing_newline=True,
    )
    env.filters["date"] = format_date
    return env


class Composer:
    """Applies a page's layout to its rendered body, with site metadata and collections in scope."""

    def __init__(self, settings: Settings, env: Optional[Environment] = None):
        self.settings = settings
        self.env = env or make_environment(Path(settings.layouts_dir))

    def layout_name(self, page: Page) -> str:
        return page.layout or self.settings.default_layout

    def has_layout(self, name: str) -> bool:
        """False when no layout is named name. Raises InvalidLayout when it exists but fails to compile."""
        try:
            self.env.get_template(name + LAYOUT_SUFFIX)
        except TemplateNotFound:
            return False
        except TemplateSyntaxError as e:
            raise InvalidLayout(name, f"{e.filename or e.name}:{e.lineno}: {e.message}") from e
        return True

    def _site(self) -> dict[str, Any]:
        return {
            "title": self.settings.site_title,
            "description": self.settings.site_description,
            "base_url": self.settings.base_url.rstrip("/"),
        }

    def _collections(self, collections: dict[str, Collection]) -> dict[str, list]:
        return {name: list(c.entries) for name, c in collections.items()}

    def compose(self, page: Page, collections: dict[str, Collection]) -> str:
        """Render page into its layout. Missing title/description fall back to the site's."""
        template = self.env.get_template(self.layout_name(page) + LAYOUT_SUFFIX)
        context = {
            "page": {
                "title": page.title or self.settings.site_title,
                "description": page.description or self.settings.site_description,
                "date": page.date,
                "tags": page.frontmatter.tags,
                "categories": page.frontmatter.categories,
                "route": page.route,
                "path": page.path,
                "collections": page.collections,
                "content": Markup(page.content),
                "meta": page.frontmatter.to_plain(),
            },
            "site": self._site(),
            "collections": self._collections(collections),
            "collection": self._selected(page, collections),
        }
        return template.render(context)

    def _selected(self, page: Page, collections: dict[str, Collection]) -> Optional[dict[str, Any]]:
        """The collection named by the page's `collection` key, for hand-written listing pages."""
        name = page.frontmatter.get("collection")
        if not isinstance(name, str) or name not in collections:
            return None
        return {"name": name, "entries": list(collections[name].entries)}

    def compose_listing(self, rule: CollectionRule, collections: dict[str, Collection]) -> str:
        """Render the generated listing page for rule's collection."""
        template = self.env.get_template(rule.listing_layout + LAYOUT_SUFFIX)
        collection = collections[rule.name]
        context = {
            "page": {
                "title": rule.listing_title or rule.name.title(),
                "description": self.settings.site_description,
                "date": None,
                "tags": [],
                "categories": [],
                "route": rule.listing_route,
                "path": None,
                "collections": [],
                "content": Markup(""),
                "meta": {},
            },
            "site": self._site(),
            "collections": self._collections(collections),
            "collection": {"name": collection.name, "entries": list(collection.entries)},
        }
        return template.render(context)
