"""Site configuration: settings schema and site.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


CONFIG_FILE = "site.yaml"
ENV_PREFIX = "MDSITE_"


class CollectionRule(BaseModel):
    """Maps source paths matching `pattern` (fnmatch glob, POSIX, source-relative) to a collection."""
    name:           str
    pattern:        str
    exclude:        list[str] = Field(default_factory=list, description="Globs removed from the match")
    listing_route:  Optional[str] = Field(default=None, description="Route of a generated listing page")
    listing_layout: str = Field(default="list", description="Layout used for the listing page")
    listing_title:  Optional[str] = None

    @field_validator("listing_route")
    @classmethod
    def _stay_inside_output(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and any(part in (".", "..") for part in v.split("/")):
            raise ValueError(f"listing_route '{v}' has a '.' or '..' segment")
        return v


class Settings(BaseModel):
    source_root:      str = Field(default="content", description="Root of the content document tree")
    output_root:      str = Field(default="_site",   description="Directory the rendered site is written to")
    layouts_dir:      str = Field(default="layouts", description="User layouts; bundled layouts are the fallback")
    static_dir:       Optional[str] = Field(default=None, description="Directory copied verbatim into the output")
    collection_rules: list[CollectionRule] = Field(default_factory=list)
    excerpt_length:   int = Field(default=200, ge=0, description="Excerpt length in characters; 0 disables")
    default_layout:   str = Field(default="default", description="Layout for documents without a layout key")
    site_title:       str = "Untitled Site"
    site_description: str = ""
    base_url:         str = ""
    strict_links:     bool = Field(default=False, description="Treat broken internal links as fatal")
    workers:          int = Field(default=0, ge=0, description="Thread pool size; 0 = cpu count")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from site.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            if name == "collection_rules":
                try:
                    val = yaml.safe_load(val)
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid {ENV_PREFIX}COLLECTION_RULES: {e}") from e
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValueError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
