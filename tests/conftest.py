"""Root test configuration: environment isolation and content-tree helpers"""

import os
from pathlib import Path

import pytest

from mdsite.config import Settings


@pytest.fixture(autouse=True)
def clear_mdsite_env(monkeypatch):
    """Keep MDSITE_<FIELD> variables from the outer shell out of every test."""
    for name in list(os.environ):
        if name.startswith("MDSITE_"):
            monkeypatch.delenv(name)


@pytest.fixture(name="write_tree")
def write_tree_fixture():
    """Write a {relative_path: text} mapping under a root directory."""
    def _write(root: Path, files: dict[str, str]) -> Path:
        for rel, text in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return root
    return _write


@pytest.fixture(name="make_settings")
def make_settings_fixture(tmp_path):
    """Settings rooted in tmp_path: content/, _site/, layouts/."""
    def _make(**overrides) -> Settings:
        data = {
            "source_root": str(tmp_path / "content"),
            "output_root": str(tmp_path / "_site"),
            "layouts_dir": str(tmp_path / "layouts"),
            "site_title": "Test Site",
            "workers": 2,
        }
        data.update(overrides)
        return Settings(**data)
    return _make
