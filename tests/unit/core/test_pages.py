"""Unit tests for core/pages.py"""

import pytest

from mdsite.core.models import Document
from mdsite.core.pages import (
    derive_route,
    discover_files,
    find_route_collisions,
    make_page,
    normalize_route,
    read_document,
)
from mdsite.errors import MalformedFrontMatter, RouteCollision


@pytest.mark.parametrize("path,expected", [
    ("index.md", "/"),
    ("about.md", "/about/"),
    ("work.html", "/work/"),
    ("blog/index.md", "/blog/"),
    ("blog/serverless-vector-db.md", "/blog/serverless-vector-db/"),
    ("blog/My First Post.markdown", "/blog/my-first-post/"),
    ("Notes/Deep Dives/part_1.md", "/notes/deep-dives/part-1/"),
])
def test_derive_route_from_path(path, expected):
    """Routes strip the extension, keep directories and end with a slash."""
    assert derive_route(path) == expected


@pytest.mark.parametrize("permalink,expected", [
    ("/custom/place/", "/custom/place/"),
    ("custom/place/", "/custom/place/"),
    ("/feed.xml", "/feed.xml"),
    ("//double//slashes/", "/double/slashes/"),
])
def test_derive_route_permalink_wins(permalink, expected):
    assert derive_route("blog/post.md", permalink=permalink) == expected


def test_derive_route_slug_replaces_last_segment():
    assert derive_route("blog/2023-08-15-post.md", slug="Vector Search") == "/blog/vector-search/"


def test_normalize_route_root():
    assert normalize_route("/") == "/"
    assert normalize_route("") == "/"


def test_discover_files_filters_and_sorts(tmp_path, write_tree):
    """Only content suffixes are found; private paths and excluded dirs are skipped."""
    write_tree(tmp_path, {
        "index.md": "home",
        "blog/b.md": "b",
        "blog/a.markdown": "a",
        "work.html": "<p>work</p>",
        "style.css": "body {}",
        "_drafts/draft.md": "draft",
        ".cache/x.md": "x",
        "public/old.html": "old",
    })
    files = discover_files(tmp_path, exclude=[tmp_path / "public"])
    rel = [f.relative_to(tmp_path).as_posix() for f in files]
    assert rel == ["blog/a.markdown", "blog/b.md", "index.md", "work.html"]


def test_read_document_relative_posix_path(tmp_path, write_tree):
    write_tree(tmp_path, {"blog/post.md": "text"})
    doc = read_document(tmp_path / "blog" / "post.md", tmp_path)
    assert doc.path == "blog/post.md"
    assert doc.text == "text"
    assert doc.suffix == ".md"


def test_make_page_parses_renders_and_routes(tmp_path):
    doc = Document(
        path="blog/post.md",
        source=tmp_path / "blog" / "post.md",
        text="---\nlayout: post\ntitle: Post\n---\n# Hello\n",
    )
    page = make_page(doc)
    assert page.route == "/blog/post/"
    assert page.title == "Post"
    assert page.layout == "post"
    assert '<h1 id="hello">Hello</h1>' in page.content
    assert str(page.output_path) == "blog/post/index.html"


def test_make_page_html_body_verbatim(tmp_path):
    doc = Document(path="work.html", source=tmp_path / "work.html", text="---\ntitle: Work\n---\n<h2>Work</h2>\n")
    assert make_page(doc).content == "<h2>Work</h2>\n"


def test_make_page_malformed_front_matter(tmp_path):
    doc = Document(path="bad.md", source=tmp_path / "bad.md", text="---\ntitle: x\n")
    with pytest.raises(MalformedFrontMatter, match="bad.md"):
        make_page(doc)


def test_find_route_collisions_reports_both_paths():
    collisions = find_route_collisions([
        ("about/index.md", "/about/"),
        ("about.md", "/about/"),
        ("index.md", "/"),
    ])
    assert len(collisions) == 1
    c = collisions[0]
    assert isinstance(c, RouteCollision)
    assert (c.path_a, c.path_b, c.route) == ("about.md", "about/index.md", "/about/")


def test_find_route_collisions_same_output_file():
    """A permalink without a trailing slash still collides with the clean URL."""
    collisions = find_route_collisions([("a.md", "/about"), ("about.md", "/about/")])
    assert len(collisions) == 1


def test_find_route_collisions_none():
    assert find_route_collisions([("a.md", "/a/"), ("b.md", "/b/")]) == []


@pytest.mark.parametrize("route", ["/../escaped/", "/blog/./post/", "..", "/a/../../b"])
def test_normalize_route_rejects_dot_segments(route):
    with pytest.raises(ValueError, match="segment"):
        normalize_route(route)


def test_make_page_permalink_outside_output_root(tmp_path):
    """A permalink climbing out of the output root is malformed front matter for that path."""
    doc = Document(path="a.md", source=tmp_path / "a.md", text="---\npermalink: /../escaped/\n---\nx\n")
    with pytest.raises(MalformedFrontMatter, match="invalid permalink") as exc:
        make_page(doc)
    assert exc.value.path == "a.md"


def test_read_document_not_utf8(tmp_path):
    (tmp_path / "bad.md").write_bytes(b"---\ntitle: \xff\xfe\n---\n")
    with pytest.raises(MalformedFrontMatter, match="not valid UTF-8") as exc:
        read_document(tmp_path / "bad.md", tmp_path)
    assert exc.value.path == "bad.md"
