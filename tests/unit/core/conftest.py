"""Shared fixtures for core unit tests"""

import pytest

from mdsite.core.models import FrontMatter, Page


SAMPLE_MD = """\
# Heading 1

A paragraph with **bold** and *emphasis* and `code`.

## Heading 2

- item one
- item two

1. first
2. second

> A quoted line.

```python
print(1 + 2)
```

| Name | Score |
|:-----|------:|
| ada  | 10    |

See [about](/about/) and ![logo](/img/logo.png).

---

Footer paragraph.
"""


@pytest.fixture(name="build_page")
def build_page_fixture():
    """Build a Page directly, bypassing parsing."""
    def _make(path: str, route: str = None, content: str = "<p>Body</p>\n", **fields) -> Page:
        return Page(
            path=path,
            frontmatter=FrontMatter(fields=fields),
            content=content,
            route=route or "/" + path.rsplit(".", 1)[0] + "/",
        )
    return _make


@pytest.fixture(name="sample_html")
def sample_html_fixture():
    from mdsite.core.render import render_markdown
    return render_markdown(SAMPLE_MD)
