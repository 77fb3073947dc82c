"""Markdown-to-HTML rendering with markdown-it"""

from functools import lru_cache

from markdown_it import MarkdownIt

from mdsite.core.utils.text import slugify


MARKDOWN_SUFFIXES = {'.md', '.markdown'}
HTML_SUFFIXES = {'.html', '.htm'}
CONTENT_SUFFIXES = MARKDOWN_SUFFIXES | HTML_SUFFIXES


def _heading_open(self, tokens, idx, options, env):
    """Render heading_open with a stable, per-document unique id attribute."""
    token = tokens[idx]
    if token.attrGet('id') is None and idx + 1 < len(tokens):
        base = slugify(tokens[idx + 1].content) or 'section'
        seen = env.setdefault('heading_ids', {})
        count = seen.get(base, 0)
        seen[base] = count + 1
        token.attrSet('id', base if count == 0 else f'{base}-{count}')
    return self.renderToken(tokens, idx, options, env)


@lru_cache(maxsize=None)
def make_parser(preset: str = 'gfm-like') -> MarkdownIt:
    """Build (once per preset) a MarkdownIt instance with heading ids."""
    md = MarkdownIt(preset, options_update={"linkify": False})
    md.add_render_rule('heading_open', _heading_open)
    return md


def render_markdown(text: str, preset: str = 'gfm-like') -> str:
    """Render markdown source to HTML. Unparseable spans come out as escaped literal text."""
    return make_parser(preset).render(text, {})


def render_body(body: str, suffix: str) -> str:
    """Render a document body according to its file suffix; HTML bodies pass through unchanged."""
    if suffix.lower() in HTML_SUFFIXES:
        return body
    return render_markdown(body)
