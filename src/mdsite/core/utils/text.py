"""Text helpers: slugs for route segments and plain-text excerpts of HTML"""

import html
import re
import unicodedata


TAG_RE = re.compile(r'<[^>]*>')
WS_RE = re.compile(r'\s+')


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated ASCII slug."""
    text = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    text = re.sub(r'[^\w\s-]', '', text.lower())
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def strip_tags(html_text: str) -> str:
    """Return the plain text of an HTML fragment, entities decoded and whitespace collapsed."""
    text = TAG_RE.sub('', html_text)
    text = html.unescape(text)
    return WS_RE.sub(' ', text).strip()


def excerpt(html_text: str, length: int) -> str:
    """Tag-stripped preview of html_text, at most length characters, cut at a word boundary."""
    if length <= 0:
        return ''
    text = strip_tags(html_text)
    if len(text) <= length:
        return text
    cut = text[:length]
    # avoid ending mid-word when the next character continues it
    if not text[length].isspace():
        head, sep, _ = cut.rpartition(' ')
        if sep:
            cut = head
    return cut.rstrip()
