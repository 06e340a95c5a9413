"""Content processing utilities - deep helper module.

Turns raw model output into stored HTML bodies, and produces the transient
"recently changed" overlay shown after a rewrite or extend. Stored bodies
never carry the overlay marker.
"""

import re

from bs4 import BeautifulSoup, Tag
from markdown_it import MarkdownIt

HIGHLIGHT_CLASS = "new-content-highlight"

EMPTY_BODY = "<p>No content generated.</p>"

MIN_TITLE_LENGTH = 5
"""Titles shorter than this are replaced by ``Deep Dive: <topic>``."""

_md = MarkdownIt("commonmark", {"html": False})

_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
_TITLE_HEADING_RE = re.compile(r"^#+\s*")


def sanitize_output(text: str) -> str:
    """Remove hidden reasoning blocks returned by some providers."""
    if not text:
        return ""
    return _THINK_RE.sub("", text).strip()


def render_markdown(markdown: str) -> str:
    """Render model markdown to HTML. Raw HTML in the input is escaped."""
    if not markdown.strip():
        return ""
    return _md.render(markdown).strip()


def parse_generated_text(raw: str, topic: str) -> tuple[str, str]:
    """Split model output into ``(title, body_html)``.

    The first line is the title with heading marks and ``**`` removed; the
    rest is markdown for the body.
    """
    lines = raw.split("\n")
    title = _TITLE_HEADING_RE.sub("", lines[0]).replace("**", "").strip()
    if len(title) < MIN_TITLE_LENGTH:
        title = f"Deep Dive: {topic}"
    body = render_markdown("\n".join(lines[1:]).strip())
    return title, body or EMPTY_BODY


def html_to_text(body: str) -> str:
    """Plain text of an HTML body, blocks separated by blank lines."""
    soup = BeautifulSoup(body, "html.parser")
    return soup.get_text("\n\n", strip=True)


def _normalize_space(text: str) -> str:
    return " ".join(text.split())


def wrap_highlight(fragment: str) -> str:
    """Wrap an inline HTML fragment in the highlight marker."""
    return f'<span class="{HIGHLIGHT_CLASS}">{fragment}</span>'


def strip_highlight(body: str) -> str:
    """Remove any highlight markers from a body, leaving their content."""
    if HIGHLIGHT_CLASS not in body:
        return body
    soup = BeautifulSoup(body, "html.parser")
    for tag in soup.find_all(class_=HIGHLIGHT_CLASS):
        classes = [c for c in tag.get("class", []) if c != HIGHLIGHT_CLASS]
        if tag.name == "span" and not classes and len(tag.attrs) == 1:
            tag.unwrap()
        elif classes:
            tag["class"] = classes
        else:
            del tag["class"]
    return str(soup)


def mark_new_blocks(old_body: str, new_body: str, min_chars: int) -> str:
    """Mark top-level blocks of ``new_body`` that did not exist in ``old_body``.

    A block counts as new when its text is longer than ``min_chars`` and is
    not a substring of the old plain text. Only the overlay uses this.
    """
    old_text = _normalize_space(html_to_text(old_body))
    soup = BeautifulSoup(new_body, "html.parser")
    for block in soup.children:
        if not isinstance(block, Tag):
            continue
        text = _normalize_space(block.get_text(" ", strip=True))
        if len(text) <= min_chars or text in old_text:
            continue
        block["class"] = list(block.get("class", [])) + [HIGHLIGHT_CLASS]
    return str(soup)
