"""Selection resolution over stored document bodies.

A user selects text in the *rendered* document, which is the body with
markup removed and entities decoded. Rewrites must replace exactly that
span in the *stored* body and leave every other byte alone, so this module
builds an index from each rendered character back to its source offsets
and resolves a ``SelectionSpec`` into a ``Span`` over the stored body.

A span may cross inline formatting (``<strong>``, ``<em>``, links) inside
one block as long as the tags it encloses are balanced; the replacement
then drops that formatting. Spans that cross block boundaries are refused.

Everything here works on immutable strings and plain offsets.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from html.parser import HTMLParser

from ..exceptions import SelectionInvalidError
from ..schemas.generation import SelectionSpec

BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "body", "dd", "details", "div",
    "dl", "dt", "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4",
    "h5", "h6", "header", "hr", "html", "li", "main", "nav", "ol", "p", "pre",
    "section", "summary", "table", "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
})

VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta",
    "source", "track", "wbr",
})


@dataclass(frozen=True)
class Tag:
    """One piece of markup in the body: ``kind`` is start, end or void."""

    kind: str
    name: str
    start: int
    end: int


class _Tokenizer(HTMLParser):
    """Collects source-ordered events with absolute offsets.

    Events tile the body, so each one ends where the next begins.
    """

    def __init__(self, body: str):
        super().__init__(convert_charrefs=False)
        self._line_starts = [0]
        for pos, ch in enumerate(body):
            if ch == "\n":
                self._line_starts.append(pos + 1)
        self.events: list[tuple[str, str, int]] = []

    def _offset(self) -> int:
        line, col = self.getpos()
        return self._line_starts[line - 1] + col

    def _emit(self, kind: str, value: str) -> None:
        self.events.append((kind, value, self._offset()))

    def handle_starttag(self, tag, attrs):
        self._emit("void" if tag in VOID_TAGS else "start", tag)

    def handle_startendtag(self, tag, attrs):
        self._emit("void", tag)

    def handle_endtag(self, tag):
        self._emit("end", tag)

    def handle_data(self, data):
        self._emit("data", data)

    def handle_entityref(self, name):
        self._emit("ref", name)

    def handle_charref(self, name):
        self._emit("ref", name)

    def handle_comment(self, data):
        self._emit("markup", "")

    def handle_decl(self, decl):
        self._emit("markup", "")

    def handle_pi(self, data):
        self._emit("markup", "")

    def unknown_decl(self, data):
        self._emit("markup", "")


@dataclass(frozen=True)
class TextIndex:
    """Rendered text of a body plus, per rendered char, where it came from.

    ``starts[i]``/``ends[i]`` bound the source of rendered char ``i`` in the
    body. ``blocks[i]`` numbers the block the char sits in; two chars share
    a block only when no block-level tag lies between them. ``tags`` lists
    every tag in source order.
    """

    body: str
    text: str
    starts: tuple[int, ...]
    ends: tuple[int, ...]
    blocks: tuple[int, ...]
    tags: tuple[Tag, ...]

    @classmethod
    def build(cls, body: str) -> TextIndex:
        parser = _Tokenizer(body)
        parser.feed(body)
        parser.close()
        events = parser.events

        chars: list[str] = []
        starts: list[int] = []
        ends: list[int] = []
        blocks: list[int] = []
        tags: list[Tag] = []
        block = 0

        for i, (kind, value, pos) in enumerate(events):
            end = events[i + 1][2] if i + 1 < len(events) else len(body)
            if kind in ("start", "end", "void"):
                tags.append(Tag(kind, value, pos, end))
                if value in BLOCK_TAGS:
                    block += 1
            elif kind == "ref":
                for ch in html.unescape(body[pos:end]):
                    chars.append(ch)
                    starts.append(pos)
                    ends.append(end)
                    blocks.append(block)
            elif kind == "data":
                for offset, ch in enumerate(body[pos:end]):
                    chars.append(ch)
                    starts.append(pos + offset)
                    ends.append(pos + offset + 1)
                    blocks.append(block)

        return cls(
            body=body,
            text="".join(chars),
            starts=tuple(starts),
            ends=tuple(ends),
            blocks=tuple(blocks),
            tags=tuple(tags),
        )


@dataclass(frozen=True)
class Span:
    """A resolved selection: rendered offsets, body offsets, and the text."""

    text_start: int
    text_end: int
    body_start: int
    body_end: int
    text: str


def render_text(body: str) -> str:
    """The rendered text a selection is expressed against."""
    return TextIndex.build(body).text


def _find_all(haystack: str, needle: str) -> list[int]:
    positions = []
    index = haystack.find(needle)
    while index != -1:
        positions.append(index)
        index = haystack.find(needle, index + 1)
    return positions


def _locate(index: TextIndex, spec: SelectionSpec) -> tuple[int, int]:
    """Turn a selection into rendered [start, end) offsets."""
    text = index.text

    if spec.start is not None and spec.end is not None:
        if spec.start >= spec.end or spec.end > len(text):
            raise SelectionInvalidError(
                f"Selection [{spec.start}, {spec.end}) is outside the document (length {len(text)})",
                selection=spec.text,
            )
        if spec.text is not None and text[spec.start:spec.end] != spec.text:
            raise SelectionInvalidError(
                "Selection offsets do not cover the selected text", selection=spec.text
            )
        return spec.start, spec.end

    needle = spec.text or ""
    positions = _find_all(text, needle)
    if not positions:
        raise SelectionInvalidError("Selected text does not occur in the document", selection=needle)
    if spec.occurrence is not None:
        if spec.occurrence >= len(positions):
            raise SelectionInvalidError(
                f"Selected text occurs {len(positions)} time(s); occurrence {spec.occurrence} does not exist",
                selection=needle,
            )
        start = positions[spec.occurrence]
    elif len(positions) > 1:
        raise SelectionInvalidError(
            f"Selected text is ambiguous: it occurs {len(positions)} times", selection=needle
        )
    else:
        start = positions[0]
    return start, start + len(needle)


def _normalize(spec: SelectionSpec) -> SelectionSpec:
    """Trim surrounding whitespace from a text-only selection."""
    if spec.text is None or spec.start is not None:
        return spec
    return spec.model_copy(update={"text": spec.text.strip()})


def _enclose_formatting(index: TextIndex, body_start: int, body_end: int, selected: str) -> tuple[int, int]:
    """Widen ``[body_start, body_end)`` so the inline tags it holds are balanced.

    A tag opened inside the range may be closed by an end tag sitting right
    after it, and an end tag inside the range may pair with a start tag
    sitting right before it. Anything else is refused.
    """
    opened: list[str] = []
    closed: list[str] = []
    for tag in index.tags:
        if tag.start < body_start or tag.end > body_end or tag.kind == "void":
            continue
        if tag.kind == "start":
            opened.append(tag.name)
        elif not opened:
            closed.append(tag.name)
        elif opened[-1] == tag.name:
            opened.pop()
        else:
            raise SelectionInvalidError(
                "Selection crosses misnested formatting", selection=selected
            )

    by_start = {tag.start: tag for tag in index.tags}
    while opened:
        tag = by_start.get(body_end)
        if tag is None or tag.kind != "end" or tag.name != opened[-1]:
            break
        body_end = tag.end
        opened.pop()

    by_end = {tag.end: tag for tag in index.tags}
    while closed:
        tag = by_end.get(body_start)
        if tag is None or tag.kind != "start" or tag.name != closed[0]:
            break
        body_start = tag.start
        closed.pop(0)

    if opened or closed:
        raise SelectionInvalidError(
            "Selection covers only part of a formatting run", selection=selected
        )
    return body_start, body_end


def resolve_selection(body: str, spec: SelectionSpec, min_chars: int) -> Span:
    """Resolve ``spec`` against ``body`` or raise SelectionInvalidError.

    Rejects selections shorter than ``min_chars`` (ignoring surrounding
    whitespace), text that is missing or ambiguous, out-of-bounds offsets,
    spans that cross a block boundary, and spans that would leave inline
    formatting unbalanced. A span over whole formatting runs is widened to
    take in their tags, so the replacement drops that formatting.
    """
    spec = _normalize(spec)
    if spec.text is not None and len(spec.text.strip()) < min_chars:
        raise SelectionInvalidError(
            f"Selection must be at least {min_chars} characters", selection=spec.text
        )

    index = TextIndex.build(body)
    start, end = _locate(index, spec)
    selected = index.text[start:end]

    if len(selected.strip()) < min_chars:
        raise SelectionInvalidError(
            f"Selection must be at least {min_chars} characters", selection=selected
        )
    if index.blocks[start] != index.blocks[end - 1]:
        raise SelectionInvalidError(
            "Selection spans more than one block", selection=selected
        )

    body_start, body_end = _enclose_formatting(
        index, index.starts[start], index.ends[end - 1], selected
    )
    return Span(
        text_start=start,
        text_end=end,
        body_start=body_start,
        body_end=body_end,
        text=selected,
    )


def replace_span(body: str, span: Span, replacement: str) -> str:
    """Return ``body`` with the span's source range replaced by ``replacement``."""
    return body[:span.body_start] + replacement + body[span.body_end:]


def relocate_span(span: Span, old_body: str, new_body: str, min_chars: int) -> Span:
    """Find ``span``'s text again in ``new_body``, at the same occurrence.

    Used when the body moved on between resolving a selection and writing
    the rewrite. Raises SelectionInvalidError if the text is gone.
    """
    occurrence = sum(1 for pos in _find_all(render_text(old_body), span.text) if pos < span.text_start)
    positions = _find_all(render_text(new_body), span.text)
    if occurrence >= len(positions):
        raise SelectionInvalidError(
            "Selected text no longer occurs in the document", selection=span.text
        )
    start = positions[occurrence]
    return resolve_selection(
        new_body,
        SelectionSpec(text=span.text, start=start, end=start + len(span.text)),
        min_chars,
    )
