"""Two-way translation between editable rich text and the mobile dialect.

The web editor works on a simplified fragment (``<p>``, ``<ul><li>``,
``<strong>``, ``<em>``, ``<u>``). The mobile app stores a full Cocoa HTML
document where every run of text sits in a ``<span class="sN">``. Both sides
are parsed into the same list of blocks (paragraphs or list items made of
styled runs) and rendered back out, so either form can be fed to either
direction.

Nothing here raises: unparseable content degrades to its visible text.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from itertools import groupby
from operator import attrgetter

from transom.core.content.dialect import (
    BOLD,
    CONVERTED_SPACE_CLASS,
    EMPTY_DOCUMENT,
    ITALIC,
    LIST_CLASS,
    LIST_ITEM_CLASS,
    PARAGRAPH_CLASS,
    PLAIN_CLASS,
    SPAN_STYLES,
    STYLE_PRECEDENCE,
    UNDERLINE,
    wrap_document,
)
from transom.utils.logging import get_logger

logger = get_logger(__name__)

PARAGRAPH = "p"
LIST_ITEM = "li"

_DOCUMENT_MARKER = re.compile(r"<!doctype|<body[\s>]", re.IGNORECASE)
_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_HIDDEN_SECTION = re.compile(r"<(head|style|script|title)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_LINE_END_TAG = re.compile(r"</(p|li|div|h[1-6])\s*>|<br\s*/?>", re.IGNORECASE)
_CSS_RULE = re.compile(r"span\.([\w-]+)\s*\{([^}]*)\}", re.IGNORECASE)
_BOLD_DECLARATION = re.compile(r"font-weight:(bold|[6-9]00)|semibold")
_SPACES = re.compile(r" +")
_LINE_BREAKS = re.compile(r"[\r\n]+")

_SKIPPED_TAGS = {"head", "style", "script", "title"}
_IGNORED_TAGS = {"html", "meta", "link", "hr", "img", "input", "wbr"}
_BLOCK_TAGS = {"p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "pre"}
_LIST_TAGS = {"ul", "ol"}
# Unstyled in both forms; their text is kept.
_PLAIN_INLINE_TAGS = {"a", "abbr", "code", "del", "font", "ins", "kbd", "mark", "s", "small", "strike", "sub", "sup"}
_INLINE_STYLES = {
    "strong": BOLD,
    "b": BOLD,
    "em": ITALIC,
    "i": ITALIC,
    "u": UNDERLINE,
}
# Outermost first when rendering the editable form.
_EDITABLE_TAGS = ((BOLD, "strong"), (ITALIC, "em"), (UNDERLINE, "u"))

_KNOWN_TAGS = (
    _SKIPPED_TAGS
    | _IGNORED_TAGS
    | _BLOCK_TAGS
    | _LIST_TAGS
    | _PLAIN_INLINE_TAGS
    | set(_INLINE_STYLES)
    | {"body", "br", "li", "span"}
)
_TAG_NAMES = "|".join(sorted(_KNOWN_TAGS, key=len, reverse=True))
# Only tags the translator understands, with quoted or bare attribute values.
# "<bob@example.com>" or "a<b and c>d" in a plain note are text, not markup.
_KNOWN_TAG = re.compile(
    r"<(?:!doctype\b[^>]*"
    rf"|/(?:{_TAG_NAMES})\s*"
    rf"|(?:{_TAG_NAMES})(?:\s+[\w:-]+\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s\"'>]+))*\s*/?)>",
    re.IGNORECASE,
)


@dataclass
class Run:
    text: str
    styles: frozenset[str] = frozenset()


@dataclass
class Block:
    kind: str = PARAGRAPH
    runs: list[Run] = field(default_factory=list)
    from_break: bool = False

    def append(self, text: str, styles: frozenset[str]) -> None:
        if not text:
            return
        if self.runs and self.runs[-1].styles == styles:
            self.runs[-1].text += text
        else:
            self.runs.append(Run(text, styles))

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


def _styles_from_css(declarations: str) -> frozenset[str]:
    decl = declarations.lower().replace(" ", "")
    styles = set()
    if _BOLD_DECLARATION.search(decl):
        styles.add(BOLD)
    if "font-style:italic" in decl:
        styles.add(ITALIC)
    if "underline" in decl:
        styles.add(UNDERLINE)
    return frozenset(styles)


class _BlockCollector(HTMLParser):
    """Collect paragraphs and list items with their styled runs."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.blocks: list[Block] = []
        self._span_styles: dict[str, frozenset[str]] = dict(SPAN_STYLES)
        self._skip_depth = 0
        self._in_style = False
        self._css: list[str] = []
        # (tag, styles, is_converted_space)
        self._inline: list[tuple[str, frozenset[str], bool]] = []
        self._list_depth = 0
        self._current: Block | None = None

    def finish(self) -> list[Block]:
        self.close()
        self._close_block()
        return self.blocks

    def handle_starttag(self, tag, attrs):
        if not self._skip_depth and not _KNOWN_TAG.fullmatch(self.get_starttag_text() or ""):
            self.handle_data(self.get_starttag_text() or "")
            return
        if tag in _SKIPPED_TAGS:
            self._skip_depth += 1
            self._in_style = tag == "style"
            return
        if tag == "body":
            # a missing </head> must not hide the body
            self._skip_depth = 0
            return
        if self._skip_depth or tag in _IGNORED_TAGS:
            return

        if tag in _LIST_TAGS:
            self._close_block()
            self._list_depth += 1
        elif tag == "li":
            self._open_block(LIST_ITEM, reset_inline=True)
        elif tag in _BLOCK_TAGS:
            current = self._current
            if current is not None and current.kind == LIST_ITEM and not current.runs:
                return  # <li><p>..</p></li>
            self._open_block(LIST_ITEM if self._list_depth else PARAGRAPH, reset_inline=True)
        elif tag == "br":
            self._line_break()
        elif tag == "span":
            classes = (dict(attrs).get("class") or "").split()
            if CONVERTED_SPACE_CLASS in classes:
                self._inline.append((tag, frozenset(), True))
            else:
                styles = frozenset().union(*(self._span_styles.get(name, frozenset()) for name in classes))
                self._inline.append((tag, styles, False))
        elif tag in _INLINE_STYLES:
            self._inline.append((tag, frozenset({_INLINE_STYLES[tag]}), False))
        else:
            self._inline.append((tag, frozenset(), False))

    def handle_startendtag(self, tag, attrs):
        self.handle_starttag(tag, attrs)
        if _KNOWN_TAG.fullmatch(self.get_starttag_text() or ""):
            self.handle_endtag(tag)

    def handle_endtag(self, tag):
        if tag not in _KNOWN_TAGS:
            if not self._skip_depth:
                self.handle_data(f"</{tag}>")
            return
        if tag in _SKIPPED_TAGS:
            if tag == "style":
                self._register_css()
                self._in_style = False
            self._skip_depth = max(0, self._skip_depth - 1)
            return
        if self._skip_depth or tag in _IGNORED_TAGS or tag == "br":
            return

        if tag in _LIST_TAGS:
            self._close_block()
            self._list_depth = max(0, self._list_depth - 1)
        elif tag == "li" or tag in _BLOCK_TAGS or tag == "body":
            self._close_block()
        else:
            for index in range(len(self._inline) - 1, -1, -1):
                if self._inline[index][0] == tag:
                    del self._inline[index:]
                    break

    def handle_data(self, data):
        if self._skip_depth:
            if self._in_style:
                self._css.append(data)
            return
        if any(converted for _, _, converted in self._inline):
            data = data.replace("\xa0", " ")
        else:
            data = _LINE_BREAKS.sub(" ", data)
        if self._current is None:
            if not data.strip():
                return
            self._open_block(LIST_ITEM if self._list_depth else PARAGRAPH)
        styles = frozenset().union(*(styles for _, styles, _ in self._inline))
        self._current.append(data, styles)

    def _register_css(self) -> None:
        css = "".join(self._css)
        self._css.clear()
        for name, declarations in _CSS_RULE.findall(css):
            if name in SPAN_STYLES or name == CONVERTED_SPACE_CLASS:
                continue
            self._span_styles[name] = _styles_from_css(declarations)

    def _open_block(self, kind: str, *, reset_inline: bool = False) -> None:
        self._close_block()
        self._current = Block(kind=kind)
        if reset_inline:
            self._inline.clear()

    def _close_block(self) -> None:
        block, self._current = self._current, None
        if block is None:
            return
        if block.from_break and not block.runs:
            return  # trailing <br> placeholder
        self.blocks.append(block)

    def _line_break(self) -> None:
        block = self._current
        kind = LIST_ITEM if self._list_depth else PARAGRAPH
        if block is None:
            self.blocks.append(Block(kind=kind))
            return
        if not block.runs and not block.from_break:
            return  # <p><br></p> marks an empty line
        self.blocks.append(block)
        self._current = Block(kind=block.kind, from_break=True)


def _parse(content: str) -> list[Block]:
    collector = _BlockCollector()
    collector.feed(content)
    return collector.finish()


def _blocks_from_text(text: str) -> list[Block]:
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    while lines and not lines[-1].strip():
        lines.pop()
    return [Block(runs=[Run(line)] if line else []) for line in lines]


def _fallback_text(content: str) -> str:
    text = _HIDDEN_SECTION.sub("", _COMMENT.sub("", content))
    text = _LINE_END_TAG.sub("\n", text)
    text = html.unescape(_KNOWN_TAG.sub("", text)).replace("\xa0", " ")
    return "\n".join(line.strip() for line in text.split("\n")).strip()


def _visible_chars(text: str) -> int:
    return len("".join(text.split()))


def _parse_checked(content: str) -> list[Block]:
    """Parse markup, treating the input as plain text if parsing would drop visible characters."""
    blocks = _parse(content)
    parsed = sum(_visible_chars(block.text) for block in blocks)
    if parsed < _visible_chars(_fallback_text(content)):
        logger.debug("Markup parse lost text, keeping content as plain text")
        return _blocks_from_text(content)
    return blocks


def _blocks_or_fallback(content: str) -> list[Block]:
    if not has_markup(content):
        return _blocks_from_text(content)
    try:
        return _parse_checked(content)
    except Exception as err:
        logger.debug("Falling back to plain text extraction", extra={"error": str(err)})
        return _blocks_from_text(_fallback_text(content))


def _editable_runs(block: Block) -> str:
    parts = []
    for run in block.runs:
        out = html.escape(run.text, quote=False)
        for style, tag in reversed(_EDITABLE_TAGS):
            if style in run.styles:
                out = f"<{tag}>{out}</{tag}>"
        parts.append(out)
    return "".join(parts)


def _span_class(styles: frozenset[str]) -> str:
    for style, class_name in STYLE_PRECEDENCE:
        if style in styles:
            return class_name
    return PLAIN_CLASS


def _convert_spaces(text: str, at_start: bool, at_end: bool) -> str:
    """Escape a run, wrapping spaces HTML would collapse as the Cocoa writer does."""
    out = []
    pos = 0
    for match in _SPACES.finditer(text):
        spaces = match.group()
        on_edge = (match.start() == 0 and at_start) or (match.end() == len(text) and at_end)
        out.append(html.escape(text[pos:match.start()], quote=False))
        if len(spaces) > 1 or on_edge:
            out.append(f'<span class="{CONVERTED_SPACE_CLASS}">{"&nbsp;" * (len(spaces) - 1)} </span>')
        else:
            out.append(spaces)
        pos = match.end()
    out.append(html.escape(text[pos:], quote=False))
    return "".join(out)


def _dialect_runs(block: Block) -> str:
    spans: list[list[str]] = []
    for run in block.runs:
        class_name = _span_class(run.styles)
        if spans and spans[-1][0] == class_name:
            spans[-1][1] += run.text
        else:
            spans.append([class_name, run.text])
    if not spans:
        return f'<span class="{PLAIN_CLASS}"></span>'
    last = len(spans) - 1
    return "".join(
        f'<span class="{class_name}">{_convert_spaces(text, index == 0, index == last)}</span>'
        for index, (class_name, text) in enumerate(spans)
    )


def _render_editable(blocks: list[Block]) -> str:
    parts = []
    for kind, group in groupby(blocks, key=attrgetter("kind")):
        if kind == LIST_ITEM:
            items = "".join(f"<li>{_editable_runs(block)}</li>" for block in group)
            parts.append(f"<ul>{items}</ul>")
        else:
            parts.extend(f"<p>{_editable_runs(block)}</p>" for block in group)
    return "".join(parts)


def _render_dialect_body(blocks: list[Block]) -> str:
    lines = []
    for kind, group in groupby(blocks, key=attrgetter("kind")):
        if kind == LIST_ITEM:
            lines.append(f'<ul class="{LIST_CLASS}">')
            lines.extend(f'<li class="{LIST_ITEM_CLASS}">{_dialect_runs(block)}</li>' for block in group)
            lines.append("</ul>")
        else:
            lines.extend(f'<p class="{PARAGRAPH_CLASS}">{_dialect_runs(block)}</p>' for block in group)
    return "\n".join(lines)


def has_markup(content: str | None) -> bool:
    return bool(content) and _KNOWN_TAG.search(content) is not None


def is_dialect_document(content: str | None) -> bool:
    """True when content is a full document rather than a fragment."""
    return bool(content) and _DOCUMENT_MARKER.search(content) is not None


def decode(content: str | None) -> str:
    """Convert stored note content into the editable fragment.

    Plain text without markup is returned unchanged. A document whose body
    holds nothing but an empty run decodes to ``<p></p>`` so the editor keeps
    a paragraph to type into.
    """
    if not content:
        return ""
    if not has_markup(content):
        return content
    try:
        blocks = _parse_checked(content)
        if not blocks and is_dialect_document(content):
            blocks = [Block()]
        return _render_editable(blocks)
    except Exception as err:
        logger.debug("Decode failed, returning visible text", extra={"error": str(err)})
        return _fallback_text(content)


def encode(content: str | None) -> str:
    """Convert editable content (fragment, document or plain text) into a dialect document.

    Content without any visible text always yields the canonical empty
    document, never an empty string.
    """
    if not content or not content.strip():
        return EMPTY_DOCUMENT
    blocks = _blocks_or_fallback(content)
    if not any(block.text.strip() for block in blocks):
        return EMPTY_DOCUMENT
    try:
        return wrap_document(_render_dialect_body(blocks))
    except Exception as err:
        logger.debug("Encode failed, storing visible text", extra={"error": str(err)})
        return wrap_document(_render_dialect_body(_blocks_from_text(_fallback_text(content))))


def ensure_document(content: str | None) -> str:
    """Return content as a dialect document, leaving existing documents byte-identical."""
    if content and is_dialect_document(content):
        return content
    return encode(content)


def extract_text(content: str | None) -> str:
    """Visible text of a note, one line per paragraph or list item."""
    if not content:
        return ""
    if not has_markup(content):
        return content
    return "\n".join(block.text for block in _blocks_or_fallback(content)).strip()


def is_empty(content: str | None) -> bool:
    return not extract_text(content).strip()


def preview(content: str | None, limit: int = 150) -> str:
    text = " ".join(extract_text(content).split())
    if len(text) > limit:
        return text[:limit] + "..."
    return text
