"""Fixed markup of the mobile app's note documents.

The iOS client persists note content as a complete HTML document written by
the Cocoa HTML writer and parses it back with the same expectations. Every
string in this module is part of that contract: the DOCTYPE, the CSS rules
and the class names must stay byte-for-byte as they are.
"""

from __future__ import annotations

DOCTYPE = '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01//EN" "http://www.w3.org/TR/html4/strict.dtd">'

PARAGRAPH_CLASS = "p1"
LIST_CLASS = "ul1"
LIST_ITEM_CLASS = "li1"

PLAIN_CLASS = "s1"
UNDERLINE_CLASS = "s2"
ITALIC_CLASS = "s3"
BOLD_CLASS = "s4"
CONVERTED_SPACE_CLASS = "Apple-converted-space"

BOLD = "bold"
ITALIC = "italic"
UNDERLINE = "underline"

# Span class -> inline style. Classes outside this table are resolved from
# the document's CSS when possible.
SPAN_STYLES: dict[str, frozenset[str]] = {
    PLAIN_CLASS: frozenset(),
    UNDERLINE_CLASS: frozenset({UNDERLINE}),
    ITALIC_CLASS: frozenset({ITALIC}),
    BOLD_CLASS: frozenset({BOLD}),
}

# One class per run; overlapping styles collapse to the first match.
STYLE_PRECEDENCE: tuple[tuple[str, str], ...] = (
    (BOLD, BOLD_CLASS),
    (ITALIC, ITALIC_CLASS),
    (UNDERLINE, UNDERLINE_CLASS),
)

STYLESHEET = "\n".join(
    [
        "p.p1 {margin: 0.0px 0.0px 0.0px 0.0px; font: 18.0px 'SF Pro Display'; color: #000000}",
        "li.li1 {margin: 0.0px 0.0px 0.0px 0.0px; font: 18.0px 'SF Pro Display'; color: #000000}",
        "span.s1 {font-family: 'SFProDisplay-Regular'; font-weight: normal; font-style: normal; font-size: 18.00px}",
        "span.s2 {font-family: 'SFProDisplay-Regular'; font-weight: normal; font-style: normal; font-size: 18.00px; text-decoration: underline}",
        "span.s3 {font-family: 'SFProDisplay-RegularItalic'; font-weight: normal; font-style: italic; font-size: 18.00px}",
        "span.s4 {font-family: 'SFProDisplay-Semibold'; font-weight: bold; font-style: normal; font-size: 18.00px}",
        "span.Apple-converted-space {white-space: pre}",
        "ul.ul1 {list-style-type: disc}",
    ]
)

DOCUMENT_HEAD = "\n".join(
    [
        DOCTYPE,
        "<html>",
        "<head>",
        '<meta http-equiv="Content-Type" content="text/html; charset=UTF-8">',
        '<meta http-equiv="Content-Style-Type" content="text/css">',
        "<title></title>",
        '<meta name="Generator" content="Cocoa HTML Writer">',
        '<style type="text/css">',
        STYLESHEET,
        "</style>",
        "</head>",
        "<body>",
    ]
)

DOCUMENT_TAIL = "</body>\n</html>\n"

EMPTY_PARAGRAPH = f'<p class="{PARAGRAPH_CLASS}"><span class="{PLAIN_CLASS}"></span></p>'


def wrap_document(body: str) -> str:
    """Place dialect body markup inside the full document shell."""
    return f"{DOCUMENT_HEAD}\n{body}\n{DOCUMENT_TAIL}"


EMPTY_DOCUMENT = wrap_document(EMPTY_PARAGRAPH)
