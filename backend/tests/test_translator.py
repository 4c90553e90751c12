import re
import unittest
from unittest import mock

from transom.core.content import decode, encode, ensure_document, extract_text, is_dialect_document, is_empty, preview
from transom.core.content import translator
from transom.core.content.dialect import EMPTY_DOCUMENT, wrap_document


def _squash(markup):
    return re.sub(r"\s+", "", markup)


STYLED_BODY = "\n".join(
    [
        '<p class="p1"><span class="s4">Chapter one</span></p>',
        '<p class="p1"><span class="s1">It was a </span><span class="s3">dark</span><span class="s1"> night.</span></p>',
        '<p class="p1"><span class="s2">Underlined</span></p>',
        '<p class="p1"><span class="s1">Plain closing line</span></p>',
    ]
)


class TestDecode(unittest.TestCase):
    def test_plain_text_is_returned_unchanged(self):
        for text in ["just words", "5 < 6 and 7 > 3", "tabs\tand\nnewlines", "a <b"]:
            self.assertEqual(decode(text), text)

    def test_empty_document_keeps_one_paragraph(self):
        self.assertEqual(decode(EMPTY_DOCUMENT), "<p></p>")

    def test_span_classes_become_editor_markup(self):
        editable = decode(wrap_document(STYLED_BODY))
        self.assertEqual(
            editable,
            "<p><strong>Chapter one</strong></p>"
            "<p>It was a <em>dark</em> night.</p>"
            "<p><u>Underlined</u></p>"
            "<p>Plain closing line</p>",
        )

    def test_unknown_span_class_is_resolved_from_stylesheet(self):
        doc = (
            "<html><head><style>span.s7 {font-family: 'X'; font-weight: bold}</style></head>"
            '<body><p class="p1"><span class="s7">heavy</span></p></body></html>'
        )
        self.assertEqual(decode(doc), "<p><strong>heavy</strong></p>")

    def test_converted_spaces_are_restored(self):
        doc = wrap_document('<p class="p1"><span class="s1">a<span class="Apple-converted-space">&nbsp; </span>b</span></p>')
        self.assertEqual(extract_text(doc), "a  b")

    def test_lists_survive(self):
        doc = wrap_document(
            '<ul class="ul1">\n<li class="li1"><span class="s1">one</span></li>\n'
            '<li class="li1"><span class="s1">two</span></li>\n</ul>'
        )
        self.assertEqual(decode(doc), "<ul><li>one</li><li>two</li></ul>")


class TestEncode(unittest.TestCase):
    def test_empty_input_yields_canonical_document(self):
        for empty in [None, "", "   ", "<p></p>", "<p><br></p>"]:
            self.assertEqual(encode(empty), EMPTY_DOCUMENT)

    def test_round_trip_of_styled_document(self):
        doc = wrap_document(STYLED_BODY)
        self.assertEqual(_squash(encode(decode(doc))), _squash(doc))

    def test_line_breaks_split_paragraphs(self):
        encoded = encode("<p>line one<br>line two</p>")
        self.assertEqual(encoded.count('<p class="p1">'), 2)
        self.assertEqual(extract_text(encoded), "line one\nline two")

    def test_plain_text_gets_one_paragraph_per_line(self):
        encoded = encode("first\nsecond")
        self.assertTrue(is_dialect_document(encoded))
        self.assertIn('<p class="p1"><span class="s1">first</span></p>', encoded)
        self.assertIn('<p class="p1"><span class="s1">second</span></p>', encoded)

    def test_bold_wins_over_italic(self):
        encoded = encode("<p><strong><em>both</em></strong></p>")
        self.assertIn('<span class="s4">both</span>', encoded)

    def test_repeated_spaces_use_converted_space_spans(self):
        encoded = encode("<p>a  b</p>")
        self.assertIn('<span class="Apple-converted-space">&nbsp; </span>', encoded)
        self.assertEqual(extract_text(encoded), "a  b")

    def test_list_markup(self):
        encoded = encode("<ul><li>one</li><li>two</li></ul>")
        self.assertIn('<ul class="ul1">', encoded)
        self.assertIn('<li class="li1"><span class="s1">one</span></li>', encoded)

    def test_markup_characters_are_escaped(self):
        encoded = encode("<p>1 &lt; 2 &amp; 3</p>")
        self.assertIn("1 &lt; 2 &amp; 3", encoded)
        self.assertEqual(extract_text(encoded), "1 < 2 & 3")


class TestHelpers(unittest.TestCase):
    def test_ensure_document_keeps_existing_documents(self):
        doc = wrap_document('<p class="p1"><span class="s9">custom</span></p>')
        self.assertIs(ensure_document(doc), doc)
        self.assertEqual(ensure_document(None), EMPTY_DOCUMENT)

    def test_is_empty(self):
        self.assertTrue(is_empty(EMPTY_DOCUMENT))
        self.assertTrue(is_empty("<p> </p>"))
        self.assertFalse(is_empty(encode("x")))

    def test_stylesheet_is_not_visible_text(self):
        self.assertNotIn("font", extract_text(encode("hello")))

    def test_preview_truncates(self):
        text = "x" * 200
        self.assertEqual(preview(encode(text), 150), "x" * 150 + "...")
        self.assertEqual(preview(encode("short one")), "short one")


class TestAngleBracketsInText(unittest.TestCase):
    def test_bracketed_address_is_plain_text(self):
        text = "Reply to <bob@example.com> today"
        self.assertEqual(decode(text), text)
        self.assertEqual(extract_text(encode(text)), text)
        self.assertEqual(extract_text(ensure_document(text)), text)

    def test_comparison_that_looks_like_a_bold_tag(self):
        text = "if a<b and c>d then"
        self.assertEqual(decode(text), text)
        self.assertEqual(extract_text(encode(text)), text)

    def test_unknown_tag_inside_markup_is_kept_as_text(self):
        self.assertEqual(decode("<p>Reply to <bob@example.com></p>"), "<p>Reply to &lt;bob@example.com&gt;</p>")
        self.assertEqual(extract_text("<p>see <x-note/> here</p>"), "see <x-note/> here")

    def test_known_inline_tags_keep_their_text(self):
        content = '<p>a <a href="https://example.com">link</a> and <code>x</code></p>'
        self.assertEqual(decode(content), "<p>a link and x</p>")

    def test_markup_that_would_lose_text_is_kept_whole(self):
        self.assertIn("weird declaration", extract_text("<p>note</p><!weird declaration>"))


class TestParseFailure(unittest.TestCase):
    def test_decode_encode_and_extract_fall_back_to_visible_text(self):
        doc = wrap_document('<p class="p1"><span class="s4">bold</span><span class="s1"> words</span></p>')
        with mock.patch.object(translator, "_parse", side_effect=RuntimeError("broken parser")):
            self.assertEqual(decode(doc), "bold words")
            self.assertEqual(extract_text(doc), "bold words")
            encoded = encode("<p>kept <em>anyway</em></p>")
        self.assertIn('<span class="s1">kept anyway</span>', encoded)

    def test_render_failure_still_stores_a_document(self):
        real_render = translator._render_dialect_body
        calls = []

        def flaky_render(blocks):
            calls.append(blocks)
            if len(calls) == 1:
                raise RuntimeError("render failed")
            return real_render(blocks)

        with mock.patch.object(translator, "_render_dialect_body", side_effect=flaky_render):
            encoded = encode("<p>still <strong>here</strong></p>")
        self.assertEqual(len(calls), 2)
        self.assertTrue(is_dialect_document(encoded))
        self.assertEqual(extract_text(encoded), "still here")


if __name__ == "__main__":
    unittest.main()
