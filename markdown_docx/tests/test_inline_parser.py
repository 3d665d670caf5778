"""Test cases for inline formatting resolution."""

import unittest

from markdown_docx.model.document_model import FootnoteTable
from markdown_docx.model.elements import RunStyle, StyleRun
from markdown_docx.parser.inline_parser import InlineFormatter, replace_emoji


BOLD = RunStyle(bold=True)
ITALIC = RunStyle(italic=True)
BOLD_ITALIC = RunStyle(bold=True, italic=True)


class InlineFormatterTest(unittest.TestCase):
    """Test emphasis, code, links and HTML spans."""

    def setUp(self):
        """Set up test fixtures."""
        self.footnotes = FootnoteTable(definitions={"a": "Alpha", "b": "Beta"})
        self.formatter = InlineFormatter(footnotes=self.footnotes)

    def fmt(self, text):
        return self.formatter.format(text)

    def test_plain_text(self):
        self.assertEqual(self.fmt("just text"), [StyleRun("just text")])

    def test_empty_text(self):
        self.assertEqual(self.fmt(""), [])

    def test_italic_inside_bold(self):
        runs = self.fmt("**bold *and italic* bold**")
        self.assertEqual(
            runs,
            [StyleRun("bold ", BOLD), StyleRun("and italic", BOLD_ITALIC), StyleRun(" bold", BOLD)],
        )

    def test_bold_inside_italic(self):
        runs = self.fmt("*it **both** it*")
        self.assertEqual(
            runs,
            [StyleRun("it ", ITALIC), StyleRun("both", BOLD_ITALIC), StyleRun(" it", ITALIC)],
        )

    def test_triple_delimiters(self):
        self.assertEqual(self.fmt("***x***"), [StyleRun("x", BOLD_ITALIC)])
        self.assertEqual(self.fmt("___y___"), [StyleRun("y", BOLD_ITALIC)])

    def test_intraword_underscores_are_literal(self):
        self.assertEqual(self.fmt("snake_case_name"), [StyleRun("snake_case_name")])

    def test_strike_highlight_sup_sub(self):
        self.assertEqual(self.fmt("~~gone~~"), [StyleRun("gone", RunStyle(strikethrough=True))])
        self.assertEqual(self.fmt("==marked=="), [StyleRun("marked", RunStyle(highlight=True))])
        self.assertEqual(self.fmt("x^2^"), [StyleRun("x"), StyleRun("2", RunStyle(superscript=True))])
        self.assertEqual(
            self.fmt("H~2~O"),
            [StyleRun("H"), StyleRun("2", RunStyle(subscript=True)), StyleRun("O")],
        )

    def test_single_equals_is_literal(self):
        self.assertEqual(self.fmt("a = b"), [StyleRun("a = b")])

    def test_code_is_terminal(self):
        self.assertEqual(self.fmt("`**not bold**`"), [StyleRun("**not bold**", RunStyle(code=True))])

    def test_code_inside_bold_stays_code(self):
        runs = self.fmt("**use `x` now**")
        self.assertEqual(runs[1], StyleRun("x", RunStyle(code=True)))
        self.assertTrue(runs[0].style.bold and runs[2].style.bold)

    def test_link(self):
        runs = self.fmt('[site](https://example.com "Title")')
        self.assertEqual(runs, [StyleRun("site", RunStyle(link="https://example.com"))])

    def test_link_with_bold_label(self):
        runs = self.fmt("[**big**](https://example.com)")
        self.assertEqual(runs, [StyleRun("big", RunStyle(bold=True, link="https://example.com"))])

    def test_footnote_numbers_follow_first_use(self):
        runs = self.fmt("B[^b] then A[^a] and B again[^b]")
        superscripts = [run.text for run in runs if run.style.superscript]
        self.assertEqual(superscripts, ["1", "2", "1"])
        self.assertEqual(self.footnotes.order, ["b", "a"])

    def test_escapes(self):
        self.assertEqual(self.fmt(r"\*not italic\*"), [StyleRun("*not italic*")])

    def test_html_tags(self):
        self.assertEqual(self.fmt("<b>bold</b>"), [StyleRun("bold", BOLD)])
        self.assertEqual(self.fmt("<u>under</u>"), [StyleRun("under", RunStyle(underline=True))])
        self.assertEqual(self.fmt("<code>a<b</code>"), [StyleRun("a<b", RunStyle(code=True))])

    def test_html_break_and_dropped_tags(self):
        self.assertEqual(self.fmt("a<br>b"), [StyleRun("a b")])
        self.assertEqual(self.fmt("<span>kept</span>"), [StyleRun("kept")])

    def test_inline_image_keeps_alt_text(self):
        self.assertEqual(self.fmt("see ![chart](c.png)"), [StyleRun("see chart")])

    def test_entities_unescaped(self):
        self.assertEqual(self.fmt("Fish &amp; chips"), [StyleRun("Fish & chips")])

    def test_unmatched_delimiters_stay_literal(self):
        self.assertEqual(self.fmt("2 * 3 = 6"), [StyleRun("2 * 3 = 6")])

    def test_formatting_disabled(self):
        formatter = InlineFormatter(preserve_formatting=False)
        self.assertEqual(formatter.format("**raw**"), [StyleRun("**raw**")])


class EmojiTest(unittest.TestCase):
    """Test shortcode replacement."""

    def test_known_shortcodes(self):
        self.assertEqual(replace_emoji(":rocket: launch"), "\U0001F680 launch")

    def test_unknown_shortcode_kept(self):
        self.assertEqual(replace_emoji(":notanemoji:"), ":notanemoji:")

    def test_formatter_replaces_outside_code(self):
        formatter = InlineFormatter()
        runs = formatter.format(":fire: `:fire:`")
        self.assertEqual(runs[0].text, "\U0001F525 ")
        self.assertEqual(runs[1], StyleRun(":fire:", RunStyle(code=True)))


if __name__ == "__main__":
    unittest.main()
