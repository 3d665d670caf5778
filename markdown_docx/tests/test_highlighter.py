"""Test cases for code block highlighting."""

import unittest

from pygments.token import Comment, Keyword, Name, String, Token

from markdown_docx.renderer.highlighter import DEFAULT_INK, PALETTE, SyntaxHighlighter, TokenType, color_for


class ColorForTest(unittest.TestCase):
    """Test token type to colour mapping."""

    def test_palette_classes(self):
        self.assertEqual(color_for(Keyword), PALETTE["keyword"])
        self.assertEqual(color_for(String.Double), PALETTE["string"])
        self.assertEqual(color_for(Comment.Single), PALETTE["comment"])
        self.assertEqual(color_for(Name.Function), PALETTE["function"])

    def test_subtypes_before_parents(self):
        self.assertEqual(color_for(Keyword.Type), PALETTE["type"])
        self.assertEqual(color_for(Comment.Preproc), PALETTE["meta"])

    def test_unknown_class_uses_default_ink(self):
        self.assertEqual(color_for(Token.Punctuation), DEFAULT_INK)

    def test_token_type_alias(self):
        self.assertIs(TokenType, type(Token))
        self.assertIsInstance(Keyword.Type, TokenType)
        self.assertEqual(color_for(Token.Text), DEFAULT_INK)


class SyntaxHighlighterTest(unittest.TestCase):
    """Test tokenizing code into coloured lines."""

    def setUp(self):
        """Set up test fixtures."""
        self.highlighter = SyntaxHighlighter()

    def test_lines_preserved(self):
        code = "def f():\n    return 'x'\n\n# done"
        lines = self.highlighter.highlight(code, "python")
        self.assertEqual(len(lines), 4)
        self.assertEqual(["".join(text for text, _ in line) for line in lines], code.split("\n"))

    def test_keyword_coloured(self):
        lines = self.highlighter.highlight("return 1", "python")
        self.assertIn(("return", PALETTE["keyword"]), lines[0])

    def test_unknown_language(self):
        self.assertIsNone(self.highlighter.highlight("x", "no-such-language"))

    def test_no_language(self):
        self.assertIsNone(self.highlighter.highlight("x", None))
        self.assertIsNone(self.highlighter.highlight("x", ""))


if __name__ == "__main__":
    unittest.main()
