"""Test cases for text normalization functionality."""

import unittest

from markdown_docx.utils.text_normalizer import TextNormalizer, strip_control_chars


class TextNormalizerTest(unittest.TestCase):
    """Test source text cleanup."""

    def setUp(self):
        """Set up test fixtures."""
        self.normalizer = TextNormalizer(preserve_whitespace=True)
        self.collapsing = TextNormalizer(preserve_whitespace=False)

    def test_special_character_replacement(self):
        """Test replacement of typographic characters."""
        test_cases = [
            ('\ufeffTitle', 'Title'),
            ('a\u00a0b', 'a b'),
            ('text\u2009word', 'text word'),
            ('zero\u200bwidth', 'zerowidth'),
            ('\u2018quoted\u2019', "'quoted'"),
            ('\u201cquoted\u201d', '"quoted"'),
        ]

        for input_text, expected in test_cases:
            result = self.normalizer.normalize_text(input_text)
            self.assertEqual(result, expected, f"Failed for input: {repr(input_text)}")

    def test_break_tags_normalized(self):
        """Different spellings of <br> end up identical."""
        for spelling in ('<br>', '<br/>', '<br />', '<BR>'):
            self.assertEqual(self.normalizer.normalize_text(f'a{spelling}b'), 'a<br>b')

    def test_preserve_whitespace_mode(self):
        """Whitespace runs are kept unless collapsing is requested."""
        text = '    indented   code'
        self.assertEqual(self.normalizer.normalize_text(text), text)
        self.assertEqual(self.collapsing.normalize_text(text), ' indented code')

    def test_newlines_survive(self):
        """Line structure is never altered."""
        text = 'line one\n\nline two\n'
        self.assertEqual(self.normalizer.normalize_text(text), text)

    def test_empty_input(self):
        self.assertEqual(self.normalizer.normalize_text(''), '')


class StripControlCharsTest(unittest.TestCase):
    """Test removal of characters XML cannot carry."""

    def test_control_characters_removed(self):
        self.assertEqual(strip_control_chars('a\x00b\x07c\x1fd'), 'abcd')

    def test_tabs_and_newlines_kept(self):
        self.assertEqual(strip_control_chars('a\tb\nc\rd'), 'a\tb\nc\rd')

    def test_none_becomes_empty(self):
        self.assertEqual(strip_control_chars(None), '')


if __name__ == '__main__':
    unittest.main()
