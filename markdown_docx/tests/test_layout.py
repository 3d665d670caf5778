"""Test cases for image sizing and table grid calculation."""

import unittest

from markdown_docx.model.elements import Image, Table
from markdown_docx.parser.layout_calculator import ImageExtent, LayoutCalculator, compute_image_size


def png_bytes(width, height):
    return b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + width.to_bytes(4, "big") + height.to_bytes(4, "big")


class ComputeImageSizeTest(unittest.TestCase):
    """Test the pixel sizing rules."""

    def test_explicit_width_keeps_aspect(self):
        self.assertEqual(compute_image_size((600, 400), 300), (300, 200))

    def test_explicit_height_keeps_aspect(self):
        self.assertEqual(compute_image_size((600, 400), None, 100), (150, 100))

    def test_both_explicit_used_verbatim(self):
        self.assertEqual(compute_image_size((600, 400), 50, 500), (50, 500))

    def test_wide_image_clamped(self):
        self.assertEqual(compute_image_size((1200, 600)), (600, 300))

    def test_tall_image_clamped(self):
        self.assertEqual(compute_image_size((300, 900)), (150, 450))

    def test_small_image_raised_to_minimum_width(self):
        self.assertEqual(compute_image_size((50, 20)), (100, 40))

    def test_extreme_aspect_ratios(self):
        self.assertEqual(compute_image_size((4, 8000)), (100, 450))
        self.assertEqual(compute_image_size((8000, 4)), (600, 1))
        self.assertEqual(compute_image_size((8000, 4), 300), (300, 1))

    def test_unknown_size_defaults(self):
        self.assertEqual(compute_image_size(None), (400, 300))
        self.assertEqual(compute_image_size(None, 200), (200, 150))


class LayoutCalculatorTest(unittest.TestCase):
    """Test geometry in writer units."""

    def setUp(self):
        """Set up test fixtures."""
        self.layout = LayoutCalculator(11)

    def test_image_extent_in_emu(self):
        image = Image("pic", "pic.png", data=png_bytes(600, 400), explicit_width=300)
        extent = self.layout.image_extent(image)
        self.assertEqual(extent, ImageExtent(300, 200))
        self.assertEqual(extent.cx, 300 * 9525)
        self.assertEqual(extent.cy, 200 * 9525)

    def test_image_without_data_uses_default(self):
        self.assertEqual(self.layout.image_extent(Image("x", "x.png")), ImageExtent(400, 300))

    def test_table_grid_fills_width(self):
        table = Table(rows=[["Name", "Description"], ["a", "a much longer description of the thing"]])
        grid = self.layout.table_grid(table, 9026)
        self.assertEqual(len(grid), 2)
        self.assertEqual(sum(grid), 9026)
        self.assertGreater(grid[1], grid[0])

    def test_table_grid_respects_alignment_column_count(self):
        table = Table(rows=[["a", "b", "c", "extra"]], alignments=["left", "left", "left"])
        self.assertEqual(len(self.layout.table_grid(table, 9000)), 3)

    def test_narrow_page_still_sums_to_width(self):
        table = Table(rows=[["x" * 80, "y" * 80, "z" * 80]])
        grid = self.layout.table_grid(table, 3000)
        self.assertEqual(sum(grid), 3000)

    def test_empty_table(self):
        self.assertEqual(self.layout.table_grid(Table(), 5000), [5000])


if __name__ == "__main__":
    unittest.main()
