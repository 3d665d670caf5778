"""Test cases for image resolution and binary sniffing."""

import unittest

import httpx

from markdown_docx.model.document_model import ConversionReport
from markdown_docx.model.elements import Image, Paragraph
from markdown_docx.parser.media_extractor import ImageResolver, detect_format, is_remote, probe_dimensions


def png_bytes(width, height):
    return (
        b"\x89PNG\r\n\x1a\n"
        + b"\x00\x00\x00\rIHDR"
        + width.to_bytes(4, "big")
        + height.to_bytes(4, "big")
        + b"\x08\x06\x00\x00\x00"
    )


def jpeg_bytes(width, height):
    app0 = b"\xff\xe0" + (16).to_bytes(2, "big") + b"\x00" * 14
    sof = b"\xff\xc0\x00\x11\x08" + height.to_bytes(2, "big") + width.to_bytes(2, "big") + b"\x00" * 8
    return b"\xff\xd8" + app0 + sof


def gif_bytes(width, height):
    return b"GIF89a" + width.to_bytes(2, "little") + height.to_bytes(2, "little") + b"\x00" * 4


class SniffingTest(unittest.TestCase):
    """Test format detection and intrinsic sizes."""

    def test_detect_format(self):
        self.assertEqual(detect_format(png_bytes(1, 1)), "png")
        self.assertEqual(detect_format(jpeg_bytes(1, 1)), "jpeg")
        self.assertEqual(detect_format(gif_bytes(1, 1)), "gif")
        self.assertEqual(detect_format(b'<svg xmlns="http://www.w3.org/2000/svg"></svg>'), "svg")
        self.assertEqual(detect_format(b"garbage"), "png")

    def test_png_dimensions(self):
        self.assertEqual(probe_dimensions(png_bytes(600, 400)), (600, 400))

    def test_jpeg_dimensions(self):
        self.assertEqual(probe_dimensions(jpeg_bytes(640, 300)), (640, 300))

    def test_gif_dimensions(self):
        self.assertEqual(probe_dimensions(gif_bytes(32, 16)), (32, 16))

    def test_svg_dimensions(self):
        self.assertEqual(probe_dimensions(b'<svg width="120" height="80"></svg>'), (120, 80))
        self.assertEqual(probe_dimensions(b'<svg viewBox="0 0 50 25"></svg>'), (50, 25))
        self.assertEqual(probe_dimensions(b"<svg></svg>"), (300, 200))

    def test_out_of_range_dimensions_are_unknown(self):
        self.assertIsNone(probe_dimensions(png_bytes(0, 10)))
        self.assertIsNone(probe_dimensions(png_bytes(20000, 10)))

    def test_unknown_payload(self):
        self.assertIsNone(probe_dimensions(b"not an image"))

    def test_is_remote(self):
        self.assertTrue(is_remote("https://example.com/a.png"))
        self.assertTrue(is_remote("HTTP://example.com/a.png"))
        self.assertFalse(is_remote("images/a.png"))


class ImageResolverTest(unittest.IsolatedAsyncioTestCase):
    """Test fetching image payloads."""

    @staticmethod
    def _handler(request):
        if request.url.path == "/ok.png":
            return httpx.Response(200, content=png_bytes(10, 10))
        return httpx.Response(404)

    async def test_remote_images_fetched(self):
        report = ConversionReport()
        images = [Image("ok", "https://example.com/ok.png"), Image("gone", "https://example.com/gone.png")]
        async with httpx.AsyncClient(transport=httpx.MockTransport(self._handler)) as client:
            await ImageResolver(client=client).resolve_all(images + [Paragraph("text")], report)

        self.assertEqual(images[0].data, png_bytes(10, 10))
        self.assertIsNone(images[1].data)
        self.assertEqual(report.missing_images, ["https://example.com/gone.png"])

    async def test_malformed_url_reported_missing(self):
        report = ConversionReport()
        image = Image("bad", "http://host:notaport/x.png")
        async with httpx.AsyncClient(transport=httpx.MockTransport(self._handler)) as client:
            await ImageResolver(client=client).resolve_all([image], report)
        self.assertIsNone(image.data)
        self.assertEqual(report.missing_images, ["http://host:notaport/x.png"])

    async def test_sync_loader(self):
        image = Image("local", "pics/a.png")
        await ImageResolver(loader=lambda source: b"payload" if source == "pics/a.png" else None).resolve_all([image])
        self.assertEqual(image.data, b"payload")

    async def test_async_loader(self):
        async def loader(source):
            return b"async-payload"

        image = Image("local", "a.png")
        await ImageResolver(loader=loader).resolve_all([image])
        self.assertEqual(image.data, b"async-payload")

    async def test_failing_loader_reports_missing(self):
        def loader(source):
            raise OSError("disk on fire")

        report = ConversionReport()
        image = Image("local", "a.png")
        await ImageResolver(loader=loader).resolve_all([image], report)
        self.assertIsNone(image.data)
        self.assertEqual(report.missing_images, ["a.png"])

    async def test_no_loader(self):
        image = Image("local", "a.png")
        await ImageResolver().resolve_all([image])
        self.assertIsNone(image.data)

    async def test_existing_data_not_refetched(self):
        image = Image("inline", "a.png", data=b"already")
        await ImageResolver(loader=lambda source: b"other").resolve_all([image])
        self.assertEqual(image.data, b"already")


if __name__ == "__main__":
    unittest.main()
