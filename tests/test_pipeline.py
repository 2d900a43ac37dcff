import unittest

from bs4 import BeautifulSoup

from static_page.config import SnapshotConfig
from static_page.pipeline import snapshot_document, snapshot_html

from tests.fakes import GIF_BYTES, JPEG_BYTES, PNG_BYTES, FakeFetcher

PAGE = "https://example.com/dir/index.html"

DOCUMENT = """<!DOCTYPE html>
<html><head><title>Demo</title>
<link rel="stylesheet" href="/css/site.css">
<script src="app.js"></script>
</head>
<body onload="init()">
<img src="pic.png" alt="pic">
<img src="missing.png">
<div style="background: url(bg.jpg)" onclick="go()">Hi &amp;amp; bye</div>
<iframe src="frame.html"></iframe>
<a href="about.html" onmouseover="hover()">About</a>
<script>alert(1)</script>
</body></html>
"""

FRAME = '<html><body><script>evil()</script><img src="f.gif" onerror="x()"></body></html>'

RESOURCES = {
    "https://example.com/dir/pic.png": (PNG_BYTES, "image/png"),
    "https://example.com/css/site.css": (
        '@import "base.css";\nbody{background:url(../img/x.jpg)}\n'
        "@font-face{font-family:F;src:url(\"fonts/f.woff2\")}",
        "text/css",
    ),
    "https://example.com/css/base.css": ("html{margin:0}", "text/css"),
    "https://example.com/img/x.jpg": (JPEG_BYTES, "image/jpeg"),
    "https://example.com/css/fonts/f.woff2": (b"wOF2", "font/woff2"),
    "https://example.com/dir/bg.jpg": (JPEG_BYTES, "image/jpeg"),
    "https://example.com/dir/frame.html": (FRAME, "text/html"),
    "https://example.com/dir/f.gif": (GIF_BYTES, "image/gif"),
}


def _has_handlers(soup):
    return any(name.startswith("on") for tag in soup.find_all(True) for name in tag.attrs)


class TestSnapshotDocument(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.soup = BeautifulSoup(DOCUMENT, "html.parser")
        self.fetcher = FakeFetcher(RESOURCES)
        with self.assertLogs("static_page", level="WARNING"):
            self.stats = await snapshot_document(self.soup, PAGE, self.fetcher, SnapshotConfig())

    def test_no_scripts_or_handlers_remain(self):
        self.assertEqual(self.soup.find_all("script"), [])
        self.assertFalse(_has_handlers(self.soup))
        inner = BeautifulSoup(self.soup.iframe["srcdoc"], "html.parser")
        self.assertEqual(inner.find_all("script"), [])
        self.assertFalse(_has_handlers(inner))

    def test_images(self):
        first, second = self.soup.find_all("img")
        self.assertTrue(first["src"].startswith("data:image/png;base64,"))
        self.assertEqual(second["src"], "https://example.com/dir/missing.png")

    def test_stylesheet_inlined(self):
        self.assertIsNone(self.soup.find("link"))
        css = self.soup.style.string
        self.assertNotIn("@import", css)
        self.assertTrue(css.startswith("html{margin:0}"))
        self.assertIn("url('data:image/jpeg;base64,", css)
        self.assertIn("url('data:font/woff2;base64,", css)

    def test_style_attribute_and_text(self):
        div = self.soup.div
        self.assertTrue(div["style"].startswith("background: url('data:image/jpeg;base64,"))
        self.assertEqual(div.get_text(), "Hi & bye")

    def test_frame_and_links(self):
        self.assertNotIn("src", self.soup.iframe.attrs)
        self.assertEqual(self.soup.a["href"], "https://example.com/dir/about.html")

    def test_charset_meta_leads_head(self):
        self.assertEqual(self.soup.head.contents[0].get("charset"), "UTF-8")

    def test_stats(self):
        self.assertEqual(self.stats.fallbacks, {"image": 1})
        self.assertEqual(self.stats.inlined["image"], 2)
        self.assertEqual(self.stats.inlined["stylesheet"], 2)
        self.assertEqual(self.stats.inlined["css url"], 3)
        self.assertEqual(self.stats.inlined["frame"], 1)


class TestSnapshotHtml(unittest.IsolatedAsyncioTestCase):
    async def test_output_is_deterministic(self):
        outputs = []
        for _ in range(2):
            with self.assertLogs("static_page", level="WARNING"):
                page = await snapshot_html(DOCUMENT, PAGE, FakeFetcher(RESOURCES))
            outputs.append(page.encode())
        self.assertEqual(outputs[0], outputs[1])
        self.assertEqual(page.filename, "static_page_example_com_dir_index.html.html")
        self.assertTrue(page.html.startswith("<!DOCTYPE html>"))

    async def test_everything_failing_still_produces_artifact(self):
        with self.assertLogs("static_page", level="WARNING"):
            page = await snapshot_html(DOCUMENT, PAGE, FakeFetcher())
        soup = BeautifulSoup(page.html, "html.parser")
        self.assertEqual(soup.find("link", rel="stylesheet")["href"], "https://example.com/css/site.css")
        self.assertEqual(soup.iframe["src"], "https://example.com/dir/frame.html")
        self.assertEqual(soup.div["style"], "background: url('https://example.com/dir/bg.jpg')")
        self.assertEqual(soup.find_all("script"), [])
