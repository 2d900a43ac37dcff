import tempfile
import unittest
from pathlib import Path

from bs4 import BeautifulSoup

from static_page.serialize import build_filename, decode_numeric_entities, package, serialize_document


class TestNumericEntities(unittest.TestCase):
    def test_decimal_and_hex(self):
        self.assertEqual(decode_numeric_entities("caf&#233; &#x2014; &#X41;"), "café — A")

    def test_named_and_invalid_references_are_kept(self):
        text = "&amp; &#0; &#xD800; &#99999999;"
        self.assertEqual(decode_numeric_entities(text), text)


class TestFilename(unittest.TestCase):
    def test_host_and_path(self):
        self.assertEqual(
            build_filename("https://www.example.com/docs/guide/"),
            "static_page_www_example_com_docs_guide.html",
        )

    def test_dots_in_path_are_kept(self):
        self.assertEqual(
            build_filename("https://example.com/dir/index.html?x=1"),
            "static_page_example_com_dir_index.html.html",
        )

    def test_empty_path_is_omitted(self):
        self.assertEqual(build_filename("https://example.com/"), "static_page_example_com.html")
        self.assertEqual(build_filename("https://example.com"), "static_page_example_com.html")


class TestPackage(unittest.TestCase):
    def test_serialize_keeps_doctype(self):
        soup = BeautifulSoup("<!DOCTYPE html><html><body><p>&#233;</p></body></html>", "html.parser")
        self.assertEqual(serialize_document(soup), "<!DOCTYPE html><html><body><p>é</p></body></html>")

    def test_package_and_write(self):
        soup = BeautifulSoup("<p>Grüße</p>", "html.parser")
        page = package(soup, "https://example.com/a/b")
        self.assertEqual(page.filename, "static_page_example_com_a_b.html")
        self.assertEqual(page.media_type, "text/html;charset=utf-8")
        self.assertEqual(page.encode(), "<p>Grüße</p>".encode("utf-8"))

        with tempfile.TemporaryDirectory() as tmp_dir:
            path = page.write(Path(tmp_dir) / "out")
            self.assertEqual(path.name, page.filename)
            self.assertEqual(path.read_text(encoding="utf-8"), "<p>Grüße</p>")
