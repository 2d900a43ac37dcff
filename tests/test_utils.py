import unittest

from static_page.utils import has_absolute_prefix, is_data_uri, resolve_url, url_path


class TestResolveUrl(unittest.TestCase):
    def test_relative_against_base(self):
        self.assertEqual(resolve_url("pic.png", "https://h/dir/page.html"), "https://h/dir/pic.png")
        self.assertEqual(resolve_url("../img/x.jpg", "https://h/css/s.css"), "https://h/img/x.jpg")
        self.assertEqual(resolve_url("//cdn.h/a.css", "https://h/"), "https://cdn.h/a.css")

    def test_strips_surrounding_whitespace(self):
        self.assertEqual(resolve_url("  a.png\n", "https://h/x/"), "https://h/x/a.png")

    def test_resolved_urls_are_fixed_points(self):
        bases = ["https://h/dir/page.html", "https://other.org/", "http://h/a/b/c"]
        references = ["pic.png", "../up.css", "/root.js", "?q=1", "#frag", "sub/dir/"]
        for reference in references:
            resolved = resolve_url(reference, bases[0])
            for base in bases:
                self.assertEqual(resolve_url(resolved, base), resolved)

    def test_malformed_reference_is_returned_unchanged(self):
        self.assertEqual(resolve_url("http://[::1", "https://h/"), "http://[::1")


class TestPrefixes(unittest.TestCase):
    def test_is_data_uri(self):
        self.assertTrue(is_data_uri("data:image/png;base64,AAAA"))
        self.assertTrue(is_data_uri("DATA:text/plain,x"))
        self.assertFalse(is_data_uri("https://h/data:x"))

    def test_has_absolute_prefix(self):
        for value in ("https://h/", "HTTP://h", "mailto:a@b", "tel:1", "javascript:void(0)", "data:,x"):
            self.assertTrue(has_absolute_prefix(value), value)
        for value in ("page.html", "/root", "#top", "//cdn.h/x", "httpdocs/a.html"):
            self.assertFalse(has_absolute_prefix(value), value)

    def test_url_path_ignores_query(self):
        self.assertEqual(url_path("https://h/a/b.png?v=2#x"), "/a/b.png")
