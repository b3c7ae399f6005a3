import unittest

from src.refindex.domain.errors import MetadataParseError, RetrievalError, UnpackError
from src.refindex.domain.models import CatalogRow
from src.refindex.domain.rules import (
    build_topic_link,
    build_topic_url,
    compile_alias_pattern,
    normalize_base_url,
    normalize_title,
    sanitize_filename,
)


class DomainRulesTests(unittest.TestCase):
    def test_build_topic_url_concatenates(self):
        self.assertEqual(
            build_topic_url("https://recipes.tidymodels.org/", "step_log.html"),
            "https://recipes.tidymodels.org/reference/step_log.html",
        )

    def test_normalize_base_url_has_single_trailing_slash(self):
        self.assertEqual(normalize_base_url("https://a.example"), "https://a.example/")
        self.assertEqual(normalize_base_url("https://a.example//"), "https://a.example/")

    def test_normalize_title_replaces_each_line_break(self):
        self.assertEqual(normalize_title("a\nb\nc"), "a b c")
        self.assertEqual(normalize_title("no breaks"), "no breaks")

    def test_topic_link_is_escaped(self):
        link = build_topic_link("%>%", "https://a.example/reference/pipe.html")
        self.assertEqual(
            link,
            "<a href='https://a.example/reference/pipe.html'  target='_blank'><tt>%&gt;%</tt></a>",
        )

    def test_catalog_row_dict_with_and_without_link(self):
        row = CatalogRow(alias="foo", url="https://a.example/reference/foo.html", title="Foo", package="alpha")
        self.assertEqual(set(row.to_dict()), {"alias", "url", "title", "package"})
        self.assertIn("<tt>foo</tt>", row.to_dict(include_link=True)["topic"])

    def test_sanitize_filename(self):
        self.assertEqual(sanitize_filename("a/b"), "a_b")
        self.assertEqual(sanitize_filename(""), "catalog")

    def test_default_alias_pattern_matches_everything(self):
        pattern = compile_alias_pattern(None)
        for alias in ("", "x", "%>%", "multi\nline"):
            self.assertIsNotNone(pattern.search(alias))


class DomainErrorTests(unittest.TestCase):
    def test_retrieval_error_names_exactly_failed_packages(self):
        exc = RetrievalError(["ghost"])
        self.assertEqual(exc.packages, ("ghost",))
        self.assertEqual(str(exc), "packages 'ghost' were not downloaded")

    def test_unpack_error_lists_all_packages(self):
        exc = UnpackError(["a", "b"])
        self.assertEqual(str(exc), "packages 'a', 'b' did not unpack correctly")

    def test_metadata_parse_error_keeps_path(self):
        exc = MetadataParseError("man/x.Rd", "unbalanced braces")
        self.assertEqual(exc.path, "man/x.Rd")
        self.assertIn("unbalanced braces", str(exc))
