"""
Unit tests for JSON-LD and namespaced meta parsing.
"""

import logging

import pytest
from vaultscrape.extractor.content import parse_html
from vaultscrape.extractor.structured_data import extract_json_ld, prefixed_meta_map


@pytest.mark.unit
class TestJsonLd:
    def test_each_block_parsed_independently(self, caplog):
        html = """
        <script type="application/ld+json">{"@type": "Article"}</script>
        <script type="application/ld+json">{"broken": </script>
        <script type="application/ld+json">{"@type": "Person", "name": "Ann"}</script>
        """
        with caplog.at_level(logging.WARNING, logger="vaultscrape.extractor.structured_data"):
            data = extract_json_ld(parse_html(html))

        assert data == [{"@type": "Article"}, {"@type": "Person", "name": "Ann"}]
        assert "Skipping invalid JSON-LD block 1" in caplog.text

    def test_ignores_other_script_types(self):
        html = '<script type="application/json">{"a": 1}</script><script>var x = 1;</script>'
        assert extract_json_ld(parse_html(html)) == []

    def test_empty_blocks_skipped(self):
        assert extract_json_ld(parse_html('<script type="application/ld+json">   </script>')) == []

    def test_arrays_kept_as_is(self):
        html = '<script type="application/ld+json">[{"@type": "A"}, {"@type": "B"}]</script>'
        assert extract_json_ld(parse_html(html)) == [[{"@type": "A"}, {"@type": "B"}]]


@pytest.mark.unit
class TestPrefixedMetaMap:
    def test_keys_are_suffixes(self):
        pairs = [("og:title", "T"), ("og:image:width", "800"), ("twitter:card", "summary")]
        assert prefixed_meta_map(pairs, "og:") == {"title": "T", "image:width": "800"}

    def test_skips_missing_content_and_bare_prefix(self):
        pairs = [("og:title", None), (None, "x"), ("og:", "bare"), ("og:type", " article ")]
        assert prefixed_meta_map(pairs, "og:") == {"type": "article"}

    def test_later_duplicates_win(self):
        assert prefixed_meta_map([("og:title", "first"), ("og:title", "second")], "og:") == {"title": "second"}
