"""Unit tests for URL normalization and file name sanitization."""

import pytest
from hypothesis import given
from hypothesis import strategies as st
from vaultscrape.errors import ErrorCategory, InvalidURLError, PathTraversalError
from vaultscrape.utils.url import normalize_url, sanitize_file_name

labels = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789", min_size=1, max_size=12)
hosts = st.lists(labels, min_size=1, max_size=3).map(lambda parts: ".".join(parts) + ".com")
paths = st.lists(labels, max_size=3).map(lambda parts: "/" + "/".join(parts))


@pytest.mark.unit
class TestNormalizeUrl:
    def test_prepends_https_when_scheme_missing(self):
        assert normalize_url("example.com/post") == "https://example.com/post"

    def test_keeps_existing_scheme(self):
        assert normalize_url("http://example.com") == "http://example.com"
        assert normalize_url("https://example.com/a?b=1") == "https://example.com/a?b=1"

    def test_scheme_check_is_case_insensitive(self):
        assert normalize_url("HTTPS://example.com") == "HTTPS://example.com"

    def test_trims_whitespace(self):
        assert normalize_url("  https://example.com/post \n") == "https://example.com/post"

    @pytest.mark.parametrize("raw", ["", "   ", None, 42])
    def test_rejects_empty_or_non_string(self, raw):
        with pytest.raises(InvalidURLError) as exc_info:
            normalize_url(raw)
        assert exc_info.value.category is ErrorCategory.INVALID

    @pytest.mark.parametrize("raw", ["https://", "http://exa mple.com", "https://example.com:notaport", "://"])
    def test_rejects_unparseable(self, raw):
        with pytest.raises(InvalidURLError):
            normalize_url(raw)

    @given(host=hosts, path=paths)
    def test_idempotent(self, host, path):
        once = normalize_url(f"https://{host}{path}")
        assert normalize_url(once) == once

    @given(host=hosts, path=paths)
    def test_prefix_added_exactly_once(self, host, path):
        normalized = normalize_url(f"{host}{path}")
        assert normalized == f"https://{host}{path}"
        assert normalized.count("https://") == 1
        assert normalize_url(normalized) == normalized


@pytest.mark.unit
class TestSanitizeFileName:
    def test_basic_title(self):
        assert sanitize_file_name("Hello World: A Story?") == "hello-world-a-story"

    def test_slashes_become_dashes(self):
        assert sanitize_file_name("AC/DC \\ Live") == "ac-dc---live"

    def test_truncates_to_one_hundred(self):
        assert len(sanitize_file_name("x" * 250)) == 100

    def test_empty_becomes_untitled(self):
        assert sanitize_file_name("") == "untitled"
        assert sanitize_file_name('<>:"|?*') == "untitled"

    def test_leading_slash_is_flattened(self):
        assert sanitize_file_name("/r/python tips") == "-r-python-tips"
        assert sanitize_file_name("C:\\Windows") == "c-windows"

    # "a.?.b" only gains its ".." once the "?" is stripped
    @pytest.mark.parametrize("name", ["../etc/passwd", "notes/../../secret", "a.?.b", "v1.*.2 notes"])
    def test_rejects_traversal(self, name):
        with pytest.raises(PathTraversalError) as exc_info:
            sanitize_file_name(name)
        assert exc_info.value.category is ErrorCategory.SECURITY
