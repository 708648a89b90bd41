"""Tests for HTML link extraction."""

from unlinked.parser import HTMLLinkExtractor


class TestHTMLLinkExtractor:
    """Test link extraction functionality."""

    def test_extract_links(self, sample_html, sample_url):
        """Test link extraction and normalization."""
        links = HTMLLinkExtractor().extract_links(sample_html, sample_url)

        assert links == [
            "https://example.com/page1",
            "https://example.com/page2",
            "https://external.com",
        ]

    def test_skips_non_http_schemes(self, sample_html, sample_url):
        """Test that mailto and javascript links are dropped."""
        links = HTMLLinkExtractor().extract_links(sample_html, sample_url)

        assert not any(link.startswith(("mailto:", "javascript:")) for link in links)

    def test_relative_to_page_path(self):
        """Test resolving links relative to a nested page."""
        html = '<a href="next.html">n</a><a href="../up">u</a>'
        links = HTMLLinkExtractor().extract_links(html, "https://example.com/docs/intro/")

        assert links == [
            "https://example.com/docs/intro/next.html",
            "https://example.com/docs/up",
        ]

    def test_base_href(self):
        """Test that <base href> changes link resolution."""
        html = '<head><base href="https://cdn.example.com/v2/"></head><a href="a">a</a>'
        links = HTMLLinkExtractor().extract_links(html, "https://example.com/")

        assert links == ["https://cdn.example.com/v2/a"]

    def test_fragment_only_link_is_page_itself(self):
        """Test that #anchors resolve to the page URL."""
        links = HTMLLinkExtractor().extract_links('<a href="#top">top</a>', "https://example.com/p")

        assert links == ["https://example.com/p"]

    def test_parse_empty_html(self, sample_url):
        """Test parsing empty HTML."""
        assert HTMLLinkExtractor().extract_links("", sample_url) == []

    def test_malformed_href_skipped(self):
        """Test that one unparseable href does not drop the other links."""
        html = (
            '<a href="/good">g</a>'
            '<a href="http://[x/">bad</a>'
            '<a href="https://other.com/ok">o</a>'
        )
        links = HTMLLinkExtractor().extract_links(html, "https://example.com/")

        assert links == ["https://example.com/good", "https://other.com/ok"]

    def test_malformed_base_href_ignored(self):
        """Test that an unparseable <base href> falls back to the page URL."""
        html = '<head><base href="http://[x/"></head><a href="a">a</a>'
        links = HTMLLinkExtractor().extract_links(html, "https://example.com/docs/")

        assert links == ["https://example.com/docs/a"]
