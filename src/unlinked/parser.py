"""HTML parsing and URL extraction."""

from typing import Protocol
from urllib.parse import urljoin, urlparse
from bs4 import BeautifulSoup
import structlog

logger = structlog.get_logger()


class LinkExtractor(Protocol):
    """Strategy that pulls absolute outbound links out of a fetched page."""

    def extract_links(self, html: str, base_url: str) -> list[str]:
        ...


class HTMLLinkExtractor:
    """HTML link extractor backed by BeautifulSoup."""

    def __init__(self, features: str = "lxml"):
        self.features = features

    def extract_links(self, html: str, base_url: str) -> list[str]:
        """
        Extract and normalize all hyperlinks from a page.

        Args:
            html: Raw HTML content
            base_url: URL the page was fetched from

        Returns:
            Absolute http(s) URLs without fragments, first occurrence order
        """
        soup = BeautifulSoup(html, self.features)

        # <base href> overrides the document URL for relative links
        base = soup.find("base", href=True)
        if base:
            try:
                base_url = urljoin(base_url, base["href"])
            except ValueError as e:
                logger.debug("invalid_href", url=base_url, href=base["href"], error=str(e))

        links = []
        seen = set()

        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href:
                continue

            # Resolve relative URLs and drop fragments
            try:
                absolute_url = urljoin(base_url, href).split("#")[0]
                scheme = urlparse(absolute_url).scheme
            except ValueError as e:
                # e.g. an unclosed IPv6 bracket: "http://[x/"
                logger.debug("invalid_href", url=base_url, href=href, error=str(e))
                continue

            # Skip mailto:, javascript:, tel: and friends
            if scheme not in ("http", "https"):
                continue

            if absolute_url not in seen:
                seen.add(absolute_url)
                links.append(absolute_url)

        logger.debug("links_extracted", url=base_url, count=len(links))
        return links
