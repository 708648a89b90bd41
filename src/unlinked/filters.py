"""URL filtering utilities."""

import re
from typing import Optional
from urllib.parse import urlparse
import structlog

from unlinked.exceptions import ConfigError

logger = structlog.get_logger()


class IgnoreFilter:
    """Skip URLs matching any configured regular expression."""

    def __init__(self, patterns: Optional[list[str]] = None):
        """
        Compile ignore patterns.

        Args:
            patterns: Regular expressions; a URL matching any of them is ignored

        Raises:
            ConfigError: If a pattern is not a valid regular expression
        """
        self.patterns = list(patterns or [])
        self._compiled: list[re.Pattern] = []

        for pattern in self.patterns:
            try:
                self._compiled.append(re.compile(pattern))
            except re.error as e:
                raise ConfigError(f"invalid ignore pattern {pattern!r}: {e}") from e

    def should_ignore(self, url: str) -> bool:
        """
        Check if URL matches any ignore pattern.

        Args:
            url: URL to check

        Returns:
            True if the URL must be skipped without probing
        """
        for regex in self._compiled:
            if regex.search(url):
                logger.debug("url_ignored", url=url, pattern=regex.pattern)
                return True
        return False

    def __len__(self) -> int:
        return len(self._compiled)


class DomainFilter:
    """Filter URLs based on domain."""

    def __init__(self, allowed_domains: Optional[list[str]] = None):
        """
        Initialize domain filter.

        Args:
            allowed_domains: List of allowed domains (e.g., ['example.com', 'test.com'])
        """
        self.allowed_domains = {d.lower().strip(".") for d in (allowed_domains or []) if d}

    def is_allowed(self, url: str) -> bool:
        """
        Check if URL's domain is allowed.

        Args:
            url: URL to check

        Returns:
            True if domain is allowed or no domain filter is set
        """
        if not self.allowed_domains:
            return True

        domain = (urlparse(url).hostname or "").lower()

        if domain in self.allowed_domains:
            return True

        # Subdomains of an allowed domain are allowed too
        for allowed in self.allowed_domains:
            if domain.endswith(f".{allowed}"):
                return True

        logger.debug("url_filtered_domain", url=url, domain=domain)
        return False
