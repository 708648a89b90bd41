"""
unlinked - a dead link checker.

Check a list of URLs, or crawl a site, and find out which links are broken.
"""

from unlinked.checker import Checker
from unlinked.config import load_config
from unlinked.exceptions import CheckCancelled, CheckError, ConfigError, SeedError, UnlinkedError
from unlinked.models import CheckConfig, CheckMode, CheckResult, LinkResult, LinkStatus, OutputFormat

__version__ = "0.1.0"
__all__ = [
    "Checker",
    "CheckConfig",
    "CheckMode",
    "CheckResult",
    "LinkResult",
    "LinkStatus",
    "OutputFormat",
    "load_config",
    "UnlinkedError",
    "ConfigError",
    "SeedError",
    "CheckError",
    "CheckCancelled",
]
