"""Thread-safe accumulation of link results."""

import threading
from datetime import datetime
import structlog

from unlinked.models import CheckResult, LinkResult, LinkStatus

logger = structlog.get_logger()

_COUNTERS = {
    LinkStatus.OK: "total_ok",
    LinkStatus.DEAD: "total_dead",
    LinkStatus.REDIRECT: "total_redirect",
    LinkStatus.ERROR: "total_errors",
    LinkStatus.TIMEOUT: "total_errors",
}


class ResultAggregator:
    """Collects LinkResults in completion order and keeps running counts."""

    def __init__(self):
        self._links: list[LinkResult] = []
        self._counts = dict.fromkeys(_COUNTERS.values(), 0)
        self._lock = threading.Lock()

    def record(self, result: LinkResult) -> None:
        """
        Append a result and bump the matching counter.

        Args:
            result: Finished result; owned by the aggregator from here on
        """
        counter = _COUNTERS.get(result.status)
        with self._lock:
            self._links.append(result)
            if counter is not None:
                self._counts[counter] += 1

    def finalize(self, start_time: datetime, end_time: datetime) -> CheckResult:
        """
        Build the immutable summary of everything recorded so far.

        Args:
            start_time: When the run started
            end_time: When the run ended

        Returns:
            CheckResult whose counts always match its links
        """
        with self._lock:
            links = tuple(self._links)
            counts = dict(self._counts)

        result = CheckResult(
            start_time=start_time,
            end_time=end_time,
            duration=end_time - start_time,
            total_checked=len(links),
            links=links,
            **counts,
        )
        logger.debug("results_finalized", total=result.total_checked, **counts)
        return result

    def counts(self) -> dict[str, int]:
        """Snapshot of the running counters."""
        with self._lock:
            return {"total_checked": len(self._links), **self._counts}

    def __len__(self) -> int:
        with self._lock:
            return len(self._links)
