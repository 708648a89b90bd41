"""Run-wide URL deduplication."""

import threading
import structlog

logger = structlog.get_logger()


class VisitedRegistry:
    """Remembers every URL handed to the prober during one engine's lifetime."""

    def __init__(self):
        self._visited: set[str] = set()
        self._lock = threading.Lock()

    def mark_if_new(self, url: str) -> bool:
        """
        Atomically check and mark a URL as visited.

        Args:
            url: URL about to be probed

        Returns:
            True if this call is the first to see ``url``. On False the
            caller must not probe it.
        """
        with self._lock:
            if url in self._visited:
                return False
            self._visited.add(url)

        logger.debug("url_marked", url=url)
        return True

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._visited

    def __len__(self) -> int:
        with self._lock:
            return len(self._visited)
