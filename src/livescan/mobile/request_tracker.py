"""
Ordering of background classification requests.

The photo screen classifies in worker threads. Each pick gets an id, and only
the result of the newest pick may reach the label.
"""

import logging

logger = logging.getLogger(__name__)


class LatestRequestTracker:
    """
    Hands out increasing request ids and recognizes stale ones.

    Usage:
        request_id = tracker.begin()
        ...  # later, on the UI thread
        if tracker.is_current(request_id):
            show(result)
    """

    def __init__(self):
        self._latest = 0

    def begin(self) -> int:
        """Start a request, superseding every earlier one."""
        self._latest += 1
        return self._latest

    def is_current(self, request_id: int) -> bool:
        if request_id != self._latest:
            logger.debug(f"Dropping stale result of request {request_id} (latest {self._latest})")
            return False
        return True

    @property
    def latest(self) -> int:
        return self._latest
