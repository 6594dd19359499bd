"""
Remember the last log page seen so unchanged content is never parsed twice.
"""
from __future__ import annotations

import logging
from threading import Lock

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Exact-match baseline of the last observed log text.

    The baseline starts empty, so the first non-empty page after a restart is
    always treated as new. Comparison is plain string equality: any change in
    how the source serializes the page counts as new content.
    """

    def __init__(self) -> None:
        self._baseline = ""
        self._lock = Lock()

    @property
    def baseline(self) -> str:
        with self._lock:
            return self._baseline

    def observe(self, current_text: str | None) -> str | None:
        """Return ``current_text`` if it differs from the baseline, else ``None``."""
        if not current_text:
            return None
        with self._lock:
            if current_text == self._baseline:
                return None
            self._baseline = current_text
        logger.debug("Log content changed (%d chars)", len(current_text))
        return current_text

    def forget(self, text: str) -> None:
        """Drop the baseline if it is still ``text`` so it gets retried."""
        with self._lock:
            if self._baseline == text:
                self._baseline = ""
