"""
One-shot outward delivery of screening results.

Serializes a SessionResult to compact JSON and pushes it through a host sink
(e.g. a WebView bridge's postMessage, a queue, an HTTP callback) at most once
per channel. Also keeps the last delivered result so polling hosts can read it
via GET /session/result.
"""

import json
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def serialize_result(result) -> str:
    """Compact JSON encoding of SessionResult.to_dict()."""
    return json.dumps(result.to_dict(), separators=(",", ":"))


class ResultChannel:
    """
    Delivers exactly one serialized result to `sink`.

    Usage:
        channel = ResultChannel(sink=bridge.post_message)
        session = ScreeningSession(result_handler=channel.deliver)
    """

    def __init__(self, sink: Optional[Callable[[str], None]] = None):
        self.sink = sink
        self._lock = threading.Lock()
        self._sent = False
        self._last_result = None
        self._last_payload: Optional[str] = None

    @property
    def sent(self) -> bool:
        with self._lock:
            return self._sent

    def deliver(self, result) -> bool:
        """
        Serialize and push result once. Returns True if this call delivered.
        """
        with self._lock:
            if self._sent:
                return False
            self._sent = True
            payload = serialize_result(result)
            self._last_result = result
            self._last_payload = payload
        if self.sink is not None:
            try:
                self.sink(payload)
            except Exception as e:
                logger.warning("Result sink failed: %s", e)
        return True

    def get_last_result(self):
        with self._lock:
            return self._last_result

    def get_last_payload(self) -> Optional[str]:
        with self._lock:
            return self._last_payload
