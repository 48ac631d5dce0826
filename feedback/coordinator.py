"""
Feedback coordinator - owns the "currently speaking" state.

At most one spoken warning is in flight. A new warning is suppressed while
one is active, and the active one is stopped once posture is acceptable again.
"""

import logging
import threading

from .speech import SpeechSink

logger = logging.getLogger(__name__)


class FeedbackCoordinator:
    """
    Single owner of the speaking flag.

    The pose loop calls request_warn()/clear(); the speech sink reports
    completion from its worker thread. Writes are serialized with a lock.
    """

    def __init__(self, sink: SpeechSink):
        self.sink = sink
        self._lock = threading.Lock()
        self._speaking = False
        self._utterance = 0
        self.warnings_issued = 0
        self.stops_issued = 0

    @property
    def speaking(self) -> bool:
        with self._lock:
            return self._speaking

    def request_warn(self, text: str) -> bool:
        """
        Speak a warning unless one is already in flight.

        Returns:
            True if a speak request was issued
        """
        with self._lock:
            if self._speaking:
                return False
            self._speaking = True
            self._utterance += 1
            token = self._utterance
            self.warnings_issued += 1

        logger.debug("Speaking warning #%d: %s", token, text)
        self.sink.speak(text, on_done=lambda: self._on_done(token))
        return True

    def clear(self) -> bool:
        """
        Stop the in-flight warning, if any.

        Returns:
            True if a stop request was issued
        """
        with self._lock:
            if not self._speaking:
                return False
            self._speaking = False
            self.stops_issued += 1

        self.sink.stop()
        return True

    def _on_done(self, token: int):
        with self._lock:
            # A completion from an older, already stopped utterance must not
            # clear a newer warning
            if token == self._utterance:
                self._speaking = False
