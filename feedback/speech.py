"""
Speech sinks: fire-and-forget text-to-speech with a completion callback.
"""

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

DoneCallback = Callable[[], None]


class SpeechSink(ABC):
    """
    speak() returns immediately and calls on_done when playback ends, is
    stopped, or fails. stop() cancels in-flight playback.
    """

    @abstractmethod
    def speak(self, text: str, on_done: Optional[DoneCallback] = None) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    def shutdown(self) -> None:
        """Release the engine. Default is a no-op."""


class NullSpeechSink(SpeechSink):
    """Silent sink; every utterance completes immediately."""

    def __init__(self):
        self.spoken = []

    def speak(self, text: str, on_done: Optional[DoneCallback] = None) -> None:
        self.spoken.append(text)
        if on_done:
            on_done()

    def stop(self) -> None:
        pass


class HeldSpeechSink(SpeechSink):
    """
    Silent sink whose utterances stay in flight until stop() is called.

    Used offline to count warnings the way a live session would speak them:
    one per stretch of bad posture.
    """

    def __init__(self):
        self.spoken = []
        self._pending = []

    def speak(self, text: str, on_done: Optional[DoneCallback] = None) -> None:
        self.spoken.append(text)
        if on_done:
            self._pending.append(on_done)

    def stop(self) -> None:
        pending, self._pending = self._pending, []
        for on_done in pending:
            on_done()


class Pyttsx3SpeechSink(SpeechSink):
    """
    pyttsx3 engine driven from a daemon worker thread so runAndWait() never
    blocks the frame loop.
    """

    def __init__(self, rate: int = 185, volume: float = 1.0, voice: str = "", engine=None):
        """
        Args:
            rate: Words per minute
            volume: 0.0 to 1.0
            voice: Substring of the preferred voice name or id
            engine: Pre-built engine (pyttsx3.init() when None)
        """
        if engine is None:
            import pyttsx3
            engine = pyttsx3.init()

        self.engine = engine
        self.engine.setProperty("rate", int(rate))
        self.engine.setProperty("volume", float(volume))
        if voice:
            self._select_voice(voice)

        self._queue = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="speech-worker", daemon=True)
        self._thread.start()

    def _select_voice(self, wanted: str):
        wanted = wanted.strip().lower()
        for v in self.engine.getProperty("voices") or []:
            if wanted in (v.name or "").lower() or wanted in (getattr(v, "id", "") or "").lower():
                self.engine.setProperty("voice", v.id)
                logger.info("Using voice: %s", v.name)
                return
        logger.warning("Voice '%s' not found; using system default", wanted)

    def _run(self):
        while True:
            item = self._queue.get()
            if item is None:
                break
            text, on_done = item
            try:
                self.engine.say(text)
                self.engine.runAndWait()
            except Exception as e:
                logger.warning("Speech playback failed: %r", e)
            finally:
                if on_done:
                    on_done()

    def speak(self, text: str, on_done: Optional[DoneCallback] = None) -> None:
        self._queue.put((text, on_done))

    def stop(self) -> None:
        # Drop anything not yet started, then interrupt the current utterance
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is None:
                self._queue.put(None)
                break
            _, on_done = item
            if on_done:
                on_done()
        try:
            self.engine.stop()
        except Exception as e:
            logger.warning("Speech stop failed: %r", e)

    def shutdown(self, timeout: float = 2.0) -> None:
        self.stop()
        self._queue.put(None)
        self._thread.join(timeout=timeout)


def create_speech_sink(config: Dict) -> SpeechSink:
    """Build the sink named by the speech config section."""
    if not config.get("enabled", True):
        return NullSpeechSink()
    return Pyttsx3SpeechSink(
        rate=config.get("rate", 185),
        volume=config.get("volume", 1.0),
        voice=config.get("voice", ""),
    )
