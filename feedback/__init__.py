"""
Feedback Module - Spoken warnings and on-screen overlay
Coordinates the single in-flight warning and renders each frame's markers
"""

from .speech import (
    SpeechSink,
    NullSpeechSink,
    HeldSpeechSink,
    Pyttsx3SpeechSink,
    create_speech_sink
)
from .coordinator import FeedbackCoordinator
from .overlay import OverlayRenderer

__all__ = [
    'SpeechSink',
    'NullSpeechSink',
    'HeldSpeechSink',
    'Pyttsx3SpeechSink',
    'create_speech_sink',
    'FeedbackCoordinator',
    'OverlayRenderer'
]

__version__ = '1.0.0'
