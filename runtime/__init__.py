"""
Runtime Module - Configuration, frame loop, live app and offline analysis
"""

from .config import (
    DEFAULT_CONFIG,
    load_config,
    merge_config,
    validate_config
)
from .loop import LoopState, PoseLoop
from .app import PostureApp
from .analysis import analyze_video, summarize

__all__ = [
    'DEFAULT_CONFIG',
    'load_config',
    'merge_config',
    'validate_config',
    'LoopState',
    'PoseLoop',
    'PostureApp',
    'analyze_video',
    'summarize'
]

__version__ = '1.0.0'
