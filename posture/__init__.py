"""
Posture Module - Pose Interpreter
Maps keypoints to the display, computes the back angle and the posture verdict
"""

from .geometry import (
    ScreenPoint,
    ViewConfig,
    resolve_view,
    output_tensor_size,
    preview_size,
    display_size,
    map_keypoint,
    calculate_angle
)
from .interpreter import (
    AngleLabel,
    FrameResult,
    PoseInterpreter,
    Verdict
)

__all__ = [
    'ScreenPoint',
    'ViewConfig',
    'resolve_view',
    'output_tensor_size',
    'preview_size',
    'display_size',
    'map_keypoint',
    'calculate_angle',
    'AngleLabel',
    'FrameResult',
    'PoseInterpreter',
    'Verdict'
]

__version__ = '1.0.0'
