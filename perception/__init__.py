"""
Perception Module - Keypoints, Pose Estimators and Frame Source
Wraps the external camera and pose models behind small pull/estimate interfaces
"""

from .keypoints import (
    COCO17_NAMES,
    COCO17_CONNECTIONS,
    KEYPOINT_INDEX,
    Keypoint,
    keypoints_from_array,
    keypoints_to_array
)
from .estimators import (
    PoseEstimator,
    YoloPoseEstimator,
    MediaPipePoseEstimator,
    create_estimator
)
from .frame_source import Frame, CameraFrameSource

__all__ = [
    'COCO17_NAMES',
    'COCO17_CONNECTIONS',
    'KEYPOINT_INDEX',
    'Keypoint',
    'keypoints_from_array',
    'keypoints_to_array',
    'PoseEstimator',
    'YoloPoseEstimator',
    'MediaPipePoseEstimator',
    'create_estimator',
    'Frame',
    'CameraFrameSource'
]

__version__ = '1.0.0'
