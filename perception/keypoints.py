"""
Keypoint types and the 17-landmark COCO topology shared by every pose backend.
MoveNet, YOLOv8-pose and our MediaPipe mapping all emit landmarks in this order.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence


COCO17_NAMES = [
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
]

KEYPOINT_INDEX = {name: idx for idx, name in enumerate(COCO17_NAMES)}

NUM_KEYPOINTS = len(COCO17_NAMES)

COCO17_CONNECTIONS = [
    (0, 1), (0, 2),      # nose to eyes
    (1, 3), (2, 4),      # eyes to ears
    (5, 6),              # shoulders
    (5, 7), (6, 8),      # shoulders to elbows
    (7, 9), (8, 10),     # elbows to wrists
    (5, 11), (6, 12),    # shoulders to hips
    (11, 12),            # hips
    (11, 13), (12, 14),  # hips to knees
    (13, 15), (14, 16),  # knees to ankles
]


@dataclass(frozen=True)
class Keypoint:
    """
    One detected landmark in output-tensor pixel space.
    """

    name: str
    x: float
    y: float
    score: float  # confidence in [0, 1]


def keypoints_from_array(array: np.ndarray,
                         names: Optional[Sequence[str]] = None) -> List[Keypoint]:
    """
    Convert a (N, 3) array of [x, y, score] rows to keypoints.

    Args:
        array: Keypoint array, one row per landmark
        names: Landmark names (defaults to COCO-17)

    Returns:
        List of Keypoint in row order
    """
    names = list(names) if names is not None else COCO17_NAMES
    array = np.asarray(array, dtype=np.float64)

    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError(f"Expected array of shape (N, 3), got {array.shape}")
    if array.shape[0] != len(names):
        raise ValueError(f"Expected {len(names)} rows, got {array.shape[0]}")

    return [
        Keypoint(name=name, x=float(x), y=float(y), score=float(score))
        for name, (x, y, score) in zip(names, array)
    ]


def keypoints_to_array(keypoints: Sequence[Keypoint]) -> np.ndarray:
    """Inverse of keypoints_from_array; landmarks not present stay as zero rows."""
    array = np.zeros((NUM_KEYPOINTS, 3))
    for kp in keypoints:
        idx = KEYPOINT_INDEX.get(kp.name)
        if idx is not None:
            array[idx] = [kp.x, kp.y, kp.score]
    return array
