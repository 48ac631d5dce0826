"""
View resolution, coordinate mapping and the joint angle.

Everything here is pure: given the same keypoint, view and sizes the result
is always the same.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from perception.keypoints import Keypoint

# --- View constants ---
OUTPUT_TENSOR_WIDTH = 180

PLATFORMS = ("android", "ios", "desktop")
FACINGS = ("front", "back")
ORIENTATIONS = ("portrait_up", "portrait_down", "landscape_left", "landscape_right")


@dataclass(frozen=True)
class ScreenPoint:
    """Keypoint position in display space."""

    name: str
    x: float
    y: float


@dataclass(frozen=True)
class ViewConfig:
    """
    How estimator output maps onto the display for one frame.

    flip_x: mirror x before scaling
    swap_dims: landscape display, preview width/height roles swap
    swap_output: output tensor width/height swap (non-Android landscape)
    rotation: clockwise degrees applied to the camera image before estimation
    """

    flip_x: bool
    swap_dims: bool
    swap_output: bool
    rotation: int = 0


def is_portrait(orientation: str) -> bool:
    return orientation in ("portrait_up", "portrait_down")


def _rotation(platform: str, facing: str, orientation: str) -> int:
    # Android rotates the camera texture itself; desktop webcams never rotate
    if platform != "ios":
        return 0
    if orientation == "portrait_down":
        return 180
    if orientation == "landscape_left":
        return 270 if facing == "front" else 90
    if orientation == "landscape_right":
        return 90 if facing == "front" else 270
    return 0


def resolve_view(platform: str, facing: str, orientation: str) -> ViewConfig:
    """
    Resolve mirroring, dimension swapping and rotation for one frame.

    Args:
        platform: 'android', 'ios' or 'desktop'
        facing: 'front' (camera points at the user) or 'back'
        orientation: one of ORIENTATIONS

    Returns:
        ViewConfig for the given combination
    """
    if platform not in PLATFORMS:
        raise ValueError(f"Unknown platform '{platform}'")
    if facing not in FACINGS:
        raise ValueError(f"Unknown camera facing '{facing}'")
    if orientation not in ORIENTATIONS:
        raise ValueError(f"Unknown orientation '{orientation}'")

    portrait = is_portrait(orientation)
    return ViewConfig(
        flip_x=facing == "front" or platform == "android",
        swap_dims=not portrait,
        swap_output=not portrait and platform != "android",
        rotation=_rotation(platform, facing, orientation),
    )


def aspect_ratio(platform: str) -> float:
    """Width/height of the camera preview: 9:16 on iOS, 3:4 elsewhere."""
    return 9 / 16 if platform == "ios" else 3 / 4


def output_tensor_size(platform: str, view: ViewConfig,
                       base_width: int = OUTPUT_TENSOR_WIDTH) -> Tuple[int, int]:
    """(width, height) of the image handed to the estimator."""
    width = base_width
    height = int(round(base_width / aspect_ratio(platform)))
    return (height, width) if view.swap_output else (width, height)


def preview_size(platform: str, preview_width: int) -> Tuple[int, int]:
    """(width, height) of the camera preview in portrait terms."""
    return preview_width, int(round(preview_width / aspect_ratio(platform)))


def display_size(platform: str, preview_width: int, view: ViewConfig) -> Tuple[int, int]:
    """(width, height) of the actual display surface for this view."""
    width, height = preview_size(platform, preview_width)
    return (height, width) if view.swap_dims else (width, height)


def map_keypoint(kp: Keypoint, view: ViewConfig,
                 output_size: Tuple[int, int],
                 preview: Tuple[int, int]) -> ScreenPoint:
    """
    Map a keypoint from output tensor space into display space.

    Args:
        kp: Keypoint from the estimator
        view: Resolved view
        output_size: (width, height) of the estimator input
        preview: (width, height) of the camera preview in portrait terms

    Returns:
        ScreenPoint in display coordinates
    """
    out_w, out_h = output_size
    prev_w, prev_h = preview

    x = out_w - kp.x if view.flip_x else kp.x
    cx = (x / out_w) * (prev_h if view.swap_dims else prev_w)
    cy = (kp.y / out_h) * (prev_w if view.swap_dims else prev_h)
    return ScreenPoint(kp.name, cx, cy)


def calculate_angle(a: Sequence[float], b: Sequence[float],
                    c: Sequence[float]) -> Optional[float]:
    """
    Calculate the angle at b formed by a-b-c, in degrees.

    Returns None when a or c coincides with b.
    """
    v1 = np.asarray(a, dtype=np.float64)[:2] - np.asarray(b, dtype=np.float64)[:2]
    v2 = np.asarray(c, dtype=np.float64)[:2] - np.asarray(b, dtype=np.float64)[:2]

    norm1 = np.linalg.norm(v1)
    norm2 = np.linalg.norm(v2)

    if norm1 == 0 or norm2 == 0:
        return None

    cos_angle = np.dot(v1, v2) / (norm1 * norm2)
    cos_angle = np.clip(cos_angle, -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))
