"""
Frame Source - pull-based camera/video iterator built on OpenCV.

Each frame carries two buffers: the resized RGB image handed to the pose
estimator and a BGR preview at display size. Consumers release every frame
as soon as its estimation call returns.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


@dataclass
class Frame:
    """One captured frame. release() drops the estimator image, close() drops both buffers."""

    image: Optional[np.ndarray]      # (H, W, 3) RGB at output tensor size
    preview: Optional[np.ndarray]    # BGR at preview size
    timestamp: float                 # milliseconds since epoch

    @property
    def released(self) -> bool:
        return self.image is None

    def release(self):
        self.image = None

    def close(self):
        self.image = None
        self.preview = None


class CameraFrameSource:
    """
    Iterator over frames of an OpenCV capture (camera index or video path).
    """

    def __init__(self, source: Union[int, str, cv2.VideoCapture] = 0,
                 output_size: Tuple[int, int] = (240, 180),
                 preview_size: Tuple[int, int] = (640, 480),
                 rotation: int = 0, mirror: bool = False):
        """
        Args:
            source: Camera index, video file path, or an opened capture
            output_size: (width, height) of the estimator input
            preview_size: (width, height) of the display image
            rotation: Clockwise rotation in degrees (0, 90, 180, 270)
            mirror: Mirror the preview horizontally
        """
        if isinstance(source, (int, str)):
            self.capture = cv2.VideoCapture(source)
        else:
            self.capture = source

        if self.capture is None or not self.capture.isOpened():
            raise IOError(f"Could not open video source {source!r}")

        self.output_size = output_size
        self.preview_size = preview_size
        self.rotation = rotation
        self.mirror = mirror
        self.frames_read = 0

    def configure(self, output_size: Tuple[int, int], preview_size: Tuple[int, int],
                  rotation: int = 0, mirror: bool = False):
        """Apply a new view (camera switch or orientation change)."""
        if rotation not in (0, 90, 180, 270):
            raise ValueError(f"Unsupported rotation {rotation}")
        self.output_size = output_size
        self.preview_size = preview_size
        self.rotation = rotation
        self.mirror = mirror

    def frame_count(self) -> int:
        """Number of frames in a video file, 0 for live cameras."""
        return max(0, int(self.capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0))

    def __iter__(self):
        return self

    def __next__(self) -> Frame:
        ok, raw = self.capture.read()
        if not ok or raw is None:
            raise StopIteration
        self.frames_read += 1
        return self.prepare(raw)

    def prepare(self, raw: np.ndarray) -> Frame:
        """
        Turn one raw BGR capture into a Frame.

        Args:
            raw: Frame as read from OpenCV (BGR)

        Returns:
            Frame with estimator image and display preview
        """
        if self.rotation:
            raw = cv2.rotate(raw, _ROTATIONS[self.rotation])

        image = cv2.resize(raw, tuple(int(v) for v in self.output_size))
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

        preview = cv2.resize(raw, tuple(int(v) for v in self.preview_size))
        if self.mirror:
            preview = cv2.flip(preview, 1)

        return Frame(image=image, preview=preview, timestamp=time.time() * 1000.0)

    def release(self):
        if self.capture is not None:
            self.capture.release()
            logger.debug("Released capture after %d frames", self.frames_read)
