"""
Frame loop: fetch frame -> estimate pose -> hand off -> re-arm.

One iteration completes before the next begins, so there is never more
than one estimation in flight.
"""

import logging
import math
import time
from enum import Enum
from typing import Callable, Iterator, List, Optional

from perception.estimators import PoseEstimator
from perception.frame_source import Frame
from perception.keypoints import Keypoint

logger = logging.getLogger(__name__)

FrameHandler = Callable[[Frame, List[Keypoint], int], None]


class LoopState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"


class PoseLoop:
    """
    Cooperative per-frame loop with explicit Idle/Running/Cancelled states.

    cancel() is final: an estimation that resolves after cancel() is dropped
    and nothing further is estimated or handed to the frame handler.
    """

    def __init__(self, frames: Iterator[Frame], estimator: PoseEstimator,
                 on_frame: FrameHandler):
        """
        Args:
            frames: Frame iterator (e.g. CameraFrameSource)
            estimator: Pose estimator
            on_frame: Called with (frame, keypoints, fps) after each estimation
        """
        self.frames = frames
        self.estimator = estimator
        self.on_frame = on_frame
        self.state = LoopState.IDLE
        self.iterations = 0
        self.last_fps = 0

    @property
    def cancelled(self) -> bool:
        return self.state is LoopState.CANCELLED

    def start(self, max_frames: Optional[int] = None) -> int:
        """
        Run until the frame source ends, cancel() is called, or max_frames
        iterations have completed.

        Returns:
            Number of completed iterations in this run
        """
        if self.state is LoopState.CANCELLED:
            raise RuntimeError("PoseLoop was cancelled and cannot be restarted")
        if self.state is LoopState.RUNNING:
            raise RuntimeError("PoseLoop is already running")

        self.state = LoopState.RUNNING
        completed = 0
        try:
            while self.state is LoopState.RUNNING:
                if max_frames is not None and completed >= max_frames:
                    break
                if not self.step():
                    break
                completed += 1
        finally:
            if self.state is LoopState.RUNNING:
                self.state = LoopState.IDLE
        return completed

    def step(self) -> bool:
        """
        One iteration.

        Returns:
            False when the loop should stop (source exhausted or cancelled)
        """
        if self.cancelled:
            return False

        try:
            frame = next(self.frames)
        except StopIteration:
            logger.info("Frame source exhausted after %d frames", self.iterations)
            return False

        try:
            try:
                start = time.perf_counter()
                keypoints = self.estimator.estimate(frame.image, frame.timestamp)
                latency_ms = (time.perf_counter() - start) * 1000.0
            finally:
                frame.release()

            if self.cancelled:
                return False

            self.last_fps = math.floor(1000.0 / latency_ms) if latency_ms > 0 else 0
            self.iterations += 1
            self.on_frame(frame, keypoints, self.last_fps)
        finally:
            frame.close()
        return not self.cancelled

    def cancel(self):
        if self.state is not LoopState.CANCELLED:
            logger.debug("Cancelling pose loop after %d iterations", self.iterations)
        self.state = LoopState.CANCELLED
