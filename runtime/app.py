"""
Live posture app: camera -> pose estimator -> interpreter -> overlay + speech.
"""

import logging
from typing import Dict, Optional

import cv2

from feedback.coordinator import FeedbackCoordinator
from feedback.overlay import OverlayRenderer
from feedback.speech import SpeechSink, create_speech_sink
from perception.estimators import PoseEstimator, create_estimator
from perception.frame_source import CameraFrameSource, Frame
from posture.geometry import (
    ORIENTATIONS,
    display_size,
    output_tensor_size,
    preview_size,
    resolve_view,
)
from posture.interpreter import FrameResult, PoseInterpreter
from .config import DEFAULT_CONFIG, merge_config, validate_config
from .loop import PoseLoop

logger = logging.getLogger(__name__)

KEY_QUIT = (ord('q'), 27)
KEY_SWITCH_CAMERA = ord('c')
KEY_ROTATE = ord('o')


class PostureApp:
    """
    Wires the external collaborators around the Pose Interpreter and owns
    their lifetime.
    """

    def __init__(self, config: Optional[Dict] = None,
                 estimator: Optional[PoseEstimator] = None,
                 speech: Optional[SpeechSink] = None,
                 frames: Optional[CameraFrameSource] = None,
                 show_window: bool = True):
        """
        Args:
            config: Configuration (see runtime.config)
            estimator: Pre-built estimator; created from config when None
            speech: Pre-built speech sink; created from config when None
            frames: Pre-built frame source; opened from config when None
            show_window: Display frames in an OpenCV window
        """
        self.config = validate_config(merge_config(DEFAULT_CONFIG, config))
        self.estimator = estimator
        self.speech = speech
        self.frames = frames
        self.show_window = show_window

        camera = self.config['camera']
        self.platform = camera['platform']
        self.facing = camera['facing']
        self.orientation = camera['orientation']

        self.coordinator = None
        self.interpreter = None
        self.renderer = None
        self.loop = None
        self.last_result: Optional[FrameResult] = None
        self._closed = False

    def setup(self):
        """Create missing components and resolve the initial view."""
        print("=" * 60)
        print("POSTURE GUARD - SETUP")
        print("=" * 60)

        if self.estimator is None:
            print("\n1. Loading pose estimator...")
            self.estimator = create_estimator(self.config['estimator'])
        print(f"   ✓ Estimator: {self.estimator.name()}")

        if self.speech is None:
            self.speech = create_speech_sink(self.config['speech'])
        print(f"   ✓ Speech: {type(self.speech).__name__}")

        posture = self.config['posture']
        self.coordinator = FeedbackCoordinator(self.speech)
        self.interpreter = PoseInterpreter(
            min_score=posture['min_keypoint_score'],
            bad_angle=posture['bad_posture_angle'],
            warning=posture['warning_phrase'],
            coordinator=self.coordinator,
        )
        self.renderer = OverlayRenderer(draw_skeleton=self.config['display']['draw_skeleton'])

        if self.frames is None:
            print("\n2. Opening camera...")
            self.frames = CameraFrameSource(self.config['camera']['source'])
        print(f"   ✓ Camera facing: {self.facing}, orientation: {self.orientation}")

        self.apply_view()
        self.loop = PoseLoop(self.frames, self.estimator, self.handle_frame)
        print("\n" + "=" * 60 + "\n")

    def apply_view(self):
        """Resolve the view for the current facing/orientation and reconfigure the camera."""
        camera = self.config['camera']
        self.view = resolve_view(self.platform, self.facing, self.orientation)
        self.output_size = output_tensor_size(self.platform, self.view, camera['output_tensor_width'])
        self.preview = preview_size(self.platform, camera['preview_width'])
        self.frames.configure(
            output_size=self.output_size,
            preview_size=display_size(self.platform, camera['preview_width'], self.view),
            rotation=self.view.rotation,
            mirror=self.view.flip_x,
        )
        logger.debug("View %s, output %s, preview %s", self.view, self.output_size, self.preview)

    def toggle_facing(self):
        self.facing = "back" if self.facing == "front" else "front"
        logger.info("Switched to %s camera", self.facing)
        self.apply_view()

    def rotate_orientation(self):
        idx = ORIENTATIONS.index(self.orientation)
        self.orientation = ORIENTATIONS[(idx + 1) % len(ORIENTATIONS)]
        logger.info("Orientation: %s", self.orientation)
        self.apply_view()

    def handle_frame(self, frame: Frame, keypoints, fps: int):
        self.last_result = self.interpreter.interpret(keypoints, self.view, self.output_size, self.preview)

        show_fps = fps if self.config['display']['show_fps'] else None
        image = self.renderer.render(frame.preview, self.last_result, show_fps, self.facing)

        if self.show_window:
            cv2.imshow(self.config['display']['window_name'], image)
            self.handle_key(cv2.waitKey(1) & 0xFF)

    def handle_key(self, key: int):
        if key in KEY_QUIT:
            self.loop.cancel()
        elif key == KEY_SWITCH_CAMERA:
            self.toggle_facing()
        elif key == KEY_ROTATE:
            self.rotate_orientation()

    def run(self, max_frames: Optional[int] = None) -> int:
        """
        Run the live loop until quit, then tear everything down.

        Returns:
            Number of processed frames
        """
        try:
            if self.loop is None:
                self.setup()
            return self.loop.start(max_frames=max_frames)
        finally:
            self.close()

    def close(self):
        """Stop the loop, silence speech and release camera and model."""
        if self._closed:
            return
        self._closed = True

        if self.loop is not None:
            self.loop.cancel()
        if self.coordinator is not None:
            self.coordinator.clear()
        if self.speech is not None:
            self.speech.shutdown()
        if self.frames is not None:
            self.frames.release()
        if self.estimator is not None:
            self.estimator.close()
        if self.show_window:
            cv2.destroyAllWindows()
        logger.info("Posture app closed")
