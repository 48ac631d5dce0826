"""
Pose Interpreter - turns one frame's keypoints into screen markers, a back
angle and a posture verdict, and drives spoken feedback.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from perception.keypoints import Keypoint
from .geometry import ScreenPoint, ViewConfig, calculate_angle, map_keypoint

MIN_KEYPOINT_SCORE = 0.3
BAD_POSTURE_ANGLE = 160.0
WARNING_PHRASE = "Please do not bend your back"
ANGLE_PLACEHOLDER = "0°"

# (shoulder, hip, knee), right side preferred
RIGHT_TRIPLE = ("right_shoulder", "right_hip", "right_knee")
LEFT_TRIPLE = ("left_shoulder", "left_hip", "left_knee")


class Verdict(Enum):
    GOOD = "good"
    BAD = "bad"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AngleLabel:
    x: float
    y: float
    text: str


@dataclass
class FrameResult:
    """Everything the renderer needs for one frame."""

    markers: List[ScreenPoint] = field(default_factory=list)
    angle: Optional[float] = None
    label: AngleLabel = AngleLabel(0.0, 0.0, ANGLE_PLACEHOLDER)
    verdict: Verdict = Verdict.UNKNOWN
    side: Optional[str] = None


class PoseInterpreter:
    """
    Filters keypoints, maps them to the display and checks the back angle
    (shoulder-hip-knee, vertex at the hip).
    """

    def __init__(self, min_score: float = MIN_KEYPOINT_SCORE,
                 bad_angle: float = BAD_POSTURE_ANGLE,
                 warning: str = WARNING_PHRASE,
                 coordinator=None):
        """
        Args:
            min_score: Keypoints scoring at or below this are ignored
            bad_angle: Angles below this are bad posture
            warning: Phrase spoken on bad posture
            coordinator: FeedbackCoordinator, or None for silent analysis
        """
        self.min_score = min_score
        self.bad_angle = bad_angle
        self.warning = warning
        self.coordinator = coordinator

    def filter_keypoints(self, keypoints: Sequence[Keypoint]) -> List[Keypoint]:
        return [kp for kp in keypoints if kp.score > self.min_score]

    @staticmethod
    def select_triple(points: Dict[str, ScreenPoint]) -> Optional[Tuple[str, Tuple[ScreenPoint, ...]]]:
        """Right (shoulder, hip, knee) when complete, else left, else None."""
        for side, names in (("right", RIGHT_TRIPLE), ("left", LEFT_TRIPLE)):
            if all(name in points for name in names):
                return side, tuple(points[name] for name in names)
        return None

    def verdict_for(self, angle: Optional[float]) -> Verdict:
        if angle is None:
            return Verdict.UNKNOWN
        return Verdict.BAD if angle < self.bad_angle else Verdict.GOOD

    def interpret(self, keypoints: Sequence[Keypoint], view: ViewConfig,
                  output_size: Tuple[int, int], preview: Tuple[int, int]) -> FrameResult:
        """
        Process one frame.

        Args:
            keypoints: Estimator output for the frame
            view: Resolved view for the frame
            output_size: (width, height) of the estimator input
            preview: (width, height) of the camera preview in portrait terms

        Returns:
            FrameResult with markers, angle label and verdict
        """
        markers = [map_keypoint(kp, view, output_size, preview)
                   for kp in self.filter_keypoints(keypoints)]
        result = FrameResult(markers=markers)

        selected = self.select_triple({p.name: p for p in markers})
        if selected is not None:
            side, (shoulder, hip, knee) = selected
            result.side = side
            result.angle = calculate_angle((shoulder.x, shoulder.y), (hip.x, hip.y),
                                           (knee.x, knee.y))
            if result.angle is not None:
                result.label = AngleLabel(
                    x=(shoulder.x + hip.x) / 2,
                    y=(shoulder.y + hip.y) / 2,
                    text=f"{result.angle:.2f}°",
                )

        result.verdict = self.verdict_for(result.angle)
        self._apply_feedback(result.verdict)
        return result

    def _apply_feedback(self, verdict: Verdict):
        if self.coordinator is None:
            return
        if verdict is Verdict.BAD:
            self.coordinator.request_warn(self.warning)
        elif verdict is Verdict.GOOD:
            self.coordinator.clear()
