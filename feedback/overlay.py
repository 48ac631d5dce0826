"""
Overlay renderer - draws markers and the angle label onto the preview image.
"""

from typing import Optional

import cv2
import numpy as np

from perception.keypoints import COCO17_CONNECTIONS, COCO17_NAMES
from posture.interpreter import FrameResult

# BGR
MARKER_FILL = (0, 170, 0)
MARKER_STROKE = (255, 255, 255)
LABEL_COLOR = (0, 0, 255)
LINE_COLOR = (255, 255, 255)
BOX_COLOR = (235, 235, 235)


class OverlayRenderer:
    """
    Rendering sink. Stateless; every call draws one frame.
    """

    def __init__(self, marker_radius: int = 4, stroke_width: int = 2,
                 font_scale: float = 0.8, draw_skeleton: bool = False):
        self.marker_radius = marker_radius
        self.stroke_width = stroke_width
        self.font_scale = font_scale
        self.draw_skeleton = draw_skeleton

    def render(self, image: np.ndarray, result: Optional[FrameResult],
               fps: Optional[int] = None, facing: Optional[str] = None) -> np.ndarray:
        """
        Draw one frame's overlay in place.

        Args:
            image: BGR preview image
            result: Interpreter output (None draws only the status boxes)
            fps: Frames per second to display
            facing: Active camera facing, for the switch hint

        Returns:
            The same image, annotated
        """
        if result is not None and result.markers:
            if self.draw_skeleton:
                self._draw_skeleton(image, result)

            for p in result.markers:
                center = (int(p.x), int(p.y))
                cv2.circle(image, center, self.marker_radius + self.stroke_width, MARKER_STROKE, -1)
                cv2.circle(image, center, self.marker_radius, MARKER_FILL, -1)

            label = result.label
            (w, _), _ = cv2.getTextSize(label.text, cv2.FONT_HERSHEY_SIMPLEX, self.font_scale, 2)
            cv2.putText(image, label.text, (int(label.x - w / 2), int(label.y)),
                        cv2.FONT_HERSHEY_SIMPLEX, self.font_scale, LABEL_COLOR, 2)

        if fps is not None:
            self._draw_box(image, f"FPS: {fps}", left=True)
        if facing is not None:
            other = "back" if facing == "front" else "front"
            self._draw_box(image, f"[c] Switch to {other} camera", left=False)

        return image

    def _draw_skeleton(self, image: np.ndarray, result: FrameResult):
        points = {p.name: (int(p.x), int(p.y)) for p in result.markers}
        for i, j in COCO17_CONNECTIONS:
            a, b = COCO17_NAMES[i], COCO17_NAMES[j]
            if a in points and b in points:
                cv2.line(image, points[a], points[b], LINE_COLOR, 2)

    def _draw_box(self, image: np.ndarray, text: str, left: bool):
        (w, h), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.5, 1)
        x = 10 if left else image.shape[1] - w - 26
        cv2.rectangle(image, (x, 10), (x + w + 16, 10 + h + 16), BOX_COLOR, -1)
        cv2.putText(image, text, (x + 8, 10 + h + 8),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 0), 1)
