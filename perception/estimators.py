"""
Pose Estimator adapters.

Every backend takes one RGB frame (H, W, 3 uint8) and returns the 17 COCO
keypoints of a single person in the frame's pixel space. The models themselves
are external: YOLOv8-pose through ultralytics, or MediaPipe Pose.
"""

import importlib.util
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import cv2
import numpy as np

from .keypoints import COCO17_NAMES, Keypoint, keypoints_from_array

logger = logging.getLogger(__name__)

YOLO_AVAILABLE = importlib.util.find_spec("ultralytics") is not None
MEDIAPIPE_AVAILABLE = importlib.util.find_spec("mediapipe") is not None

ESTIMATOR_BACKENDS = ("auto", "yolo", "mediapipe")


class PoseEstimator(ABC):
    """
    Model adapter interface.

    estimate() is called once per frame and must return before the next call;
    callers never issue two estimations concurrently.
    """

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def estimate(self, image: np.ndarray, timestamp: Optional[float] = None) -> List[Keypoint]: ...

    def close(self) -> None:
        """Release model resources. Default is a no-op."""


class YoloPoseEstimator(PoseEstimator):
    """
    YOLOv8-pose estimator. The model is trained on COCO keypoints, so its
    output rows are already in COCO-17 order.
    """

    def __init__(self, weights: str = "yolov8n-pose.pt", conf: float = 0.25,
                 device: Optional[str] = None):
        """
        Args:
            weights: Ultralytics pose weights file or hub name
            conf: Person detection confidence threshold
            device: Torch device; picked automatically when None
        """
        if not YOLO_AVAILABLE:
            raise RuntimeError("ultralytics is not installed. Install with: pip install ultralytics")

        import torch
        from ultralytics import YOLO

        self.conf = conf
        self.device = device or ("cuda" if torch.cuda.is_available() else "cpu")
        logger.info("Loading YOLO pose weights %s on %s", weights, self.device)
        self.model = YOLO(weights)

    def name(self) -> str:
        return "yolo_pose"

    def estimate(self, image: np.ndarray, timestamp: Optional[float] = None) -> List[Keypoint]:
        # ultralytics treats numpy input as BGR
        bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
        results = self.model(bgr, conf=self.conf, device=self.device, verbose=False)
        if not results:
            return []
        return self._first_person(results[0])

    def _first_person(self, result) -> List[Keypoint]:
        keypoints = getattr(result, "keypoints", None)
        if keypoints is None or keypoints.xy is None or len(keypoints.xy) == 0:
            return []

        xy = keypoints.xy.cpu().numpy()
        if keypoints.conf is not None:
            scores = keypoints.conf.cpu().numpy()
        else:
            scores = np.ones(xy.shape[:2])

        # Most confident person, the one the user is most likely to be
        person = 0
        boxes = getattr(result, "boxes", None)
        if boxes is not None and boxes.conf is not None and len(boxes.conf) == len(xy):
            person = int(np.argmax(boxes.conf.cpu().numpy()))

        rows = np.column_stack([xy[person], scores[person]])
        return keypoints_from_array(rows)


class MediaPipePoseEstimator(PoseEstimator):
    """
    MediaPipe Pose estimator mapped onto COCO-17.

    MediaPipe reports normalized coordinates; they are scaled to pixels and
    landmark visibility is used as the score.
    """

    # MediaPipe BlazePose landmark index for each COCO-17 name
    MEDIAPIPE_TO_COCO17: Dict[str, int] = {
        "nose": 0,
        "left_eye": 2,
        "right_eye": 5,
        "left_ear": 7,
        "right_ear": 8,
        "left_shoulder": 11,
        "right_shoulder": 12,
        "left_elbow": 13,
        "right_elbow": 14,
        "left_wrist": 15,
        "right_wrist": 16,
        "left_hip": 23,
        "right_hip": 24,
        "left_knee": 25,
        "right_knee": 26,
        "left_ankle": 27,
        "right_ankle": 28,
    }

    def __init__(self, model_complexity: int = 1, min_detection_confidence: float = 0.5,
                 min_tracking_confidence: float = 0.5, smooth_landmarks: bool = True):
        if not MEDIAPIPE_AVAILABLE:
            raise RuntimeError("mediapipe is not installed. Install with: pip install mediapipe")

        import mediapipe as mp

        self.pose = mp.solutions.pose.Pose(
            static_image_mode=False,
            model_complexity=int(model_complexity),
            enable_segmentation=False,
            smooth_landmarks=smooth_landmarks,
            min_detection_confidence=float(min_detection_confidence),
            min_tracking_confidence=float(min_tracking_confidence),
        )

    def name(self) -> str:
        return "mediapipe_pose"

    def estimate(self, image: np.ndarray, timestamp: Optional[float] = None) -> List[Keypoint]:
        results = self.pose.process(image)
        if not results or not results.pose_landmarks:
            return []
        return self.landmarks_to_coco17(results.pose_landmarks, image.shape)

    @classmethod
    def landmarks_to_coco17(cls, landmarks, image_shape) -> List[Keypoint]:
        """
        Convert MediaPipe landmarks to COCO-17 keypoints.

        Args:
            landmarks: MediaPipe pose landmarks
            image_shape: Shape of the image (height, width, channels)

        Returns:
            17 keypoints in pixel coordinates
        """
        height, width = image_shape[:2]
        num_landmarks = len(landmarks.landmark)

        keypoints = []
        for name in COCO17_NAMES:
            idx = cls.MEDIAPIPE_TO_COCO17[name]
            if idx < num_landmarks:
                lm = landmarks.landmark[idx]
                keypoints.append(Keypoint(name, float(lm.x) * width, float(lm.y) * height,
                                          float(lm.visibility)))
            else:
                keypoints.append(Keypoint(name, 0.0, 0.0, 0.0))
        return keypoints

    def close(self) -> None:
        self.pose.close()


def create_estimator(config: Dict) -> PoseEstimator:
    """
    Build the estimator named by the estimator config section.

    Args:
        config: Estimator config ('backend', 'yolo_weights', ...)

    Returns:
        Ready-to-use PoseEstimator
    """
    backend = config.get("backend", "auto")
    if backend not in ESTIMATOR_BACKENDS:
        raise ValueError(f"Unknown estimator backend '{backend}', expected one of {ESTIMATOR_BACKENDS}")

    if backend == "auto":
        backend = "yolo" if YOLO_AVAILABLE else "mediapipe"
        logger.info("Auto-selected estimator backend: %s", backend)

    if backend == "yolo":
        return YoloPoseEstimator(
            weights=config.get("yolo_weights", "yolov8n-pose.pt"),
            conf=config.get("yolo_conf", 0.25),
            device=config.get("device"),
        )

    return MediaPipePoseEstimator(
        model_complexity=config.get("model_complexity", 1),
        min_detection_confidence=config.get("min_detection_confidence", 0.5),
        min_tracking_confidence=config.get("min_tracking_confidence", 0.5),
        smooth_landmarks=config.get("smoothing", True),
    )
