"""
Offline analysis: run the posture pipeline over a recorded video and
summarize how often the back angle was out of range.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
from tqdm import tqdm

from feedback.coordinator import FeedbackCoordinator
from feedback.speech import HeldSpeechSink
from perception.estimators import PoseEstimator, create_estimator
from perception.frame_source import CameraFrameSource, Frame
from posture.geometry import display_size, output_tensor_size, preview_size, resolve_view
from posture.interpreter import PoseInterpreter, Verdict
from .config import DEFAULT_CONFIG, merge_config, validate_config
from .loop import PoseLoop

logger = logging.getLogger(__name__)


def summarize(angles: List[Optional[float]], verdicts: List[Verdict], warnings: int) -> Dict:
    """
    Build the per-video summary.

    Args:
        angles: Back angle per frame (None where unavailable)
        verdicts: Verdict per frame
        warnings: Number of warnings that would have been spoken

    Returns:
        Summary dictionary
    """
    valid = np.array([a for a in angles if a is not None], dtype=np.float64)
    bad = sum(1 for v in verdicts if v is Verdict.BAD)

    return {
        'frames': len(verdicts),
        'frames_with_angle': int(valid.size),
        'bad_frames': bad,
        'bad_ratio': (bad / valid.size) if valid.size else 0.0,
        'min_angle': float(valid.min()) if valid.size else None,
        'mean_angle': float(valid.mean()) if valid.size else None,
        'warnings': warnings,
    }


def analyze_video(video_path: str, config: Optional[Dict] = None,
                  estimator: Optional[PoseEstimator] = None,
                  frames: Optional[CameraFrameSource] = None,
                  output_path: Optional[str] = None) -> Dict:
    """
    Analyze a recorded exercise video.

    Args:
        video_path: Path to the video file
        config: Configuration overrides (see runtime.config)
        estimator: Pre-built estimator; created from config when None
        frames: Pre-built frame source; opened from video_path when None
        output_path: Optional JSON file for the summary

    Returns:
        Summary dictionary
    """
    config = validate_config(merge_config(DEFAULT_CONFIG, config))
    camera = config['camera']
    platform = camera['platform']

    view = resolve_view(platform, camera['facing'], camera['orientation'])
    output_size = output_tensor_size(platform, view, camera['output_tensor_width'])
    preview = preview_size(platform, camera['preview_width'])

    own_estimator = estimator is None
    if own_estimator:
        estimator = create_estimator(config['estimator'])

    # A warning stays in flight until posture recovers, as it would live
    coordinator = FeedbackCoordinator(HeldSpeechSink())
    posture = config['posture']
    interpreter = PoseInterpreter(
        min_score=posture['min_keypoint_score'],
        bad_angle=posture['bad_posture_angle'],
        warning=posture['warning_phrase'],
        coordinator=coordinator,
    )

    angles: List[Optional[float]] = []
    verdicts: List[Verdict] = []
    progress = None

    def on_frame(frame: Frame, keypoints, fps: int):
        result = interpreter.interpret(keypoints, view, output_size, preview)
        angles.append(result.angle)
        verdicts.append(result.verdict)
        progress.update(1)
        progress.set_postfix(angle=f"{result.angle:.1f}" if result.angle is not None else "-")

    try:
        if frames is None:
            frames = CameraFrameSource(video_path)
        frames.configure(output_size, display_size(platform, camera['preview_width'], view),
                         rotation=view.rotation, mirror=view.flip_x)

        progress = tqdm(total=frames.frame_count() or None, desc=Path(str(video_path)).name, unit="frame")
        PoseLoop(frames, estimator, on_frame).start()
    finally:
        if progress is not None:
            progress.close()
        if frames is not None:
            frames.release()
        if own_estimator:
            estimator.close()

    summary = summarize(angles, verdicts, coordinator.warnings_issued)
    summary['video'] = str(video_path)
    summary['estimator'] = estimator.name()
    logger.info("Analyzed %d frames of %s", summary['frames'], video_path)

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(summary, f, indent=2)

    return summary
