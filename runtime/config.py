"""
Application configuration: default sections merged with a JSON file and
command-line overrides.
"""

import copy
import json
from pathlib import Path
from typing import Dict, Optional

from perception.estimators import ESTIMATOR_BACKENDS
from posture.geometry import FACINGS, ORIENTATIONS, PLATFORMS

DEFAULT_CONFIG = {
    'camera': {
        'source': 0,                 # camera index or video path
        'platform': 'desktop',
        'facing': 'front',
        'orientation': 'landscape_left',
        'output_tensor_width': 180,
        'preview_width': 480,
    },
    'estimator': {
        'backend': 'auto',
        'yolo_weights': 'yolov8n-pose.pt',
        'yolo_conf': 0.25,
        'device': None,
        'model_complexity': 1,
        'min_detection_confidence': 0.5,
        'min_tracking_confidence': 0.5,
        'smoothing': True,
    },
    'posture': {
        'min_keypoint_score': 0.3,
        'bad_posture_angle': 160.0,
        'warning_phrase': 'Please do not bend your back',
    },
    'speech': {
        'enabled': True,
        'rate': 185,
        'volume': 1.0,
        'voice': '',
    },
    'display': {
        'window_name': 'Posture Guard',
        'draw_skeleton': False,
        'show_fps': True,
    },
}


def merge_config(base: Dict, overrides: Optional[Dict]) -> Dict:
    """
    Deep-merge overrides into a copy of base. None values in overrides are
    skipped so unset CLI flags keep the configured value.
    """
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate_config(config: Dict) -> Dict:
    """Raise ValueError on values the app cannot run with."""
    camera = config['camera']
    if camera['platform'] not in PLATFORMS:
        raise ValueError(f"camera.platform must be one of {PLATFORMS}, got {camera['platform']!r}")
    if camera['facing'] not in FACINGS:
        raise ValueError(f"camera.facing must be one of {FACINGS}, got {camera['facing']!r}")
    if camera['orientation'] not in ORIENTATIONS:
        raise ValueError(f"camera.orientation must be one of {ORIENTATIONS}, got {camera['orientation']!r}")
    if int(camera['output_tensor_width']) <= 0 or int(camera['preview_width']) <= 0:
        raise ValueError("camera sizes must be positive")

    if config['estimator']['backend'] not in ESTIMATOR_BACKENDS:
        raise ValueError(f"estimator.backend must be one of {ESTIMATOR_BACKENDS}")

    posture = config['posture']
    if not 0.0 <= float(posture['min_keypoint_score']) < 1.0:
        raise ValueError("posture.min_keypoint_score must be in [0, 1)")
    if not 0.0 < float(posture['bad_posture_angle']) <= 180.0:
        raise ValueError("posture.bad_posture_angle must be in (0, 180]")

    if not 0.0 <= float(config['speech']['volume']) <= 1.0:
        raise ValueError("speech.volume must be in [0, 1]")
    return config


def load_config(path: Optional[str] = None, overrides: Optional[Dict] = None) -> Dict:
    """
    Load configuration.

    Args:
        path: JSON file with any subset of the default sections
        overrides: Values applied last (e.g. from the command line)

    Returns:
        Validated configuration dictionary
    """
    config = DEFAULT_CONFIG
    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(config_path) as f:
            user_config = json.load(f)
        if not isinstance(user_config, dict):
            raise ValueError(f"Config file {config_path} must contain a JSON object")
        config = merge_config(config, user_config)

    config = merge_config(config, overrides)
    return validate_config(config)
