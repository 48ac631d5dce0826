"""
Main Entry Point for Posture Guard
Live back-angle tracking with spoken warnings, or offline analysis of a recording
"""

import argparse
import logging
import sys
from pathlib import Path

from runtime.config import load_config


def build_overrides(args) -> dict:
    """Turn command-line flags into config overrides (unset flags stay None)."""
    source = args.camera
    if args.mode == 'analyze':
        source = args.video
    return {
        'camera': {
            'source': source,
            'platform': args.platform,
            'facing': args.facing,
            'orientation': args.orientation,
        },
        'estimator': {
            'backend': args.estimator,
            'yolo_weights': args.weights,
            'device': args.device,
        },
        'posture': {
            'bad_posture_angle': args.threshold,
        },
        'speech': {
            'enabled': False if args.no_speech else None,
        },
        'display': {
            'draw_skeleton': True if args.skeleton else None,
        },
    }


def main(argv=None):
    """Main entry point with command-line interface."""
    parser = argparse.ArgumentParser(
        description='Posture Guard - real-time back angle feedback from a camera feed',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Live tracking with the default webcam
  python main.py --mode live

  # Back camera, MediaPipe backend, draw skeleton lines
  python main.py --mode live --facing back --estimator mediapipe --skeleton

  # Analyze a recorded set and save a JSON summary
  python main.py --mode analyze --video data/squats.mp4 --output data/squats.json

Keys (live mode): q/Esc quit, c switch camera facing, o rotate orientation
        """
    )

    # Mode selection
    parser.add_argument(
        '--mode',
        type=str,
        default='live',
        choices=['live', 'analyze'],
        help='Operation mode (default: live)'
    )
    parser.add_argument('--config', type=str,
                        help='JSON config file')
    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')

    # Camera arguments
    parser.add_argument('--camera', type=int,
                        help='Camera index (default: 0)')
    parser.add_argument('--platform', type=str, choices=['desktop', 'android', 'ios'],
                        help='Platform rules for mirroring and rotation (default: desktop)')
    parser.add_argument('--facing', type=str, choices=['front', 'back'],
                        help='Camera facing (default: front)')
    parser.add_argument('--orientation', type=str,
                        choices=['portrait_up', 'portrait_down', 'landscape_left', 'landscape_right'],
                        help='Device orientation (default: landscape_left)')

    # Estimator arguments
    parser.add_argument('--estimator', type=str, choices=['auto', 'yolo', 'mediapipe'],
                        help='Pose estimator backend (default: auto)')
    parser.add_argument('--weights', type=str,
                        help='YOLO pose weights (default: yolov8n-pose.pt)')
    parser.add_argument('--device', type=str,
                        help='Torch device for YOLO, e.g. cpu or cuda')

    # Feedback arguments
    parser.add_argument('--threshold', type=float,
                        help='Bad posture angle in degrees (default: 160)')
    parser.add_argument('--no-speech', action='store_true',
                        help='Disable spoken warnings')
    parser.add_argument('--skeleton', action='store_true',
                        help='Draw skeleton lines between keypoints')

    # Analysis arguments
    parser.add_argument('--video', type=str,
                        help='Video file for analyze mode')
    parser.add_argument('--output', type=str,
                        help='JSON summary path for analyze mode')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if args.mode == 'analyze' and not args.video:
        print("Error: --video required for analyze mode")
        sys.exit(1)
    if args.mode == 'analyze' and not Path(args.video).exists():
        print(f"Error: Video not found: {args.video}")
        sys.exit(1)

    config = load_config(args.config, build_overrides(args))

    if args.mode == 'live':
        print("\n" + "="*60)
        print("MODE: LIVE")
        print("="*60 + "\n")

        from runtime.app import PostureApp

        app = PostureApp(config)
        frames = app.run()
        print(f"\n✓ Processed {frames} frames")

    elif args.mode == 'analyze':
        print("\n" + "="*60)
        print("MODE: ANALYZE")
        print("="*60 + "\n")

        from runtime.analysis import analyze_video

        summary = analyze_video(args.video, config, output_path=args.output)

        print(f"\n✓ Frames: {summary['frames']} ({summary['frames_with_angle']} with a back angle)")
        print(f"✓ Bad posture frames: {summary['bad_frames']} ({summary['bad_ratio']*100:.1f}%)")
        if summary['min_angle'] is not None:
            print(f"✓ Back angle min/mean: {summary['min_angle']:.2f}° / {summary['mean_angle']:.2f}°")
        print(f"✓ Warnings: {summary['warnings']}")
        if args.output:
            print(f"✓ Saved to: {args.output}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nInterrupted by user. Exiting...")
        sys.exit(0)
    except Exception as e:
        print(f"\n\nError: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
