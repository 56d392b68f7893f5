#!/usr/bin/env python3
"""
Offline screening runner.

Reads a webcam or a video file with OpenCV, extracts face-mesh landmarks with
MediaPipe, and runs one ScreeningSession over it. The countdown follows the
capture timestamps (one tick per elapsed second of video), so a file gives the
same result however fast it is processed. If the source ends before the
session duration, the session is stopped early with whatever was collected.

Usage: python screen_video.py [--file PATH] [--duration SEC] [--output FILE]
"""

import argparse
import logging
import sys

import config
from facescreen.landmark_frame import InvalidLandmarkFrame
from facescreen.mediapipe_detector import MediaPipeFaceDetector
from facescreen.video_source_handler import VideoSourceHandler, VideoSourceType
from screening_session import ScreeningSession, SessionResult, SessionStatus
from services.result_channel import serialize_result

logger = logging.getLogger(__name__)


def run_screening(handler, detector, session: ScreeningSession) -> SessionResult:
    """
    Feed frames from handler through detector into session until it finalizes
    or the source runs dry.
    """
    session.start(start_timer=False)
    interval_ms = session.timer_interval_sec * 1000.0
    first_ms = None
    next_tick_ms = None

    while session.status == SessionStatus.RECORDING:
        ret, frame, timestamp_ms = handler.read_frame()
        if not ret:
            logger.info("Video source ended before the session duration; stopping early")
            break
        if first_ms is None:
            first_ms = timestamp_ms
            next_tick_ms = first_ms + interval_ms
        try:
            session.on_frame(detector.primary_landmarks(frame), timestamp_ms)
        except InvalidLandmarkFrame as e:
            logger.warning("Skipping frame: %s", e)
        while session.status == SessionStatus.RECORDING and timestamp_ms >= next_tick_ms:
            session.tick()
            next_tick_ms += interval_ms

    return session.finalize()


def print_result(result: SessionResult) -> None:
    print("=" * 60)
    print(f"Risk: {result.risk_percentage}% - {result.level.value}")
    print("=" * 60)
    print(f"  Blink rate:     {result.breakdown.blink_rate:.1f}/min  ({result.points.blink}/40 points)")
    print(f"  Motion score:   {result.breakdown.motion_score:.2f}  ({result.points.motion}/35 points)")
    print(f"  Asymmetry:      {result.breakdown.asymmetry:.4f}  ({result.points.asymmetry}/25 points)")
    breathing = result.vitals.breathing_rate
    heart = result.vitals.heart_rate
    print(f"  Breathing:      {'--' if breathing is None else f'{breathing:.1f}'} /min (estimate)")
    print(f"  Heart rate:     {'--' if heart is None else f'{heart:.0f}'} bpm (unvalidated proxy)")
    print()
    print("Screening aid only; not a diagnosis.")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Run a facial motor-sign screening session over a webcam or video file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python screen_video.py
  python screen_video.py --file recording.mp4
  python screen_video.py --file recording.mp4 --output result.json
        """,
    )
    parser.add_argument("--file", "-f", default=None, help="Video file (default: webcam)")
    parser.add_argument(
        "--duration", "-d",
        type=float,
        default=config.SESSION_DURATION_SEC,
        help=f"Session duration in seconds (default: {config.SESSION_DURATION_SEC:g})",
    )
    parser.add_argument("--output", "-o", default=None, help="Write the serialized result to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else config.LOG_LEVEL)

    handler = VideoSourceHandler()
    source_type = VideoSourceType.FILE if args.file else VideoSourceType.WEBCAM
    if not handler.initialize_source(source_type, args.file):
        print(f"Error: Failed to open video source ({args.file or 'webcam'})", file=sys.stderr)
        return 1

    detector = MediaPipeFaceDetector()
    session = ScreeningSession(duration_sec=args.duration)
    try:
        result = run_screening(handler, detector, session)
    finally:
        detector.close()
        handler.release()

    print_result(result)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(serialize_result(result))
        print(f"Result written to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
