"""
Blink Detector Module

Counts blinks from per-frame eyelid gaps with a debounced, two-eye edge
trigger. An eye is closed when its gap is below face_height * threshold_factor.
A blink is counted only when both eyes go from open to closed on the same
frame; the detector then waits until the eyes are no longer both closed before
it can count again, so one long closure is one blink and single-eye twitches
(winks, tracking noise) are ignored.

Reduced spontaneous blinking (roughly 3-10/min vs 12-20/min) is the strongest
facial marker used by the risk scorer.
"""

from typing import Optional

import config
from facescreen.landmark_frame import LandmarkFrame


class BlinkDetector:
    """
    Eyelid-gap state machine.

    Usage:
        detector = BlinkDetector()
        for frame in frames:
            detector.update_from_frame(frame)
        rate = detector.blink_rate(30.0)
    """

    def __init__(self, threshold_factor: Optional[float] = None):
        if threshold_factor is None:
            threshold_factor = config.BLINK_THRESHOLD_FACTOR
        self.threshold_factor = float(threshold_factor)
        self.left_eye_open = True
        self.right_eye_open = True
        self.blink_count = 0

    def reset(self) -> None:
        self.left_eye_open = True
        self.right_eye_open = True
        self.blink_count = 0

    def update(self, left_gap: float, right_gap: float, face_height: float) -> bool:
        """
        Feed one frame of eyelid measurements.

        Args:
            left_gap: Vertical distance between left upper and lower eyelid
            right_gap: Vertical distance between right upper and lower eyelid
            face_height: Face-height reference distance (same units)

        Returns:
            True if this frame completed a new blink
        """
        threshold = face_height * self.threshold_factor
        both_closed = left_gap < threshold and right_gap < threshold

        if self.left_eye_open and self.right_eye_open and both_closed:
            self.blink_count += 1
            self.left_eye_open = False
            self.right_eye_open = False
            return True
        if not self.left_eye_open and not self.right_eye_open and not both_closed:
            self.left_eye_open = True
            self.right_eye_open = True
        return False

    def update_from_frame(self, frame: LandmarkFrame) -> bool:
        left_gap, right_gap = frame.eyelid_gaps()
        return self.update(left_gap, right_gap, frame.face_height())

    def blink_rate(self, duration_sec: float) -> float:
        """Blinks per minute over a session of duration_sec seconds."""
        if duration_sec <= 0:
            return 0.0
        return self.blink_count * 60.0 / duration_sec
