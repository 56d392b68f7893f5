"""
Session Aggregator Module

Owns every per-session accumulator (blink detector, motion and asymmetry
samples, vitals) for one fixed-duration recording window, routes each valid
frame to them, and finalizes the rates/averages with warm-up trimming and
fallback defaults.

Pipeline per frame: LandmarkFrame -> blink state machine -> motion sample
(needs previous frame) -> asymmetry sample -> breathing / pulse update ->
remember frame as predecessor.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import config
from facescreen.blink_detector import BlinkDetector
from facescreen.facial_signals import AsymmetryAccumulator, MotionAccumulator
from facescreen.landmark_frame import LandmarkFrame
from facescreen.vitals_estimator import VitalsEstimator, VitalsReading

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregatedSignals:
    """Session-level signals handed to the risk scorer."""
    blink_rate: float
    motion_score: float
    asymmetry: float
    vitals: VitalsReading = field(default_factory=VitalsReading)
    blink_count: int = 0
    frames_processed: int = 0
    motion_samples: int = 0  # before warm-up trim
    asymmetry_samples: int = 0  # before warm-up trim


def _summary(values: List[float], trim: int) -> dict:
    valid = values[trim:]
    if not valid:
        return {"count": 0}
    return {
        "count": len(valid),
        "min": min(valid),
        "max": max(valid),
        "avg": sum(valid) / len(valid),
    }


class SessionAggregator:
    """
    Accumulator state for one screening session.

    Usage:
        agg = SessionAggregator(duration_sec=30)
        for frame in frames:
            agg.add_frame(frame)
        signals = agg.finalize()
    """

    def __init__(
        self,
        duration_sec: Optional[float] = None,
        blink_detector: Optional[BlinkDetector] = None,
        motion: Optional[MotionAccumulator] = None,
        asymmetry: Optional[AsymmetryAccumulator] = None,
        vitals: Optional[VitalsEstimator] = None,
    ):
        self.duration_sec = float(config.SESSION_DURATION_SEC if duration_sec is None else duration_sec)
        self.blink_detector = blink_detector or BlinkDetector()
        self.motion = motion or MotionAccumulator()
        self.asymmetry = asymmetry or AsymmetryAccumulator()
        self.vitals = vitals or VitalsEstimator()
        self.previous_frame: Optional[LandmarkFrame] = None
        self.frames_processed = 0

    def reset(self) -> None:
        """Discard all accumulator state (new session, no carry-over)."""
        self.blink_detector.reset()
        self.motion.reset()
        self.asymmetry.reset()
        self.vitals.reset()
        self.previous_frame = None
        self.frames_processed = 0

    @property
    def blink_count(self) -> int:
        return self.blink_detector.blink_count

    def add_frame(self, frame: LandmarkFrame) -> VitalsReading:
        """
        Route one valid frame to every accumulator.

        Returns:
            The live vitals reading after this frame
        """
        previous = self.previous_frame
        self.blink_detector.update_from_frame(frame)
        self.motion.add(previous, frame)
        self.asymmetry.add(frame)
        reading = self.vitals.update(previous, frame)
        self.previous_frame = frame
        self.frames_processed += 1
        return reading

    def finalize(self) -> AggregatedSignals:
        """
        Compute session-level signals from whatever samples were collected.

        Blink rate uses the configured session duration even on early stop.
        Motion and asymmetry drop the warm-up samples and fall back to their
        healthy baselines when nothing remains. Never raises on short sessions.
        """
        signals = AggregatedSignals(
            blink_rate=self.blink_detector.blink_rate(self.duration_sec),
            motion_score=self.motion.motion_score(),
            asymmetry=self.asymmetry.average(),
            vitals=self.vitals.reading(),
            blink_count=self.blink_count,
            frames_processed=self.frames_processed,
            motion_samples=len(self.motion.samples),
            asymmetry_samples=len(self.asymmetry.samples),
        )
        log = logger.info if config.SCREENING_DIAGNOSTIC_LOGGING else logger.debug
        log(
            "session_signals blinks=%d blink_rate=%.1f motion=%s asymmetry=%s",
            signals.blink_count,
            signals.blink_rate,
            _summary(self.motion.samples, self.motion.warmup_trim),
            _summary(self.asymmetry.samples, self.asymmetry.warmup_trim),
        )
        return signals
