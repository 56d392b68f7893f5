"""
Vitals Estimator Module (best-effort, non-diagnostic)

Breathing and heart-rate *proxies* derived from incidental facial micro-motion.
Neither is a clinical measurement; both are optional in the session result and
stay None until their preconditions are met ("not yet determined").

Breathing:
    Track the nose-tip vertical position. A frame-to-frame change larger than
    the amplitude threshold (in scaled units) marks an inhale/exhale extremum.
    If more than min_interval_ms passed since the last counted extremum, the
    rate is 60000 / elapsed and replaces the previous estimate (latest wins,
    no smoothing).

Heart rate:
    Each frame the summed displacement of the pulse landmarks is pushed into a
    fixed-capacity sliding window. Once the window is full, samples above
    mean * peak_factor are counted as peaks and mapped to
    clamp(peaks * multiplier, rate_min, rate_max). The multiplier and clamp
    have no clinical derivation; the numbers are kept for compatibility only.
"""

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Optional

import config
from facescreen.facial_signals import total_displacement
from facescreen.landmark_frame import PULSE_LANDMARKS, LandmarkFrame


@dataclass(frozen=True)
class VitalsReading:
    """Latest breathing / heart-rate estimates; None means undetermined."""
    breathing_rate: Optional[float] = None  # breaths per minute
    heart_rate: Optional[float] = None  # beats per minute (unvalidated proxy)

    def to_dict(self) -> dict:
        return {"breathingRate": self.breathing_rate, "heartRate": self.heart_rate}


def count_peaks(window: Iterable[float], peak_factor: float) -> int:
    """Number of samples strictly above mean(window) * peak_factor."""
    values = list(window)
    if not values:
        return 0
    threshold = (sum(values) / len(values)) * peak_factor
    return sum(1 for v in values if v > threshold)


def heart_rate_from_peaks(peaks: int, multiplier: float, rate_min: float, rate_max: float) -> float:
    """Map a peak count to a clamped heart-rate proxy."""
    return float(min(rate_max, max(rate_min, peaks * multiplier)))


class BreathingEstimator:
    """Inter-extremum timing on the nose-tip vertical position."""

    def __init__(
        self,
        amplitude_threshold: Optional[float] = None,
        amplitude_scale: Optional[float] = None,
        min_interval_ms: Optional[float] = None,
    ):
        self.amplitude_threshold = float(
            config.BREATH_AMPLITUDE_THRESHOLD if amplitude_threshold is None else amplitude_threshold
        )
        self.amplitude_scale = float(config.BREATH_AMPLITUDE_SCALE if amplitude_scale is None else amplitude_scale)
        self.min_interval_ms = float(config.BREATH_MIN_INTERVAL_MS if min_interval_ms is None else min_interval_ms)
        self.reset()

    def reset(self) -> None:
        self.previous_nose_y: Optional[float] = None
        self.previous_breath_ms: Optional[float] = None
        self.rate: Optional[float] = None

    def update(self, nose_y: float, timestamp_ms: float) -> Optional[float]:
        """
        Feed one nose-tip sample.

        Returns:
            The current breathing-rate estimate (None until the first valid interval)
        """
        if self.previous_nose_y is None:
            self.previous_nose_y = nose_y
            self.previous_breath_ms = timestamp_ms
            return self.rate

        dy = (nose_y - self.previous_nose_y) * self.amplitude_scale
        if abs(dy) > self.amplitude_threshold:
            elapsed = timestamp_ms - self.previous_breath_ms
            if elapsed > self.min_interval_ms:
                self.rate = 60000.0 / elapsed
                self.previous_breath_ms = timestamp_ms
        self.previous_nose_y = nose_y
        return self.rate


class HeartRateEstimator:
    """Peak density over a sliding window of pulse-landmark micro-motion."""

    def __init__(
        self,
        window_size: Optional[int] = None,
        peak_factor: Optional[float] = None,
        multiplier: Optional[float] = None,
        rate_min: Optional[float] = None,
        rate_max: Optional[float] = None,
    ):
        self.window_size = int(config.HEART_WINDOW_SIZE if window_size is None else window_size)
        self.peak_factor = float(config.HEART_PEAK_FACTOR if peak_factor is None else peak_factor)
        self.multiplier = float(config.HEART_RATE_MULTIPLIER if multiplier is None else multiplier)
        self.rate_min = float(config.HEART_RATE_MIN if rate_min is None else rate_min)
        self.rate_max = float(config.HEART_RATE_MAX if rate_max is None else rate_max)
        self.window: deque = deque(maxlen=self.window_size)
        self.rate: Optional[float] = None

    def reset(self) -> None:
        self.window.clear()
        self.rate = None

    @property
    def is_full(self) -> bool:
        return len(self.window) == self.window_size

    def update(self, pulse: float) -> Optional[float]:
        """Push one pulse sample; recompute the estimate once the window is full."""
        self.window.append(pulse)
        if self.is_full:
            peaks = count_peaks(self.window, self.peak_factor)
            self.rate = heart_rate_from_peaks(peaks, self.multiplier, self.rate_min, self.rate_max)
        return self.rate


class VitalsEstimator:
    """
    Runs both proxies frame by frame.

    Usage:
        vitals = VitalsEstimator()
        vitals.update(previous_frame, frame)
        reading = vitals.reading()
    """

    def __init__(
        self,
        breathing: Optional[BreathingEstimator] = None,
        heart: Optional[HeartRateEstimator] = None,
    ):
        self.breathing = breathing or BreathingEstimator()
        self.heart = heart or HeartRateEstimator()

    def reset(self) -> None:
        self.breathing.reset()
        self.heart.reset()

    def update(self, previous: Optional[LandmarkFrame], current: LandmarkFrame) -> VitalsReading:
        self.breathing.update(current.nose_y(), current.timestamp_ms)
        if previous is not None:
            self.heart.update(total_displacement(previous, current, PULSE_LANDMARKS))
        return self.reading()

    def reading(self) -> VitalsReading:
        return VitalsReading(breathing_rate=self.breathing.rate, heart_rate=self.heart.rate)
