"""
Facial Signal Accumulators

Per-frame sampling of the two expression signals used by the risk scorer:

- Motion (rigidity proxy): mean planar displacement of the expressive
  landmarks (mouth corners, lips, eyebrows, cheeks) between consecutive
  frames. Reduced motion is the "masked face" (hypomimia) sign.
- Asymmetry: mean absolute vertical offset across three left/right landmark
  pairs (mouth corners, eyebrows, lower cheeks). Early motor involvement is
  often one-sided.

Each accumulator owns an append-only list of samples. At finalize the first
`warmup_trim` samples are discarded and the rest averaged; when nothing is
left a healthy baseline is returned instead.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

import config
from facescreen.landmark_frame import ASYMMETRY_PAIRS, EXPRESSIVE_LANDMARKS, LandmarkFrame


def trimmed_mean(samples: Sequence[float], trim: int, fallback: float) -> float:
    """
    Mean of samples after dropping the first `trim`; fallback if none remain.
    """
    valid = samples[trim:] if trim > 0 else samples
    if len(valid) < 1:
        return float(fallback)
    return float(sum(valid) / len(valid))


def mean_displacement(previous: LandmarkFrame, current: LandmarkFrame, indices: Sequence[int]) -> float:
    """Average Euclidean (x, y) displacement of indices between two frames."""
    delta = current.xy(indices) - previous.xy(indices)
    return float(np.mean(np.sqrt(np.sum(delta * delta, axis=1))))


def total_displacement(previous: LandmarkFrame, current: LandmarkFrame, indices: Sequence[int]) -> float:
    """Summed Euclidean (x, y) displacement of indices between two frames."""
    delta = current.xy(indices) - previous.xy(indices)
    return float(np.sum(np.sqrt(np.sum(delta * delta, axis=1))))


class MotionAccumulator:
    """
    Collects one motion sample per frame that has a predecessor.

    motion_score() = trimmed mean * scale. With no valid sample the raw
    fallback (healthy baseline, before scaling) is scaled instead.
    """

    def __init__(
        self,
        warmup_trim: Optional[int] = None,
        scale: Optional[float] = None,
        fallback_raw: Optional[float] = None,
        indices: Tuple[int, ...] = EXPRESSIVE_LANDMARKS,
    ):
        self.warmup_trim = int(config.WARMUP_TRIM_SAMPLES if warmup_trim is None else warmup_trim)
        self.scale = float(config.MOTION_SCALE if scale is None else scale)
        self.fallback_raw = float(config.MOTION_FALLBACK_RAW if fallback_raw is None else fallback_raw)
        self.indices = tuple(indices)
        self.samples: List[float] = []

    def reset(self) -> None:
        self.samples = []

    def add(self, previous: Optional[LandmarkFrame], current: LandmarkFrame) -> Optional[float]:
        """Record the displacement sample for current; None on the first frame."""
        if previous is None:
            return None
        sample = mean_displacement(previous, current, self.indices)
        self.samples.append(sample)
        return sample

    def average_raw(self) -> float:
        return trimmed_mean(self.samples, self.warmup_trim, self.fallback_raw)

    def motion_score(self) -> float:
        return self.average_raw() * self.scale


class AsymmetryAccumulator:
    """Collects one left/right vertical-offset sample per frame."""

    def __init__(
        self,
        warmup_trim: Optional[int] = None,
        fallback: Optional[float] = None,
        pairs: Tuple[Tuple[int, int], ...] = ASYMMETRY_PAIRS,
    ):
        self.warmup_trim = int(config.WARMUP_TRIM_SAMPLES if warmup_trim is None else warmup_trim)
        self.fallback = float(config.ASYMMETRY_FALLBACK if fallback is None else fallback)
        self.pairs = tuple(pairs)
        self.samples: List[float] = []

    def reset(self) -> None:
        self.samples = []

    def add(self, frame: LandmarkFrame) -> float:
        diffs = [abs(frame.y(left) - frame.y(right)) for left, right in self.pairs]
        sample = sum(diffs) / len(diffs)
        self.samples.append(sample)
        return sample

    def average(self) -> float:
        return trimmed_mean(self.samples, self.warmup_trim, self.fallback)
