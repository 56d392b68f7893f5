"""
Risk Scorer Module

This module maps the three aggregated facial signals to a bounded risk
percentage (0-100), a level (Low / Medium / High) and a color token. It is a
pure, stateless function of its inputs: identical inputs always give an
identical result.

The scoring considers:
- Blink rate (per minute): low blinking is the strongest marker (max 40 points)
  Healthy: 12-20/min during conversation; Parkinson's: roughly 3-10/min.
- Motion score (scaled rigidity proxy): low expressiveness, "masked face"
  (max 35 points). Healthy: about 1.5-4.0; reduced: about 0.3-1.0.
- Asymmetry (raw left/right offset): one-sided involvement (max 25 points).
  Slight asymmetry (0.01-0.03) is normal.

Bucket maxima sum to 100, so the point total is the percentage directly.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple

import config

# (lower bound inclusive, points) checked top-down; anything below the last
# bound gets the *_FLOOR_POINTS value.
BLINK_RATE_BUCKETS: Tuple[Tuple[float, int], ...] = (
    (17.0, 0),   # high blink rate - very healthy
    (13.0, 0),   # normal range
    (10.0, 12),  # slightly low - borderline
    (7.0, 28),   # low - Parkinson's range
    (4.0, 36),   # very low
)
BLINK_FLOOR_POINTS = 40

MOTION_SCORE_BUCKETS: Tuple[Tuple[float, int], ...] = (
    (4.0, 0),   # very expressive
    (2.5, 0),   # expressive
    (1.5, 5),   # slightly reduced
    (1.0, 15),  # reduced - borderline
    (0.6, 26),  # low motion
)
MOTION_FLOOR_POINTS = 35

# (upper bound exclusive, points) checked top-down; anything at or above the
# last bound gets ASYMMETRY_CEILING_POINTS.
ASYMMETRY_BUCKETS: Tuple[Tuple[float, int], ...] = (
    (0.035, 0),  # normal range
    (0.05, 8),   # slightly elevated
    (0.07, 16),  # moderate
)
ASYMMETRY_CEILING_POINTS = 25


class RiskLevel(Enum):
    """Risk category with its fixed display color."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def color(self) -> str:
        return _LEVEL_COLORS[self]

    @classmethod
    def from_score(
        cls,
        score: float,
        medium_threshold: Optional[float] = None,
        high_threshold: Optional[float] = None,
    ) -> 'RiskLevel':
        """
        Determine risk level from a total score.

        Args:
            score: Risk percentage (0-100)
            medium_threshold: Lower bound for Medium (default config.RISK_MEDIUM_THRESHOLD)
            high_threshold: Lower bound for High (default config.RISK_HIGH_THRESHOLD)
        """
        if medium_threshold is None:
            medium_threshold = config.RISK_MEDIUM_THRESHOLD
        if high_threshold is None:
            high_threshold = config.RISK_HIGH_THRESHOLD
        if score >= high_threshold:
            return cls.HIGH
        elif score >= medium_threshold:
            return cls.MEDIUM
        else:
            return cls.LOW


_LEVEL_COLORS = {
    RiskLevel.LOW: "#4CAF50",
    RiskLevel.MEDIUM: "#F28C38",
    RiskLevel.HIGH: "#EF4444",
}


@dataclass(frozen=True)
class SignalBreakdown:
    """The scorer's inputs, carried unchanged for display."""
    blink_rate: float  # blinks per minute
    motion_score: float  # scaled rigidity proxy
    asymmetry: float  # raw left/right offset


@dataclass(frozen=True)
class PointsBreakdown:
    """Points contributed by each signal."""
    blink: int = 0  # 0-40
    motion: int = 0  # 0-35
    asymmetry: int = 0  # 0-25

    @property
    def total(self) -> int:
        return self.blink + self.motion + self.asymmetry


@dataclass(frozen=True)
class RiskAssessment:
    """Output of RiskScorer.score()."""
    percentage: int
    level: RiskLevel
    breakdown: SignalBreakdown
    points: PointsBreakdown = field(default_factory=PointsBreakdown)

    @property
    def color(self) -> str:
        return self.level.color


def _points_at_least(value: float, buckets: Sequence[Tuple[float, int]], floor_points: int) -> int:
    for bound, points in buckets:
        if value >= bound:
            return points
    return floor_points


def _points_below(value: float, buckets: Sequence[Tuple[float, int]], ceiling_points: int) -> int:
    for bound, points in buckets:
        if value < bound:
            return points
    return ceiling_points


def blink_points(blink_rate: float) -> int:
    """Non-increasing in blink_rate; 0-40."""
    return _points_at_least(blink_rate, BLINK_RATE_BUCKETS, BLINK_FLOOR_POINTS)


def motion_points(motion_score: float) -> int:
    """Non-increasing in motion_score; 0-35."""
    return _points_at_least(motion_score, MOTION_SCORE_BUCKETS, MOTION_FLOOR_POINTS)


def asymmetry_points(asymmetry: float) -> int:
    """Non-decreasing in asymmetry; 0-25."""
    return _points_below(asymmetry, ASYMMETRY_BUCKETS, ASYMMETRY_CEILING_POINTS)


class RiskScorer:
    """
    Deterministic weighted rule over (blink rate, motion score, asymmetry).

    Usage:
        scorer = RiskScorer()
        assessment = scorer.score(blink_rate=8, motion_score=0.8, asymmetry=0.045)
        assessment.percentage  # 62
        assessment.level       # RiskLevel.HIGH
    """

    def __init__(self, medium_threshold: Optional[float] = None, high_threshold: Optional[float] = None):
        self.medium_threshold = float(
            config.RISK_MEDIUM_THRESHOLD if medium_threshold is None else medium_threshold
        )
        self.high_threshold = float(config.RISK_HIGH_THRESHOLD if high_threshold is None else high_threshold)

    def score(self, blink_rate: float, motion_score: float, asymmetry: float) -> RiskAssessment:
        """
        Score one set of aggregated signals.

        Non-finite inputs fall through to the highest-risk bucket of that
        signal, so the total stays within [0, 100].
        """
        points = PointsBreakdown(
            blink=blink_points(blink_rate),
            motion=motion_points(motion_score),
            asymmetry=asymmetry_points(asymmetry),
        )
        # Round half up; the bucket points are integers so this is exact.
        percentage = int(math.floor(points.total + 0.5))
        level = RiskLevel.from_score(percentage, self.medium_threshold, self.high_threshold)
        return RiskAssessment(
            percentage=percentage,
            level=level,
            breakdown=SignalBreakdown(
                blink_rate=blink_rate,
                motion_score=motion_score,
                asymmetry=asymmetry,
            ),
            points=points,
        )
