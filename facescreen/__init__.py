"""
Signal-processing core for facial motor-sign screening.

This package contains the per-frame signal extractors (blink, motion,
asymmetry, vitals), the session aggregator and the deterministic risk scorer,
plus the landmark-source adapters used by the offline video runner.
"""

from .landmark_frame import LandmarkFrame, InvalidLandmarkFrame, normalize_frame
from .blink_detector import BlinkDetector
from .facial_signals import MotionAccumulator, AsymmetryAccumulator
from .vitals_estimator import VitalsEstimator, VitalsReading
from .session_aggregator import SessionAggregator, AggregatedSignals
from .risk_scorer import RiskScorer, RiskLevel, RiskAssessment

__all__ = [
    'LandmarkFrame',
    'InvalidLandmarkFrame',
    'normalize_frame',
    'BlinkDetector',
    'MotionAccumulator',
    'AsymmetryAccumulator',
    'VitalsEstimator',
    'VitalsReading',
    'SessionAggregator',
    'AggregatedSignals',
    'RiskScorer',
    'RiskLevel',
    'RiskAssessment',
]
