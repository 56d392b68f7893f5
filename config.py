"""
=============================================================================
CONFIGURATION FOR FACIAL MOTOR-SIGN SCREENING (config.py)
=============================================================================

WHAT THIS FILE DOES (in plain language):
----------------------------------------
This file holds ALL tunable settings for the screening engine in one place.
Other modules read their defaults from here; every value can be overridden
from the environment (e.g. your .env file or system variables) so a host can
change the session length or a threshold without touching code.

MAIN GROUPS OF SETTINGS:
------------------------
  1. Session       : Recording duration and the 1 Hz countdown timer.
  2. Blink         : Eyelid-gap threshold relative to face height.
  3. Motion/Asym.  : Warm-up trim, motion scaling and fallback baselines.
  4. Vitals        : Breathing and heart-rate proxy constants (best-effort).
  5. Risk          : Level cut-offs for Low / Medium / High.
  6. Face detection: MediaPipe confidence used by the offline video runner.
  7. Server        : Host, port, and debug mode for the web server.

HOW VALUES ARE CHOSEN:
---------------------
  - Environment variables (e.g. SESSION_DURATION_SEC) override everything.
  - If an env var is not set, the documented default below is used.
  - Component constructors also accept keyword overrides per instance.
=============================================================================
"""

import os


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


def _env_int(name: str, default: str) -> int:
    return int(os.getenv(name, default))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


# ============================================================================
# SESSION (fixed-duration recording window)
# ============================================================================
# A screening session records for this many seconds; a countdown timer ticks
# once per TIMER_INTERVAL_SEC and finalizes the session when it reaches zero.
# ----------------------------------------------------------------------------
SESSION_DURATION_SEC: float = _env_float("SESSION_DURATION_SEC", "30")
TIMER_INTERVAL_SEC: float = _env_float("TIMER_INTERVAL_SEC", "1")

# ============================================================================
# BLINK DETECTION
# ============================================================================
# An eye counts as closed when its eyelid gap is below face height times this
# factor. A blink is counted only when both eyes close together.
# ----------------------------------------------------------------------------
BLINK_THRESHOLD_FACTOR: float = _env_float("BLINK_THRESHOLD_FACTOR", "0.015")

# ============================================================================
# MOTION (facial rigidity) AND ASYMMETRY
# ============================================================================
# The first WARMUP_TRIM_SAMPLES samples of each sequence are dropped at
# finalize (detector start-up noise). Averaged motion is multiplied by
# MOTION_SCALE to get the motion score. When nothing is left after trimming,
# the healthy baselines below are used instead of biasing toward high risk.
# ----------------------------------------------------------------------------
WARMUP_TRIM_SAMPLES: int = _env_int("WARMUP_TRIM_SAMPLES", "10")
MOTION_SCALE: float = _env_float("MOTION_SCALE", "1000")
# Raw units (before MOTION_SCALE is applied).
MOTION_FALLBACK_RAW: float = _env_float("MOTION_FALLBACK_RAW", "1.5")
ASYMMETRY_FALLBACK: float = _env_float("ASYMMETRY_FALLBACK", "0.02")

# ============================================================================
# VITALS (best-effort proxies, NOT clinical measurements)
# ============================================================================
# Breathing: nose-tip vertical movement (scaled by BREATH_AMPLITUDE_SCALE)
# above BREATH_AMPLITUDE_THRESHOLD marks an extremum; extrema closer than
# BREATH_MIN_INTERVAL_MS are ignored (caps the estimate at 50/min).
# ----------------------------------------------------------------------------
BREATH_AMPLITUDE_THRESHOLD: float = _env_float("BREATH_AMPLITUDE_THRESHOLD", "0.6")
BREATH_AMPLITUDE_SCALE: float = _env_float("BREATH_AMPLITUDE_SCALE", "1000")
BREATH_MIN_INTERVAL_MS: float = _env_float("BREATH_MIN_INTERVAL_MS", "1200")

# Heart rate: sliding window of per-frame micro-motion; samples above
# mean * HEART_PEAK_FACTOR are peaks; rate = peaks * HEART_RATE_MULTIPLIER,
# clamped to [HEART_RATE_MIN, HEART_RATE_MAX]. Unvalidated heuristic.
# ----------------------------------------------------------------------------
HEART_WINDOW_SIZE: int = _env_int("HEART_WINDOW_SIZE", "45")
HEART_PEAK_FACTOR: float = _env_float("HEART_PEAK_FACTOR", "1.15")
HEART_RATE_MULTIPLIER: float = _env_float("HEART_RATE_MULTIPLIER", "4")
HEART_RATE_MIN: float = _env_float("HEART_RATE_MIN", "55")
HEART_RATE_MAX: float = _env_float("HEART_RATE_MAX", "120")

# ============================================================================
# RISK LEVELS
# ============================================================================
# total >= RISK_HIGH_THRESHOLD -> High; >= RISK_MEDIUM_THRESHOLD -> Medium.
# ----------------------------------------------------------------------------
RISK_MEDIUM_THRESHOLD: float = _env_float("RISK_MEDIUM_THRESHOLD", "20")
RISK_HIGH_THRESHOLD: float = _env_float("RISK_HIGH_THRESHOLD", "45")

# ============================================================================
# Diagnostic logging (off by default)
# ============================================================================
# When True, the finalize path logs the raw signal summary and the points
# breakdown at INFO instead of DEBUG.
SCREENING_DIAGNOSTIC_LOGGING: bool = _env_bool("SCREENING_DIAGNOSTIC_LOGGING", "false")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# ============================================================================
# FACE DETECTION (offline video runner only)
# ============================================================================
# Minimum confidence for the MediaPipe face mesh (0.01-0.99).
MIN_FACE_CONFIDENCE: float = _env_float("MIN_FACE_CONFIDENCE", "0.5")

# ============================================================================
# Application Configuration
# ============================================================================
FLASK_PORT: int = _env_int("FLASK_PORT", "5000")
FLASK_DEBUG: bool = _env_bool("FLASK_DEBUG", "false")
FLASK_HOST: str = os.getenv("FLASK_HOST", "0.0.0.0")


# ============================================================================
# Helper Functions
# ============================================================================
def get_screening_config() -> dict:
    """
    Snapshot of every screening constant (used by GET /config/all).

    Returns:
        dict: camelCase keys grouped by concern
    """
    return {
        "session": {
            "durationSec": SESSION_DURATION_SEC,
            "timerIntervalSec": TIMER_INTERVAL_SEC,
        },
        "blink": {
            "thresholdFactor": BLINK_THRESHOLD_FACTOR,
        },
        "motion": {
            "warmupTrimSamples": WARMUP_TRIM_SAMPLES,
            "scale": MOTION_SCALE,
            "fallbackRaw": MOTION_FALLBACK_RAW,
        },
        "asymmetry": {
            "warmupTrimSamples": WARMUP_TRIM_SAMPLES,
            "fallback": ASYMMETRY_FALLBACK,
        },
        "vitals": {
            "breathAmplitudeThreshold": BREATH_AMPLITUDE_THRESHOLD,
            "breathAmplitudeScale": BREATH_AMPLITUDE_SCALE,
            "breathMinIntervalMs": BREATH_MIN_INTERVAL_MS,
            "heartWindowSize": HEART_WINDOW_SIZE,
            "heartPeakFactor": HEART_PEAK_FACTOR,
            "heartRateMultiplier": HEART_RATE_MULTIPLIER,
            "heartRateMin": HEART_RATE_MIN,
            "heartRateMax": HEART_RATE_MAX,
        },
        "risk": {
            "mediumThreshold": RISK_MEDIUM_THRESHOLD,
            "highThreshold": RISK_HIGH_THRESHOLD,
        },
    }


def validate_config() -> list:
    """
    Print warnings for settings that make the engine misbehave. Does not raise.
    Call from app startup (e.g. app.py) to help operators.

    Returns:
        list: Human-readable problems (empty when everything is in range)
    """
    import sys
    problems = []
    if SESSION_DURATION_SEC <= 0:
        problems.append("SESSION_DURATION_SEC must be > 0")
    if TIMER_INTERVAL_SEC <= 0:
        problems.append("TIMER_INTERVAL_SEC must be > 0")
    if WARMUP_TRIM_SAMPLES < 0:
        problems.append("WARMUP_TRIM_SAMPLES must be >= 0")
    if HEART_WINDOW_SIZE < 1:
        problems.append("HEART_WINDOW_SIZE must be >= 1")
    if HEART_RATE_MIN > HEART_RATE_MAX:
        problems.append("HEART_RATE_MIN must not exceed HEART_RATE_MAX")
    if RISK_MEDIUM_THRESHOLD > RISK_HIGH_THRESHOLD:
        problems.append("RISK_MEDIUM_THRESHOLD must not exceed RISK_HIGH_THRESHOLD")
    if problems:
        print("Config warning:", "; ".join(problems), file=sys.stderr)
    return problems
