"""
Landmark Frame Module

Validates a raw per-frame face-mesh point set and wraps it as a LandmarkFrame.
The engine only reads a handful of MediaPipe face mesh indices (468 points, or
478 with iris refinement); they are named here so every signal module refers
to the same topology.

Accepted inputs (all with x, y normalized to [0, 1], z relative depth):
- numpy array of shape (N, 2) or (N, 3)
- list of [x, y] / [x, y, z] rows
- list of {"x": .., "y": .., "z": ..} mappings (JSON from a host)
- MediaPipe NormalizedLandmark objects (attributes .x, .y, .z)
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence, Tuple

import numpy as np


# MediaPipe face mesh indices
LEFT_EYE_UPPER, LEFT_EYE_LOWER = 159, 145
RIGHT_EYE_UPPER, RIGHT_EYE_LOWER = 386, 374
FACE_TOP, CHIN = 10, 152  # face-height reference
NOSE_TIP = 1
MOUTH_LEFT, MOUTH_RIGHT = 61, 291
UPPER_LIP, LOWER_LIP = 13, 14
LEFT_EYEBROW, RIGHT_EYEBROW = 105, 334
LEFT_CHEEK, RIGHT_CHEEK = 93, 323
LEFT_LOWER_CHEEK, RIGHT_LOWER_CHEEK = 206, 426

# Voluntary-movement subset used for the rigidity proxy
EXPRESSIVE_LANDMARKS: Tuple[int, ...] = (
    MOUTH_LEFT, MOUTH_RIGHT,
    UPPER_LIP,
    LOWER_LIP,
    LEFT_EYEBROW, RIGHT_EYEBROW,
    LEFT_CHEEK, RIGHT_CHEEK,
)

# Left/right pairs compared for vertical asymmetry
ASYMMETRY_PAIRS: Tuple[Tuple[int, int], ...] = (
    (MOUTH_LEFT, MOUTH_RIGHT),
    (LEFT_EYEBROW, RIGHT_EYEBROW),
    (LEFT_LOWER_CHEEK, RIGHT_LOWER_CHEEK),
)

# Micro-motion subset for the heart-rate proxy
PULSE_LANDMARKS: Tuple[int, ...] = (NOSE_TIP, LEFT_CHEEK, RIGHT_CHEEK)

REQUIRED_LANDMARKS: Tuple[int, ...] = tuple(sorted({
    LEFT_EYE_UPPER, LEFT_EYE_LOWER, RIGHT_EYE_UPPER, RIGHT_EYE_LOWER,
    FACE_TOP, CHIN, NOSE_TIP,
    *EXPRESSIVE_LANDMARKS,
    *(idx for pair in ASYMMETRY_PAIRS for idx in pair),
    *PULSE_LANDMARKS,
}))
MIN_LANDMARK_COUNT: int = max(REQUIRED_LANDMARKS) + 1


class InvalidLandmarkFrame(ValueError):
    """Raised when a frame does not carry the expected face-mesh topology."""


@dataclass(frozen=True)
class LandmarkFrame:
    """
    One snapshot of normalized facial keypoints.

    points is an (N, 3) float64 array; identity is positional. timestamp_ms is
    the capture time in milliseconds on a monotonically increasing clock.
    """
    points: np.ndarray
    timestamp_ms: float

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def y(self, index: int) -> float:
        return float(self.points[index, 1])

    def xy(self, indices: Sequence[int]) -> np.ndarray:
        """Planar (x, y) coordinates for the given indices, shape (k, 2)."""
        return self.points[list(indices), :2]

    def eyelid_gaps(self) -> Tuple[float, float]:
        """Vertical (left, right) eyelid distances."""
        left = abs(self.y(LEFT_EYE_UPPER) - self.y(LEFT_EYE_LOWER))
        right = abs(self.y(RIGHT_EYE_UPPER) - self.y(RIGHT_EYE_LOWER))
        return left, right

    def face_height(self) -> float:
        """Vertical distance between the face-height reference and the chin."""
        return abs(self.y(FACE_TOP) - self.y(CHIN))

    def nose_y(self) -> float:
        return self.y(NOSE_TIP)


def _rows_from(landmarks: Iterable[Any]) -> list:
    try:
        items = iter(landmarks)
    except TypeError as e:
        raise InvalidLandmarkFrame(f"Landmarks must be a sequence of points, got {type(landmarks).__name__}") from e
    rows = []
    for lm in items:
        if isinstance(lm, dict):
            rows.append([lm.get("x"), lm.get("y"), lm.get("z", 0.0)])
        elif hasattr(lm, "x") and hasattr(lm, "y"):
            rows.append([lm.x, lm.y, getattr(lm, "z", 0.0)])
        else:
            try:
                row = list(lm)
            except TypeError as e:
                raise InvalidLandmarkFrame(f"Landmark rows must be [x, y(, z)], got {type(lm).__name__}") from e
            if len(row) == 2:
                row.append(0.0)
            if len(row) != 3:
                raise InvalidLandmarkFrame(f"Landmark rows must have 2 or 3 values, got {len(row)}")
            rows.append(row)
    return rows


def _to_array(landmarks: Any) -> np.ndarray:
    if isinstance(landmarks, np.ndarray):
        arr = landmarks
    else:
        # MediaPipe NormalizedLandmarkList exposes the points under .landmark
        if hasattr(landmarks, "landmark"):
            landmarks = landmarks.landmark
        arr = _rows_from(landmarks)
    try:
        arr = np.asarray(arr, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidLandmarkFrame(f"Landmarks are not numeric: {e}") from e
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise InvalidLandmarkFrame(f"Expected an (N, 2) or (N, 3) point set, got shape {arr.shape}")
    if arr.shape[1] == 2:
        arr = np.hstack([arr, np.zeros((arr.shape[0], 1), dtype=np.float64)])
    return arr


def _is_empty(landmarks: Any) -> bool:
    if landmarks is None:
        return True
    if isinstance(landmarks, np.ndarray):
        return landmarks.size == 0
    if hasattr(landmarks, "landmark"):
        return len(landmarks.landmark) == 0
    try:
        return len(landmarks) == 0
    except TypeError:
        return False


def normalize_frame(landmarks: Any, timestamp_ms: float) -> Optional[LandmarkFrame]:
    """
    Validate a raw point set and return a LandmarkFrame.

    Args:
        landmarks: Raw per-frame points (see module docstring), or None / empty
                   when the detector found no face
        timestamp_ms: Capture time in milliseconds

    Returns:
        LandmarkFrame, or None for a no-face frame (skip, record nothing)

    Raises:
        InvalidLandmarkFrame: Too few points, ragged rows, or non-finite
                              coordinates at a required index
    """
    if _is_empty(landmarks):
        return None
    points = _to_array(landmarks)
    if points.shape[0] < MIN_LANDMARK_COUNT:
        raise InvalidLandmarkFrame(
            f"Face mesh needs at least {MIN_LANDMARK_COUNT} points, got {points.shape[0]}"
        )
    required = points[list(REQUIRED_LANDMARKS), :2]
    if not np.all(np.isfinite(required)):
        raise InvalidLandmarkFrame("Non-finite coordinates at a required landmark")
    return LandmarkFrame(points=points, timestamp_ms=float(timestamp_ms))
