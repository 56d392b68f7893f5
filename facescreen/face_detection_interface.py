"""
Face Detection Interface Module

Abstract boundary to the external landmark detector. The screening engine
does not detect faces itself; any backend that yields a fixed-topology,
normalized face-mesh point set per image can feed a ScreeningSession.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np


@dataclass
class FaceDetectionResult:
    """
    Standardized face detection result.

    landmarks are normalized: x, y in [0, 1] relative to image width/height,
    z relative depth (same scale as x).
    """
    landmarks: np.ndarray  # (N, 3)
    bounding_box: Optional[Tuple[int, int, int, int]] = None  # (left, top, width, height) in pixels
    confidence: float = 1.0


class FaceDetectorInterface(ABC):
    """
    Abstract interface for landmark detection backends.
    """

    @abstractmethod
    def detect_faces(self, image: np.ndarray) -> List[FaceDetectionResult]:
        """
        Detect faces in an image.

        Args:
            image: BGR image array (OpenCV format)

        Returns:
            List of FaceDetectionResult objects, one per detected face (empty
            when no face is visible)
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Name of this detection backend (e.g. "mediapipe")."""
        pass

    def primary_landmarks(self, image: np.ndarray) -> Optional[np.ndarray]:
        """Landmarks of the first detected face, or None when there is none."""
        faces = self.detect_faces(image)
        if not faces:
            return None
        return faces[0].landmarks

    def close(self) -> None:
        """
        Clean up resources. Override if needed.
        """
        pass
