"""
MediaPipe Face Detection Implementation

MediaPipe Face Mesh backend for the FaceDetectorInterface, used by the offline
video runner. Returns the refined 478-point mesh in normalized coordinates,
which is the topology the screening engine reads.

Strategies:
1. Primary: FaceMesh in tracking mode (fast, continuous)
2. Fallback: FaceMesh in static mode (more reliable for new/lost faces)
"""

from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np

import config
from facescreen.face_detection_interface import FaceDetectionResult, FaceDetectorInterface


class MediaPipeFaceDetector(FaceDetectorInterface):
    """
    MediaPipe-based face mesh detector (single face, iris refinement on).
    """

    def __init__(
        self,
        min_detection_confidence: Optional[float] = None,
        min_tracking_confidence: Optional[float] = None,
    ):
        """
        Args:
            min_detection_confidence: Minimum confidence for face detection (0-1)
            min_tracking_confidence: Minimum confidence for face tracking (0-1)
        """
        if min_detection_confidence is None:
            min_detection_confidence = config.MIN_FACE_CONFIDENCE
        if min_tracking_confidence is None:
            min_tracking_confidence = min_detection_confidence
        self._det_conf = max(0.01, min(0.99, float(min_detection_confidence)))
        self._track_conf = max(0.01, min(0.99, float(min_tracking_confidence)))

        self.mp_face_mesh = mp.solutions.face_mesh
        self.face_mesh = self._create_mesh(static_image_mode=False)
        # Created on first tracking failure
        self._face_mesh_static = None

    def _create_mesh(self, static_image_mode: bool):
        return self.mp_face_mesh.FaceMesh(
            static_image_mode=static_image_mode,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=self._det_conf,
            min_tracking_confidence=self._track_conf,
        )

    def detect_faces(self, image: np.ndarray) -> List[FaceDetectionResult]:
        if image is None or image.size == 0:
            return []

        rgb_image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        height, width = image.shape[:2]

        results = self.face_mesh.process(rgb_image)
        if results.multi_face_landmarks:
            return self._extract_landmarks(results, width, height)

        if self._face_mesh_static is None:
            self._face_mesh_static = self._create_mesh(static_image_mode=True)
        results_static = self._face_mesh_static.process(rgb_image)
        if results_static.multi_face_landmarks:
            return self._extract_landmarks(results_static, width, height)
        return []

    def _extract_landmarks(self, results, width: int, height: int) -> List[FaceDetectionResult]:
        """Normalized (N, 3) landmarks plus a pixel bounding box per face."""
        face_results = []
        for face_landmarks in results.multi_face_landmarks:
            landmarks_array = np.array(
                [[lm.x, lm.y, lm.z] for lm in face_landmarks.landmark],
                dtype=np.float64,
            )
            left = int(np.min(landmarks_array[:, 0]) * width)
            top = int(np.min(landmarks_array[:, 1]) * height)
            right = int(np.max(landmarks_array[:, 0]) * width)
            bottom = int(np.max(landmarks_array[:, 1]) * height)
            face_results.append(
                FaceDetectionResult(
                    landmarks=landmarks_array,
                    bounding_box=(left, top, right - left, bottom - top),
                    confidence=1.0,  # MediaPipe doesn't provide confidence per face
                )
            )
        return face_results

    def get_name(self) -> str:
        return "mediapipe"

    def close(self) -> None:
        """Clean up MediaPipe resources."""
        for mesh in (self.face_mesh, self._face_mesh_static):
            if mesh is not None:
                mesh.close()
        self._face_mesh_static = None
