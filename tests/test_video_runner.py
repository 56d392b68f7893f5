"""
Offline runner and detector tests.

The video source and landmark backend are faked; MediaPipe's face mesh is
mocked so no model or camera is needed. Skipped when OpenCV or MediaPipe is
not installed.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import importlib.util
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np

HAS_VIDEO_STACK = all(importlib.util.find_spec(m) is not None for m in ("cv2", "mediapipe"))


class FakeVideoSource:
    """Stands in for VideoSourceHandler: 30 fps timestamps from zero."""

    def __init__(self, n_frames, fps=30.0):
        self.n_frames = n_frames
        self.fps = fps
        self.index = 0

    def read_frame(self):
        if self.index >= self.n_frames:
            return False, None, 0.0
        ts = self.index * 1000.0 / self.fps
        frame = np.full((4, 4, 3), self.index % 256, dtype=np.uint8)
        self.index += 1
        return True, frame, ts


def _fake_detector(landmark_seq):
    from facescreen.face_detection_interface import FaceDetectionResult, FaceDetectorInterface

    class FakeDetector(FaceDetectorInterface):
        def __init__(self):
            self.calls = 0

        def detect_faces(self, image):
            lm = landmark_seq[self.calls % len(landmark_seq)]
            self.calls += 1
            if lm is None:
                return []
            return [FaceDetectionResult(landmarks=lm)]

        def get_name(self):
            return "fake"

    return FakeDetector()


@unittest.skipUnless(HAS_VIDEO_STACK, "opencv-python and mediapipe are required")
class TestRunScreening(unittest.TestCase):
    """Test run_screening() timing and early stop."""

    def test_finalizes_on_capture_time(self):
        """A 1 s session over 3 s of video ends after ~1 s of frames."""
        from screen_video import run_screening
        from screening_session import ScreeningSession, SessionStatus
        from tests.fixtures.synthetic_landmarks import make_neutral_landmarks
        source = FakeVideoSource(90)
        detector = _fake_detector([make_neutral_landmarks()])
        session = ScreeningSession(duration_sec=1, timer_interval_sec=1)
        result = run_screening(source, detector, session)
        self.assertEqual(session.status, SessionStatus.FINALIZED)
        self.assertEqual(result.frames_processed, 31)  # 0 ms .. 1000 ms inclusive
        self.assertLess(source.index, 90)

    def test_source_end_stops_early(self):
        from screen_video import run_screening
        from screening_session import ScreeningSession
        from tests.fixtures.synthetic_landmarks import make_neutral_landmarks
        source = FakeVideoSource(10)
        session = ScreeningSession(duration_sec=30)
        result = run_screening(source, _fake_detector([make_neutral_landmarks(), None]), session)
        self.assertEqual(result.frames_processed, 5)
        self.assertEqual(session.get_state()["framesSkipped"], 5)
        self.assertEqual(result.breakdown.motion_score, 1500.0)

    def test_invalid_frames_skipped(self):
        from screen_video import run_screening
        from screening_session import ScreeningSession
        from tests.fixtures.synthetic_landmarks import make_neutral_landmarks
        source = FakeVideoSource(6)
        detector = _fake_detector([make_neutral_landmarks(), make_neutral_landmarks()[:20]])
        session = ScreeningSession(duration_sec=30)
        with self.assertLogs("screen_video", level="WARNING"):
            result = run_screening(source, detector, session)
        self.assertEqual(result.frames_processed, 3)

    def test_print_result(self):
        from screen_video import print_result
        from screening_session import ScreeningSession
        session = ScreeningSession(duration_sec=30)
        session.start(start_timer=False)
        with patch("builtins.print") as mock_print:
            print_result(session.finalize())
        text = "\n".join(str(c.args[0]) for c in mock_print.call_args_list if c.args)
        self.assertIn("Risk:", text)
        self.assertIn("not a diagnosis", text)


def _mesh_results(points):
    if points is None:
        return SimpleNamespace(multi_face_landmarks=None)
    face = SimpleNamespace(landmark=[SimpleNamespace(x=p[0], y=p[1], z=p[2]) for p in points])
    return SimpleNamespace(multi_face_landmarks=[face])


@unittest.skipUnless(HAS_VIDEO_STACK, "opencv-python and mediapipe are required")
class TestMediaPipeFaceDetector(unittest.TestCase):
    """Test MediaPipeFaceDetector with a mocked face mesh."""

    def _detector(self, tracking_points, static_points=None):
        from facescreen.mediapipe_detector import MediaPipeFaceDetector
        tracking = MagicMock()
        tracking.process.return_value = _mesh_results(tracking_points)
        static = MagicMock()
        static.process.return_value = _mesh_results(static_points)
        mp_mock = MagicMock()
        mp_mock.solutions.face_mesh.FaceMesh.side_effect = [tracking, static]
        with patch("facescreen.mediapipe_detector.mp", mp_mock):
            detector = MediaPipeFaceDetector(min_detection_confidence=0.5)
        return detector, mp_mock, tracking, static

    def test_returns_normalized_landmarks(self):
        from tests.fixtures.synthetic_landmarks import make_neutral_landmarks
        lm = make_neutral_landmarks()
        detector, mp_mock, _, _ = self._detector(lm)
        image = np.zeros((480, 640, 3), dtype=np.uint8)
        faces = detector.detect_faces(image)
        self.assertEqual(len(faces), 1)
        np.testing.assert_allclose(faces[0].landmarks, lm)
        left, top, width, height = faces[0].bounding_box
        self.assertGreater(width, 0)
        self.assertGreater(height, 0)
        kwargs = mp_mock.solutions.face_mesh.FaceMesh.call_args_list[0].kwargs
        self.assertTrue(kwargs["refine_landmarks"])
        self.assertFalse(kwargs["static_image_mode"])
        self.assertEqual(detector.get_name(), "mediapipe")

    def test_static_fallback(self):
        from tests.fixtures.synthetic_landmarks import make_neutral_landmarks
        lm = make_neutral_landmarks()
        detector, _, tracking, static = self._detector(None, lm)
        landmarks = detector.primary_landmarks(np.zeros((10, 10, 3), dtype=np.uint8))
        np.testing.assert_allclose(landmarks, lm)
        static.process.assert_called_once()
        detector.close()
        tracking.close.assert_called_once()
        static.close.assert_called_once()

    def test_no_face(self):
        detector, _, _, _ = self._detector(None, None)
        self.assertIsNone(detector.primary_landmarks(np.zeros((10, 10, 3), dtype=np.uint8)))
        self.assertEqual(detector.detect_faces(np.zeros((0, 0, 3), dtype=np.uint8)), [])


if __name__ == "__main__":
    unittest.main()
