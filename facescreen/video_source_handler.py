"""
Video Source Handler Module

Unified OpenCV capture for the offline video runner:
- Webcam (default camera)
- Local video files

Each frame is returned with a capture timestamp in milliseconds: the file
position for video files (so results do not depend on processing speed) and a
monotonic clock for live webcams.
"""

import sys
import time
from enum import Enum
from typing import Optional, Tuple

import cv2
import numpy as np


class VideoSourceType(Enum):
    """Enumeration of supported video source types."""
    WEBCAM = "webcam"
    FILE = "file"


class VideoSourceHandler:
    """
    Handler for reading frames from a webcam or a video file.

    Usage:
        handler = VideoSourceHandler()
        handler.initialize_source(VideoSourceType.FILE, "clip.mp4")

        while True:
            ret, frame, timestamp_ms = handler.read_frame()
            if not ret:
                break
            # Process frame
    """

    def __init__(self):
        self.cap: Optional[cv2.VideoCapture] = None
        self.source_type: Optional[VideoSourceType] = None
        self.source_path: Optional[str] = None
        self._started_ms: float = 0.0

    def initialize_source(
        self,
        source_type: VideoSourceType,
        source_path: Optional[str] = None,
    ) -> bool:
        """
        Initialize a video source.

        Args:
            source_type: WEBCAM or FILE
            source_path: Path to video file (required for FILE)

        Returns:
            True if the source opened
        """
        self.release()
        self.source_type = source_type
        self.source_path = source_path

        try:
            if source_type == VideoSourceType.WEBCAM:
                apis = [cv2.CAP_DSHOW, cv2.CAP_MSMF, cv2.CAP_ANY] if sys.platform == "win32" else [cv2.CAP_ANY]
                for api in apis:
                    cap = cv2.VideoCapture(0, api)
                    if cap.isOpened():
                        self.cap = cap
                        break
                    cap.release()
                if self.cap is not None:
                    self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, 640)
                    self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, 480)
                    self.cap.set(cv2.CAP_PROP_FPS, 30)
            elif source_type == VideoSourceType.FILE:
                if not source_path:
                    raise ValueError("source_path is required for FILE source type")
                self.cap = cv2.VideoCapture(source_path)
            else:
                raise ValueError(f"Unsupported source type: {source_type}")

            if self.cap is None or not self.cap.isOpened():
                return False
            self._started_ms = time.monotonic() * 1000.0
            return True

        except cv2.error as e:
            print(f"Error initializing video source: {e}")
            self.release()
            return False

    def read_frame(self) -> Tuple[bool, Optional[np.ndarray], float]:
        """
        Read a frame from the video source.

        Returns:
            Tuple of (success, frame, timestamp_ms):
            - success: True if a frame was read
            - frame: BGR image array if successful, None otherwise
            - timestamp_ms: capture time relative to the start of the source
        """
        if not self.cap or not self.cap.isOpened():
            return False, None, 0.0

        ret, frame = self.cap.read()
        if not ret or frame is None:
            return False, None, 0.0
        if self.source_type == VideoSourceType.FILE:
            timestamp_ms = float(self.cap.get(cv2.CAP_PROP_POS_MSEC))
        else:
            timestamp_ms = time.monotonic() * 1000.0 - self._started_ms
        return True, frame, timestamp_ms

    def release(self) -> None:
        """Release the current video source and free resources."""
        if self.cap:
            self.cap.release()
            self.cap = None
        self.source_type = None
        self.source_path = None

    def __del__(self):
        self.release()
