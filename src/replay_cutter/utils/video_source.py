"""
Seekable Video Source
Opens a replay with OpenCV and exposes the current frame for pixel sampling.
Listeners are notified every time the playback position changes.
"""

import logging
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Every mode template is calibrated for 1080p captures
REFERENCE_SIZE = (1920, 1080)

PositionListener = Callable[[float], None]


class VideoSource:
    """
    Base class for anything the scanner can seek through.

    Subclasses implement ``_read_frame_at``; this class keeps the current
    position and dispatches "position changed" notifications.
    """

    def __init__(self, duration: float):
        self.duration = duration
        self.current_time = 0.0
        self.frame: Optional[np.ndarray] = None
        self._listeners: List[PositionListener] = []

    def add_listener(self, listener: PositionListener) -> None:
        """Register a callback fired with the new time after each seek"""
        self._listeners.append(listener)

    def remove_listener(self, listener: PositionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def seek(self, timestamp: float) -> None:
        """
        Move playback to ``timestamp`` (seconds) and notify listeners.

        Args:
            timestamp: Target time, clamped to [0, duration]
        """
        timestamp = min(max(timestamp, 0.0), self.duration)
        self.frame = self._read_frame_at(timestamp)
        self.current_time = timestamp

        for listener in list(self._listeners):
            listener(timestamp)

    def _read_frame_at(self, timestamp: float) -> Optional[np.ndarray]:
        raise NotImplementedError

    def close(self):
        self._listeners.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class OpenCVVideoSource(VideoSource):
    """Video file source backed by cv2.VideoCapture"""

    def __init__(self, video_path: str, target_size: Optional[Tuple[int, int]] = REFERENCE_SIZE):
        """
        Open a video file.

        Args:
            video_path: Path to video file
            target_size: (width, height) frames are resized to, None keeps the native size

        Raises:
            ValueError: If the video cannot be opened
        """
        self.video_path = video_path
        self.target_size = target_size

        # Use ffmpeg backend explicitly for accurate seeking
        self.video = cv2.VideoCapture(video_path, cv2.CAP_FFMPEG)

        if not self.video.isOpened():
            raise ValueError(f"Could not open video: {video_path}")

        # Set buffer size to 1 to reduce buffering artifacts
        self.video.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self.fps = self.video.get(cv2.CAP_PROP_FPS)
        self.frame_count = int(self.video.get(cv2.CAP_PROP_FRAME_COUNT))
        self.width = int(self.video.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self.video.get(cv2.CAP_PROP_FRAME_HEIGHT))

        if self.fps <= 0 or self.frame_count <= 0:
            self.video.release()
            raise ValueError(f"Could not read duration of video: {video_path}")

        super().__init__(self.frame_count / self.fps)

        if target_size and (self.width, self.height) != tuple(target_size):
            logger.info(f"Frames will be resized from {self.width}x{self.height} "
                        f"to {target_size[0]}x{target_size[1]}")

    def get_info(self) -> dict:
        """Get video information"""
        return {
            'path': self.video_path,
            'fps': self.fps,
            'frame_count': self.frame_count,
            'duration_seconds': self.duration,
            'width': self.width,
            'height': self.height,
        }

    def _read_frame_at(self, timestamp: float) -> Optional[np.ndarray]:
        # The last frame index is frame_count - 1, seeking to the exact end reads nothing
        frame_num = min(int(timestamp * self.fps), self.frame_count - 1)
        self.video.set(cv2.CAP_PROP_POS_FRAMES, frame_num)

        success, frame = self.video.read()
        if not success:
            logger.debug(f"Could not read frame {frame_num} ({timestamp:.2f}s)")
            return None

        if self.target_size and (frame.shape[1], frame.shape[0]) != tuple(self.target_size):
            frame = cv2.resize(frame, tuple(self.target_size), interpolation=cv2.INTER_AREA)

        # Convert BGR to RGB
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def close(self):
        """Release video resources"""
        super().close()
        if self.video:
            self.video.release()
            self.video = None

    def __del__(self):
        if getattr(self, 'video', None) is not None:
            self.video.release()
