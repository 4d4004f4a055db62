"""
Pixel Color Utilities
Reads single pixel colors from video frames and compares them with a tolerance.
"""

from typing import NamedTuple, Optional

import numpy as np


class RGB(NamedTuple):
    """Color of one pixel, each channel in 0-255"""
    r: int
    g: int
    b: int


WHITE = RGB(255, 255, 255)
BLACK = RGB(0, 0, 0)


def similar(color1: RGB, color2: RGB, tolerance: int = 20) -> bool:
    """
    Check whether two colors are close to each other.

    Every channel must differ by at most ``tolerance``.

    Args:
        color1: First color
        color2: Second color
        tolerance: Maximum difference allowed per channel (default: 20)

    Returns:
        True if the colors are similar
    """
    return (
        abs(color1.r - color2.r) <= tolerance and
        abs(color1.g - color2.g) <= tolerance and
        abs(color1.b - color2.b) <= tolerance
    )


def sample(frame: Optional[np.ndarray], x: float, y: float) -> RGB:
    """
    Read the color of a frame pixel.

    Coordinates outside the frame are clamped to the nearest edge. A missing
    or malformed frame gives black, so callers never have to guard this call.

    Args:
        frame: Frame as numpy array (H, W, 3) in RGB order
        x: X coordinate of the pixel
        y: Y coordinate of the pixel

    Returns:
        RGB color of the pixel
    """
    if frame is None or frame.ndim != 3 or frame.shape[0] == 0 or frame.shape[1] == 0:
        return BLACK

    height, width = frame.shape[:2]
    col = min(max(int(x), 0), width - 1)
    row = min(max(int(y), 0), height - 1)

    pixel = frame[row, col]
    return RGB(int(pixel[0]), int(pixel[1]), int(pixel[2]))
