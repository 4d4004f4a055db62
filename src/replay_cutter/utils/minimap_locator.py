"""
Minimap Locator
Finds a known map thumbnail inside a frame and refines minimap crop boxes.
"""

from typing import NamedTuple, Optional, Sequence, Tuple

import cv2
import numpy as np

from .color import WHITE

# Area scanned for the minimap's white border (x1, y1, x2, y2)
DEFAULT_MINIMAP_SEARCH_BOX = (0, 0, 400, 400)

Box = Tuple[int, int, int, int]


class LocateResult(NamedTuple):
    """Best template match: top-left position, template size and NCC score"""
    position: Tuple[int, int]
    size: Tuple[int, int]
    confidence: float


def locate(frame: np.ndarray, template: np.ndarray) -> LocateResult:
    """
    Locate a template inside a frame with normalized cross-correlation.

    No acceptance threshold is applied; the caller decides whether the
    returned confidence is good enough.

    Args:
        frame: Image to search (H, W, 3) RGB or grayscale
        template: Image to look for, same channel layout as frame

    Returns:
        LocateResult with the highest scoring offset

    Raises:
        ValueError: If the template is larger than the frame
    """
    template_h, template_w = template.shape[:2]
    frame_h, frame_w = frame.shape[:2]

    if template_h > frame_h or template_w > frame_w:
        raise ValueError(
            f"Template ({template_w}x{template_h}) is larger than frame ({frame_w}x{frame_h})"
        )

    result = cv2.matchTemplate(frame, template, cv2.TM_CCOEFF_NORMED)
    _, max_val, _, max_loc = cv2.minMaxLoc(result)

    # Flat templates give NaN scores
    confidence = float(max_val) if np.isfinite(max_val) else 0.0

    return LocateResult(
        position=(int(max_loc[0]), int(max_loc[1])),
        size=(template_w, template_h),
        confidence=confidence
    )


def detect_minimap_bounds(frame: np.ndarray,
                          search_box: Box = DEFAULT_MINIMAP_SEARCH_BOX,
                          tolerance: int = 50) -> Box:
    """
    Detect the minimap rectangle from its white border.

    Scans the search box for the first and last columns/rows holding a
    near-white pixel. Edges where nothing is found keep the search box value.

    Args:
        frame: Frame (H, W, 3) in RGB order
        search_box: (x1, y1, x2, y2) area to scan
        tolerance: Per-channel tolerance against pure white (default: 50)

    Returns:
        (x1, y1, x2, y2) of the detected minimap, x2/y2 exclusive
    """
    x1, y1, x2, y2 = search_box
    height, width = frame.shape[:2]
    x2 = min(x2, width)
    y2 = min(y2, height)

    area = frame[y1:y2, x1:x2, :3].astype(np.int16)
    white = np.array(WHITE, dtype=np.int16)
    mask = np.all(np.abs(area - white) <= tolerance, axis=2)

    if not mask.any():
        return search_box

    cols = np.flatnonzero(mask.any(axis=0))
    rows = np.flatnonzero(mask.any(axis=1))

    return (
        x1 + int(cols[0]),
        y1 + int(rows[0]),
        x1 + int(cols[-1]) + 1,
        y1 + int(rows[-1]) + 1
    )


def apply_map_margins(box: Box, margins: Optional[Sequence[float]]) -> Box:
    """
    Grow a minimap box by per-map margins.

    Args:
        box: (x1, y1, x2, y2) minimap box
        margins: (top, right, bottom, left) in percent of the box size

    Returns:
        Expanded box, rounded to integer pixels and never negative
    """
    if not margins:
        return box

    top, right, bottom, left = margins
    x1, y1, x2, y2 = box
    width = x2 - x1
    height = y2 - y1

    dx = min(x1, width * left / 100)
    dy = min(y1, height * top / 100)

    # Symmetric margins reuse the clamped offset so the map stays centered
    grow_right = dx if right == left else width * right / 100
    grow_bottom = dy if bottom == top else height * bottom / 100

    return (
        int(round(x1 - dx)),
        int(round(y1 - dy)),
        int(round(x2 + grow_right)),
        int(round(y2 + grow_bottom))
    )
