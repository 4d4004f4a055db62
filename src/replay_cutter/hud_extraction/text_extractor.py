"""
HUD Text Extractor
Reads team names, scores, map banner and timer from HUD regions using
Tesseract OCR, retrying with alternative image filters when nothing is read.
"""

import logging
import re
import string
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, Tuple

import cv2
import numpy as np
import pytesseract
from PIL import Image

from .modes import Box

logger = logging.getLogger(__name__)

# Character whitelists, one OCR engine per class
CHARSETS = {
    'basic': string.ascii_uppercase + string.ascii_lowercase + string.digits,
    'number': string.digits,
    'letter': string.ascii_uppercase + string.ascii_lowercase + ' ',
    'time': string.digits + ':',
}

# Page segmentation modes used by the scanner
PSM_SINGLE_BLOCK = 6
PSM_SINGLE_LINE = 7

MAX_SCORE = 100
MIN_TEAM_NAME_LENGTH = 2

# Crops smaller than this (either side) are upscaled before OCR
MIN_OCR_SIZE = 40


class TesseractEngine:
    """Tesseract wrapper constrained to one character whitelist"""

    def __init__(self, whitelist: str, lang: str = 'eng', oem: int = 3):
        """
        Initialize OCR engine.

        Args:
            whitelist: Characters Tesseract is allowed to output
            lang: Tesseract language (default: 'eng')
            oem: OCR engine mode (default: 3, LSTM + legacy)
        """
        self.whitelist = whitelist
        self.lang = lang
        self.oem = oem

    def build_config(self, psm: int) -> str:
        # Quoted so whitelists containing a space survive pytesseract's shlex split
        return f'--psm {psm} --oem {self.oem} -c "tessedit_char_whitelist={self.whitelist}"'

    def recognize(self, image: np.ndarray, psm: int = PSM_SINGLE_LINE) -> str:
        """
        Run OCR on an image.

        Args:
            image: Grayscale or RGB image
            psm: Page segmentation mode

        Returns:
            Raw text found by Tesseract
        """
        pil_img = Image.fromarray(image)
        return pytesseract.image_to_string(pil_img, lang=self.lang, config=self.build_config(psm))


def create_engines(lang: str = 'eng') -> Dict[str, TesseractEngine]:
    """Create one long-lived engine per character class"""
    return {name: TesseractEngine(whitelist, lang=lang) for name, whitelist in CHARSETS.items()}


# =========================================================================
# IMAGE FILTERS
# =========================================================================

def _to_gray(roi: np.ndarray) -> np.ndarray:
    if roi.ndim == 2:
        return roi
    return cv2.cvtColor(roi, cv2.COLOR_RGB2GRAY)


def _contrast(gray: np.ndarray, factor: float, brightness: float = 1.0) -> np.ndarray:
    # Stretch around mid-gray, then scale
    stretched = (gray.astype(np.float32) - 128.0) * factor + 128.0
    return np.clip(stretched * brightness, 0, 255).astype(np.uint8)


def filter_none(roi: np.ndarray) -> np.ndarray:
    return roi


def filter_grayscale_contrast(roi: np.ndarray) -> np.ndarray:
    """Grayscale, contrast x3, brightness x1.5"""
    return _contrast(_to_gray(roi), 3.0, 1.5)


def filter_grayscale_contrast_invert(roi: np.ndarray) -> np.ndarray:
    """Hard contrast (near binarization) then inverted, for light text on dark HUD"""
    return cv2.bitwise_not(_contrast(_to_gray(roi), 100.0))


def filter_luminance(roi: np.ndarray, luminance: int = 200) -> np.ndarray:
    """
    Black and white split on luminance.

    Pixels brighter than ``luminance`` (0.299R + 0.587G + 0.114B) become white.
    """
    _, processed = cv2.threshold(_to_gray(roi), luminance, 255, cv2.THRESH_BINARY)
    return processed


FILTERS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    'none': filter_none,
    'grayscale_contrast': filter_grayscale_contrast,
    'grayscale_contrast_invert': filter_grayscale_contrast_invert,
    'luminance': filter_luminance,
}

DEFAULT_FILTER_CHAIN: Tuple[str, ...] = ('none', 'grayscale_contrast', 'grayscale_contrast_invert')


# =========================================================================
# EXTRACTION
# =========================================================================

class HUDTextExtractor:
    """Extract text from HUD regions with a filter fallback chain"""

    def __init__(self, engines: Dict[str, object], debug_dir: Optional[str] = None):
        """
        Initialize extractor.

        Args:
            engines: OCR engine per character class ('basic', 'number', 'letter', 'time'),
                each exposing ``recognize(image, psm) -> str``
            debug_dir: If provided, save crops and filtered variants to this directory
        """
        missing = set(CHARSETS) - set(engines)
        if missing:
            raise ValueError(f"Missing OCR engines for: {', '.join(sorted(missing))}")

        self.engines = engines
        self.debug_dir = debug_dir
        self._debug_count = 0

        if debug_dir:
            Path(debug_dir).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def crop(frame: np.ndarray, region: Box) -> np.ndarray:
        """
        Crop a region from a frame, clipped to the frame bounds.

        Returns:
            Cropped region (may be empty)
        """
        height, width = frame.shape[:2]
        x1 = min(max(region.x1, 0), width)
        x2 = min(max(region.x2, 0), width)
        y1 = min(max(region.y1, 0), height)
        y2 = min(max(region.y2, 0), height)
        return frame[y1:y2, x1:x2]

    @staticmethod
    def _upscale(image: np.ndarray) -> np.ndarray:
        if image.shape[0] < MIN_OCR_SIZE or image.shape[1] < MIN_OCR_SIZE:
            return cv2.resize(image, None, fx=2, fy=2, interpolation=cv2.INTER_CUBIC)
        return image

    def _save_debug(self, image: np.ndarray, label: str, variant: str):
        self._debug_count += 1
        path = Path(self.debug_dir) / f"{self._debug_count:05d}_{label}_{variant}.png"
        if image.ndim == 3:
            image = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
        cv2.imwrite(str(path), image)

    def extract_text(self,
                     frame: Optional[np.ndarray],
                     region: Box,
                     charset: str,
                     psm: int = PSM_SINGLE_LINE,
                     filter_chain: Sequence[str] = DEFAULT_FILTER_CHAIN,
                     label: str = 'region') -> str:
        """
        Read the text of a frame region.

        The region is cropped once; each filter of the chain is applied to
        that same crop until OCR returns something.

        Args:
            frame: Frame (H, W, 3) in RGB order
            region: Box to read
            charset: Character class ('basic', 'number', 'letter', 'time')
            psm: Tesseract page segmentation mode
            filter_chain: Filter names tried in order
            label: Name used for debug images

        Returns:
            First non-empty OCR result without newlines, or "" if every filter failed
        """
        if frame is None:
            return ''

        engine = self.engines[charset]
        roi = self.crop(frame, region)
        if roi.size == 0:
            logger.debug(f"Empty crop for {label} at {tuple(region)}")
            return ''

        for variant in filter_chain:
            processed = self._upscale(FILTERS[variant](roi))

            if self.debug_dir:
                self._save_debug(processed, label, variant)

            try:
                raw = engine.recognize(processed, psm)
            except pytesseract.TesseractError as e:
                logger.warning(f"OCR failed on {label} ({variant}): {e}")
                continue

            text = re.sub(r'[\r\n]+', '', raw or '').strip()
            if text:
                return text

            logger.debug(f"No text on {label} with filter '{variant}'")

        return ''


# =========================================================================
# FIELD PARSERS
# =========================================================================

def parse_score(text: str) -> Optional[int]:
    """
    Parse a team score.

    Returns:
        Score, or None if no number was read or it is above 100
    """
    if not text:
        return None

    match = re.search(r'\d+', text)
    if not match:
        return None

    value = int(match.group())
    if value > MAX_SCORE:
        logger.debug(f"Discarding implausible score: {value}")
        return None
    return value


def parse_timer(text: str) -> Optional[Tuple[int, int]]:
    """
    Parse the in-game countdown.

    Returns:
        (minutes, seconds), or None unless the text is exactly "MM:SS"
        with seconds below 60
    """
    parts = text.split(':')
    if len(parts) != 2 or not all(part.isdecimal() for part in parts):
        return None

    minutes, seconds = int(parts[0]), int(parts[1])
    if seconds > 59:
        return None
    return minutes, seconds


def clean_team_name(text: str) -> Optional[str]:
    """Uppercase a team name; names shorter than two characters are noise"""
    name = text.strip()
    if len(name) < MIN_TEAM_NAME_LENGTH:
        return None
    return name.upper()
