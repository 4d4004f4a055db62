"""
Pytest configuration and shared fixtures.

This module provides fixtures used across multiple test files: synthetic
1080p frames painted with the HUD colors of a mode, a scripted video source
and scripted OCR engines.
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest
import numpy as np

# Add project root and src to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(project_root / "src"))

from replay_cutter.config import ScanSettings
from replay_cutter.game_detection.game_scanner import GameScanner, ScanContext
from replay_cutter.hud_extraction.modes import (
    END_FRAME_LOGOS, INTRO_GLYPHS, SCORE_BLUE_LOGO, SCORE_ORANGE_LOGO,
    TEAM_BLUE, TEAM_ORANGE, get_mode
)
from replay_cutter.hud_extraction.text_extractor import HUDTextExtractor
from replay_cutter.utils.color import RGB, WHITE
from replay_cutter.utils.video_source import VideoSource


# =========================================================================
# FRAME PAINTING
# =========================================================================

def blank() -> np.ndarray:
    """Black 1920x1080 RGB frame"""
    return np.zeros((1080, 1920, 3), dtype=np.uint8)


def paint(frame: np.ndarray, point, color: RGB, radius: int = 1) -> np.ndarray:
    """Paint a small square around a point"""
    x, y = point
    frame[max(y - radius, 0):y + radius + 1, max(x - radius, 0):x + radius + 1] = color
    return frame


def paint_score_frame(mode: int = 1, frame: Optional[np.ndarray] = None) -> np.ndarray:
    frame = blank() if frame is None else frame
    layout = get_mode(mode).score_frame
    paint(frame, layout.orange_logo, SCORE_ORANGE_LOGO)
    paint(frame, layout.blue_logo, SCORE_BLUE_LOGO)
    return frame


def paint_end_frame(frame: Optional[np.ndarray] = None) -> np.ndarray:
    frame = blank() if frame is None else frame
    for point, color in END_FRAME_LOGOS:
        paint(frame, point, color)
    return frame


def paint_loading_frame(mode: int = 1, frame: Optional[np.ndarray] = None) -> np.ndarray:
    frame = blank() if frame is None else frame
    for point in get_mode(mode).loading_frame.white_points:
        paint(frame, point, WHITE)
    return frame


def paint_intro_frame(cluster: int = 0, frame: Optional[np.ndarray] = None) -> np.ndarray:
    frame = blank() if frame is None else frame
    glyph_points, _ = INTRO_GLYPHS[cluster]
    for point in glyph_points:
        paint(frame, point, WHITE)
    return frame


def paint_playing_frame(mode: int = 1, dead: int = 0, frame: Optional[np.ndarray] = None) -> np.ndarray:
    """Life bars of a mode, the last ``dead`` players of each team left black"""
    frame = blank() if frame is None else frame
    orange_points, blue_points = get_mode(mode).game_frame.life_bar_points()
    alive = len(orange_points) - dead
    for point in orange_points[:alive]:
        paint(frame, point, TEAM_ORANGE)
    for point in blue_points[:alive]:
        paint(frame, point, TEAM_BLUE)
    return frame


# =========================================================================
# FAKES
# =========================================================================

class FakeVideoSource(VideoSource):
    """Video source whose frames come from a function of time"""

    def __init__(self, duration: float, frame_at: Callable[[float], Optional[np.ndarray]]):
        super().__init__(duration)
        self.frame_at = frame_at
        self.seeks: List[float] = []

    def _read_frame_at(self, timestamp: float) -> Optional[np.ndarray]:
        self.seeks.append(timestamp)
        return self.frame_at(timestamp)


class FakeEngine:
    """
    Scripted OCR engine.

    A string is returned on every call; a list is consumed one item per
    call and gives "" once exhausted.
    """

    def __init__(self, responses: Union[str, List[str]] = '', on_call: Optional[Callable] = None):
        self.responses = responses
        self.on_call = on_call
        self.calls: List[Dict] = []

    def recognize(self, image: np.ndarray, psm: int = 7) -> str:
        self.calls.append({'shape': image.shape, 'psm': psm})
        if self.on_call:
            self.on_call()
        if isinstance(self.responses, list):
            return self.responses.pop(0) if self.responses else ''
        return self.responses


def frames_at(mapping: Dict[float, np.ndarray]) -> Callable[[float], np.ndarray]:
    """Frame provider: painted frames at given seconds, blank everywhere else"""
    empty = blank()

    def provider(t: float) -> np.ndarray:
        for second, frame in mapping.items():
            if abs(t - second) < 0.5:
                return frame
        return empty

    return provider


def make_engines(basic='', number='', letter='', time='') -> Dict[str, FakeEngine]:
    return {
        'basic': FakeEngine(basic),
        'number': FakeEngine(number),
        'letter': FakeEngine(letter),
        'time': FakeEngine(time),
    }


def make_scanner(source: VideoSource, engines: Optional[Dict[str, FakeEngine]] = None,
                 settings: Optional[ScanSettings] = None, on_progress=None) -> GameScanner:
    extractor = HUDTextExtractor(engines or make_engines())
    context = ScanContext(extractor, settings or ScanSettings())
    return GameScanner(source, context, on_progress=on_progress)


# =========================================================================
# FIXTURES
# =========================================================================

@pytest.fixture
def blank_frame() -> np.ndarray:
    """Black 1920x1080 RGB frame"""
    return blank()


@pytest.fixture
def fake_engines() -> Dict[str, FakeEngine]:
    """Engines that never read anything"""
    return make_engines()


@pytest.fixture
def temp_output_dir(tmp_path) -> Path:
    """Return a temporary output directory for tests."""
    output_dir = tmp_path / "test_output"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


@pytest.fixture(autouse=True)
def clean_scan_env(monkeypatch):
    """Keep a developer's .env from leaking into the tests"""
    for name in ('ORANGE_TEAM_NAME', 'BLUE_TEAM_NAME', 'MATCH_MINUTES', 'SCAN_STEP',
                 'PAUSE_DELAY', 'TESSERACT_CMD', 'OCR_LANG'):
        monkeypatch.delenv(name, raising=False)


# Markers
def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "unit: fast tests without video files or tesseract"
    )
    config.addinivalue_line(
        "markers", "integration: tests running the full scan pipeline"
    )
