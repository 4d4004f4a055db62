"""
Game Detection Module

Cuts a replay into games by scanning it backward:
1. Frame classifier - score, end, loading, intro and playing screens from pixel colors
2. Scan state machine - pure transitions and the timer jump
3. Game scanner - drives the video source and applies OCR effects
"""

from .game import Game, Team, readable_time
from .frame_classifier import FrameKind, Classification, classify
from .scan_state import ScanState, transition, timer_jump
from .game_scanner import GameScanner, ScanContext, ScanResult, scan_video, save_games

__all__ = [
    'Game',
    'Team',
    'readable_time',
    'FrameKind',
    'Classification',
    'classify',
    'ScanState',
    'transition',
    'timer_jump',
    'GameScanner',
    'ScanContext',
    'ScanResult',
    'scan_video',
    'save_games'
]
