"""Replay Cutter.

This package finds the games inside a long arena replay by scanning it
backward and reading the HUD with pixel checks and Tesseract OCR.

Modules:
    game_detection: Frame classification, scan state machine and scanner
    hud_extraction: HUD mode templates, OCR pipeline and map names
    utils: Color sampling, video source and minimap locator
    config: Scan settings loaded from .env

Example:
    >>> from replay_cutter.game_detection import scan_video
    >>>
    >>> result = scan_video("replay.mp4")
    >>> for game in result.games:
    ...     print(game.readable_start, game.readable_end, game.map)
"""

__version__ = "1.0.0"
__author__ = "Replay Cutter"
__all__ = ['game_detection', 'hud_extraction', 'utils', 'config']
