"""
HUD Extraction Module

Provides the fixed HUD layouts of every supported mode and the OCR pipeline
used to read them:
1. Mode templates - pixel coordinates of logos, names, scores, timer, map banner
2. Tesseract OCR - whitelisted engines with a filter fallback chain
3. Map resolver - noisy banner text to canonical map name
"""

from .modes import MODES, ModeTemplate, Box, Point, get_mode, get_mode_regions, draw_mode_overlay
from .text_extractor import (
    HUDTextExtractor,
    TesseractEngine,
    create_engines,
    parse_score,
    parse_timer,
    clean_team_name
)
from .map_resolver import MAPS, GameMap, resolve_map, find_map, get_map

__all__ = [
    'MODES',
    'ModeTemplate',
    'Box',
    'Point',
    'get_mode',
    'get_mode_regions',
    'draw_mode_overlay',
    'HUDTextExtractor',
    'TesseractEngine',
    'create_engines',
    'parse_score',
    'parse_timer',
    'clean_team_name',
    'MAPS',
    'GameMap',
    'resolve_map',
    'find_map',
    'get_map'
]
