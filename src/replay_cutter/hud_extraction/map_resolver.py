"""
Map Name Resolver
Turns noisy OCR output from the in-game map banner into a canonical map name.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class GameMap:
    name: str
    keywords: Tuple[str, ...]
    # Minimap margins (top, right, bottom, left) in percent of the minimap size
    margins: Tuple[int, int, int, int] = (3, 2, 3, 2)


# Order matters: the first map owning one of the OCR tokens wins
MAPS: Tuple[GameMap, ...] = (
    GameMap('Artefact', ('artefact',), (4, 1, 4, 1)),
    GameMap('Atlantis', ('atlantis',)),
    GameMap('Ceres', ('ceres',)),
    GameMap('Engine', ('engine',)),
    GameMap('Helios Station', ('helios', 'station')),
    GameMap('Lunar Outpost', ('lunar', 'outpost')),
    GameMap('Outlaw', ('outlaw', 'qutlaw'), (3, 5, 5, 3)),
    GameMap('Polaris', ('polaris',)),
    GameMap('Silva', ('silva',)),
    GameMap('The Cliff', ('cliff',), (3, 3, 3, 3)),
    GameMap('The Rock', ('rock',)),
    GameMap('Horizon', ('horizon',)),
)


def find_map(ocr_text: str) -> Optional[GameMap]:
    """
    Find the map matching OCR text.

    Args:
        ocr_text: Raw text read from the map banner

    Returns:
        First map whose keywords intersect the text tokens, or None
    """
    cleaned = ocr_text.replace('\r', '').replace('\n', '').lower()
    tokens = set(cleaned.split(' '))

    for game_map in MAPS:
        if tokens.intersection(game_map.keywords):
            return game_map
    return None


def resolve_map(ocr_text: str) -> str:
    """
    Resolve OCR text to a canonical map name.

    Returns:
        Canonical map name, or "" if nothing matches
    """
    game_map = find_map(ocr_text)
    return game_map.name if game_map else ''


def get_map(name: str) -> Optional[GameMap]:
    """Look up a map by its canonical name"""
    for game_map in MAPS:
        if game_map.name == name:
            return game_map
    return None
