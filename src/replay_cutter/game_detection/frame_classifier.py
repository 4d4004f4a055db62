"""Frame Classification.

Decides what kind of screen a replay frame shows by comparing a handful of
pixels against the known HUD colors of every mode. All checks are pure: they
read the frame and the current game list and never mutate anything.

Checks, in priority order:
    1. Score frame   - post-match screen (gives the game's mode)
    2. End frame     - legacy post-match screen, scores only
    3. Loading frame - map loader, marks a game start
    4. Intro frame   - map intro animation, marks a game start
    5. Playing frame - in-game HUD with readable life bars

Typical usage example:

    classification = classify(frame, games)
    if classification.kind is FrameKind.SCORE:
        print(f"Score frame for mode {classification.mode}")
"""

import logging
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence

import numpy as np

from ..hud_extraction.modes import (
    MODES, END_FRAME_LOGOS, END_FRAME_MODE, INTRO_GLYPHS, INTRO_GLYPH_COLOR, INTRO_COUNTER_COLOR,
    SCORE_ORANGE_LOGO, SCORE_BLUE_LOGO, TEAM_ORANGE, TEAM_BLUE, get_mode
)
from ..utils.color import BLACK, WHITE, sample, similar
from .game import Game

logger = logging.getLogger(__name__)

# Tolerances (the default of similar() is 20)
INTRO_GLYPH_TOLERANCE = 30
INTRO_COUNTER_TOLERANCE = 200
# TODO: confirm whether 50 on dead (black) life bars is intended or a leftover from tuning
DEAD_PLAYER_TOLERANCE = 50


class FrameKind(Enum):
    NONE = 'none'
    SCORE = 'score'
    END = 'end'
    LOADING = 'loading'
    INTRO = 'intro'
    PLAYING = 'playing'


class Classification(NamedTuple):
    kind: FrameKind
    mode: Optional[int] = None


NOTHING = Classification(FrameKind.NONE)


def awaiting_start(games: Sequence[Game]) -> bool:
    """True if the front game has an end but no start yet"""
    return bool(games) and games[0].end_resolved and not games[0].start_resolved


def is_score_frame(frame: Optional[np.ndarray]) -> Optional[int]:
    """
    Detect the post-match score screen.

    Returns:
        Mode of the first template whose two logo points match, or None
    """
    for mode, template in MODES.items():
        orange = template.score_frame.orange_logo
        blue = template.score_frame.blue_logo
        if (similar(sample(frame, orange.x, orange.y), SCORE_ORANGE_LOGO) and
                similar(sample(frame, blue.x, blue.y), SCORE_BLUE_LOGO)):
            logger.info(f"Detect game score frame (mode {mode})")
            return mode
    return None


def is_end_frame(frame: Optional[np.ndarray]) -> bool:
    """Detect the legacy end screen from its four logo points"""
    if all(similar(sample(frame, point.x, point.y), color) for point, color in END_FRAME_LOGOS):
        logger.info("Detect game end frame")
        return True
    return False


def is_loading_frame(frame: Optional[np.ndarray], game: Game) -> bool:
    """Detect the map loader logo for the game's mode"""
    layout = get_mode(game.mode).loading_frame

    if (all(similar(sample(frame, p.x, p.y), WHITE) for p in layout.white_points) and
            all(similar(sample(frame, p.x, p.y), BLACK) for p in layout.black_points)):
        logger.info("Detect game loading frame")
        return True
    return False


def is_intro_frame(frame: Optional[np.ndarray], game: Game) -> bool:
    """Detect the map intro from any of the five renderings of its "B" glyph"""
    for glyph_points, counter_points in INTRO_GLYPHS:
        if (all(similar(sample(frame, p.x, p.y), INTRO_GLYPH_COLOR, INTRO_GLYPH_TOLERANCE)
                for p in glyph_points) and
                all(similar(sample(frame, p.x, p.y), INTRO_COUNTER_COLOR, INTRO_COUNTER_TOLERANCE)
                    for p in counter_points)):
            logger.info("Detect game intro frame")
            return True
    return False


def is_playing_frame(frame: Optional[np.ndarray], game: Game) -> bool:
    """
    Detect active gameplay from the players' life bars.

    At least one player per team must be alive (team colored bar) and every
    bar must be either team colored or dead (black).
    """
    orange_points, blue_points = get_mode(game.mode).game_frame.life_bar_points()
    orange_pixels = [sample(frame, p.x, p.y) for p in orange_points]
    blue_pixels = [sample(frame, p.x, p.y) for p in blue_points]

    if not (any(similar(c, TEAM_ORANGE) for c in orange_pixels) and
            any(similar(c, TEAM_BLUE) for c in blue_pixels)):
        return False

    def alive_or_dead(color, team_color):
        return similar(color, team_color) or similar(color, BLACK, DEAD_PLAYER_TOLERANCE)

    if (all(alive_or_dead(c, TEAM_ORANGE) for c in orange_pixels) and
            all(alive_or_dead(c, TEAM_BLUE) for c in blue_pixels)):
        logger.debug("Detect game playing frame")
        return True
    return False


def classify(frame: Optional[np.ndarray], games: List[Game]) -> Classification:
    """
    Classify a frame against the current game list.

    Start markers are only looked for while the front game waits for its
    start; the first positive check wins.

    Args:
        frame: Frame (H, W, 3) in RGB order
        games: Detected games, the one found last (earliest in the video) first

    Returns:
        Classification with the frame kind (and the new game mode for score/end frames)
    """
    mode = is_score_frame(frame)
    if mode is not None:
        return Classification(FrameKind.SCORE, mode)

    if is_end_frame(frame):
        return Classification(FrameKind.END, END_FRAME_MODE)

    if awaiting_start(games):
        if is_loading_frame(frame, games[0]):
            return Classification(FrameKind.LOADING)
        if is_intro_frame(frame, games[0]):
            return Classification(FrameKind.INTRO)

    if games and not games[0].start_resolved and is_playing_frame(frame, games[0]):
        return Classification(FrameKind.PLAYING)

    return NOTHING
