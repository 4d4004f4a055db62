"""
HUD Mode Templates
Single source of truth for where every HUD element sits on screen.

Each mode is one on-screen layout version of the game's HUD. Coordinates are
pixel positions calibrated for 1920x1080 captures. Boxes are (x1, y1, x2, y2)
with x2/y2 exclusive.
"""

from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Tuple

import cv2
import numpy as np

from ..utils.color import RGB, WHITE, BLACK


class Point(NamedTuple):
    x: int
    y: int


class Box(NamedTuple):
    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1


@dataclass(frozen=True)
class ScoreFrameLayout:
    """Post-match screen with both logos, team names and scores"""
    orange_logo: Point
    blue_logo: Point
    orange_name: Box
    blue_name: Box
    orange_score: Box
    blue_score: Box


@dataclass(frozen=True)
class EndFrameLayout:
    """Legacy post-match screen showing scores only"""
    orange_score: Box
    blue_score: Box


@dataclass(frozen=True)
class GameFrameLayout:
    """In-game HUD"""
    players_x: Tuple[int, int]
    map: Box
    orange_name: Box
    blue_name: Box
    timer: Box
    players_y: Tuple[Tuple[int, int], ...]

    def life_bar_points(self) -> Tuple[List[Point], List[Point]]:
        """
        Sample points in the middle of every player's life bar.

        Returns:
            (orange points, blue points), four each, top to bottom
        """
        orange_x, blue_x = self.players_x
        rows = [(top + bottom) // 2 for top, bottom in self.players_y]
        return (
            [Point(orange_x, y) for y in rows],
            [Point(blue_x, y) for y in rows]
        )


@dataclass(frozen=True)
class LoadingFrameLayout:
    """Loader logo shown while the map loads: four white and four black points"""
    white_points: Tuple[Point, Point, Point, Point]
    black_points: Tuple[Point, Point, Point, Point]


@dataclass(frozen=True)
class ModeTemplate:
    mode: int
    score_frame: ScoreFrameLayout
    end_frame: EndFrameLayout
    game_frame: GameFrameLayout
    loading_frame: LoadingFrameLayout


# Colors
SCORE_ORANGE_LOGO = RGB(239, 203, 14)
SCORE_BLUE_LOGO = RGB(50, 138, 230)
TEAM_ORANGE = RGB(231, 123, 9)
TEAM_BLUE = RGB(30, 126, 242)

# Legacy end frame is layout independent: (point, expected color)
END_FRAME_LOGOS: Tuple[Tuple[Point, RGB], ...] = (
    (Point(387, 417), RGB(251, 209, 0)),    # orange logo
    (Point(481, 472), RGB(252, 205, 4)),    # orange logo
    (Point(1498, 437), RGB(46, 144, 242)),  # blue logo
    (Point(1630, 486), RGB(46, 136, 226)),  # blue logo
)

# "B" of "BATTLE ARENA" in the map intro, lower right corner.
# The glyph is rendered at five slightly different positions; each cluster
# holds five points on the letter and two in its counters.
INTRO_GLYPHS: Tuple[Tuple[Tuple[Point, ...], Tuple[Point, ...]], ...] = (
    (
        (Point(1495, 942), Point(1512, 950), Point(1495, 962), Point(1512, 972), Point(1495, 982)),
        (Point(1503, 951), Point(1503, 972)),
    ),
    (
        (Point(1558, 960), Point(1572, 968), Point(1558, 977), Point(1572, 987), Point(1558, 995)),
        (Point(1564, 969), Point(1564, 986)),
    ),
    (
        (Point(1556, 957), Point(1571, 964), Point(1556, 975), Point(1571, 984), Point(1556, 993)),
        (Point(1564, 966), Point(1564, 984)),
    ),
    (
        (Point(1617, 979), Point(1630, 985), Point(1617, 995), Point(1630, 1004), Point(1617, 1011)),
        (Point(1623, 987), Point(1623, 1004)),
    ),
    (
        (Point(1606, 976), Point(1619, 982), Point(1606, 991), Point(1619, 1000), Point(1606, 1008)),
        (Point(1612, 983), Point(1612, 1000)),
    ),
)
INTRO_GLYPH_COLOR = WHITE
INTRO_COUNTER_COLOR = BLACK

# Same for every mode
_END_FRAME = EndFrameLayout(
    orange_score=Box(636, 545, 903, 648),
    blue_score=Box(996, 545, 1257, 648)
)

_LOADING_FRAME = LoadingFrameLayout(
    white_points=(Point(958, 427), Point(857, 653), Point(1060, 653), Point(958, 642)),
    black_points=(Point(958, 463), Point(880, 653), Point(1037, 653), Point(958, 610))
)

_TEAM_NAMES = (Box(686, 22, 833, 68), Box(1087, 22, 1226, 68))
_TIMER = Box(935, 0, 985, 28)


MODES: Dict[int, ModeTemplate] = {
    1: ModeTemplate(
        mode=1,
        score_frame=ScoreFrameLayout(
            orange_logo=Point(325, 153),
            blue_logo=Point(313, 613),
            orange_name=Box(390, 187, 620, 217),
            blue_name=Box(390, 637, 620, 667),
            orange_score=Box(530, 89, 620, 127),
            blue_score=Box(1285, 89, 1384, 127)
        ),
        end_frame=_END_FRAME,
        game_frame=GameFrameLayout(
            players_x=(118, 1801),
            map=Box(825, 81, 1093, 102),
            orange_name=_TEAM_NAMES[0],
            blue_name=_TEAM_NAMES[1],
            timer=_TIMER,
            players_y=((732, 755), (814, 838), (898, 921), (980, 1004))
        ),
        loading_frame=_LOADING_FRAME
    ),
    2: ModeTemplate(
        mode=2,
        score_frame=ScoreFrameLayout(
            orange_logo=Point(325, 123),
            blue_logo=Point(313, 618),
            orange_name=Box(388, 159, 618, 189),
            blue_name=Box(390, 629, 620, 679),
            orange_score=Box(530, 54, 620, 92),
            blue_score=Box(1286, 54, 1376, 93)
        ),
        end_frame=_END_FRAME,
        game_frame=GameFrameLayout(
            players_x=(118, 1801),
            map=Box(825, 89, 1093, 110),
            orange_name=_TEAM_NAMES[0],
            blue_name=_TEAM_NAMES[1],
            timer=_TIMER,
            players_y=((703, 729), (793, 819), (883, 908), (973, 998))
        ),
        loading_frame=_LOADING_FRAME
    ),
    3: ModeTemplate(
        mode=3,
        score_frame=ScoreFrameLayout(
            orange_logo=Point(325, 126),
            blue_logo=Point(313, 618),
            orange_name=Box(388, 159, 620, 196),
            blue_name=Box(388, 641, 620, 677),
            orange_score=Box(530, 54, 620, 92),
            blue_score=Box(1286, 54, 1376, 93)
        ),
        end_frame=_END_FRAME,
        game_frame=GameFrameLayout(
            players_x=(118, 1801),
            map=Box(825, 89, 1093, 110),
            orange_name=_TEAM_NAMES[0],
            blue_name=_TEAM_NAMES[1],
            timer=_TIMER,
            players_y=((707, 732), (796, 821), (885, 909), (974, 998))
        ),
        loading_frame=_LOADING_FRAME
    ),
    4: ModeTemplate(
        mode=4,
        score_frame=ScoreFrameLayout(
            orange_logo=Point(314, 157),
            blue_logo=Point(299, 621),
            orange_name=Box(390, 187, 620, 217),
            blue_name=Box(390, 637, 620, 667),
            orange_score=Box(530, 89, 620, 127),
            blue_score=Box(1285, 89, 1384, 127)
        ),
        end_frame=_END_FRAME,
        game_frame=GameFrameLayout(
            players_x=(118, 1801),
            map=Box(825, 79, 1093, 99),
            orange_name=_TEAM_NAMES[0],
            blue_name=_TEAM_NAMES[1],
            timer=_TIMER,
            players_y=((732, 755), (814, 838), (898, 921), (980, 1004))
        ),
        loading_frame=_LOADING_FRAME
    ),
}

# Mode given to games detected through the legacy end frame
END_FRAME_MODE = 2


def get_mode(mode: int) -> ModeTemplate:
    """
    Get the template of a mode.

    Raises:
        ValueError: If the mode is unknown
    """
    try:
        return MODES[mode]
    except KeyError:
        raise ValueError(f"Unknown HUD mode: {mode} (known: {sorted(MODES)})") from None


def get_mode_regions(mode: int) -> Dict[str, Box]:
    """
    Flatten a mode's OCR boxes into named regions.

    Used to draw calibration overlays.

    Returns:
        Dictionary mapping region names to boxes
    """
    template = get_mode(mode)
    return {
        'score_orange_name': template.score_frame.orange_name,
        'score_blue_name': template.score_frame.blue_name,
        'score_orange_score': template.score_frame.orange_score,
        'score_blue_score': template.score_frame.blue_score,
        'end_orange_score': template.end_frame.orange_score,
        'end_blue_score': template.end_frame.blue_score,
        'game_map': template.game_frame.map,
        'game_orange_name': template.game_frame.orange_name,
        'game_blue_name': template.game_frame.blue_name,
        'game_timer': template.game_frame.timer,
    }


def draw_mode_overlay(frame: np.ndarray, mode: int) -> np.ndarray:
    """
    Draw a mode's OCR boxes and color sample points on a copy of a frame.

    Args:
        frame: Frame (H, W, 3) in RGB order, ideally 1920x1080
        mode: Mode to draw

    Returns:
        Annotated copy of the frame (RGB)
    """
    template = get_mode(mode)
    overlay = frame.copy()

    for name, box in get_mode_regions(mode).items():
        cv2.rectangle(overlay, (box.x1, box.y1), (box.x2, box.y2), (0, 255, 0), 2)
        cv2.putText(overlay, name, (box.x1, max(box.y1 - 5, 10)),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.4, (0, 255, 0), 1)

    orange_points, blue_points = template.game_frame.life_bar_points()
    points = [template.score_frame.orange_logo, template.score_frame.blue_logo]
    points += orange_points + blue_points
    points += list(template.loading_frame.white_points) + list(template.loading_frame.black_points)
    points += [point for point, _ in END_FRAME_LOGOS]

    for point in points:
        cv2.circle(overlay, (point.x, point.y), 4, (255, 0, 255), -1)

    return overlay
