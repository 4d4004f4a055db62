"""Scan State Machine.

The replay is walked backward from its last second. Every visited position
yields a frame classification; ``transition`` turns (state, classification)
into the next state plus a list of effects the scanner applies. Nothing in
this module touches a frame, an OCR engine or the game list.

States:
    EXPECTING_BOUNDARY - no game open, looking for a score or end frame
    EXPECTING_START    - front game has an end, looking for its start
    FINISHED           - position reached 0

Typical usage example:

    result = transition(state, classification, now=550.0, step=2.0)
    for effect in result.effects:
        ...
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Sequence, Tuple

from ..hud_extraction.text_extractor import parse_timer
from .frame_classifier import Classification, FrameKind, awaiting_start
from .game import Game

logger = logging.getLogger(__name__)

# Loading and intro screens are shown a couple of seconds before the match starts
START_OFFSET = 2


class ScanState(Enum):
    EXPECTING_BOUNDARY = 'expecting_boundary'
    EXPECTING_START = 'expecting_start'
    FINISHED = 'finished'


# =========================================================================
# EFFECTS
# =========================================================================

@dataclass(frozen=True)
class StartGame:
    """Open a new game ending now, read from a score or end frame"""
    mode: int
    kind: FrameKind


@dataclass(frozen=True)
class ResolveStart:
    start: float


@dataclass(frozen=True)
class Backfill:
    """Read missing map/team names (and possibly the timer) from a playing frame"""


@dataclass(frozen=True)
class Seek:
    target: float


@dataclass(frozen=True)
class Finish:
    pass


class Transition(NamedTuple):
    state: ScanState
    effects: Tuple[object, ...]


def derive_state(games: Sequence[Game], now: float) -> ScanState:
    """State implied by the game list at position ``now``"""
    if now <= 0:
        return ScanState.FINISHED
    if awaiting_start(games):
        return ScanState.EXPECTING_START
    return ScanState.EXPECTING_BOUNDARY


def transition(state: ScanState, classification: Classification, now: float, step: float) -> Transition:
    """
    Compute the next state and the effects for one visited position.

    A ``Backfill`` effect is always followed by the generic ``Seek``; the
    scanner drops that seek when the backfill produced a timer jump.

    Args:
        state: Current state
        classification: Classification of the frame at ``now``
        now: Current position in seconds
        step: Generic backward step in seconds

    Returns:
        Transition with the new state and the ordered effects
    """
    if state is ScanState.FINISHED or now <= 0:
        return Transition(ScanState.FINISHED, (Finish(),))

    step_back = Seek(max(0.0, now - step))
    kind = classification.kind

    if state is ScanState.EXPECTING_BOUNDARY:
        if kind in (FrameKind.SCORE, FrameKind.END):
            return Transition(ScanState.EXPECTING_START, (StartGame(classification.mode, kind), step_back))
        return Transition(state, (step_back,))

    # EXPECTING_START
    if kind in (FrameKind.LOADING, FrameKind.INTRO):
        return Transition(ScanState.EXPECTING_BOUNDARY, (ResolveStart(now + START_OFFSET), step_back))
    if kind is FrameKind.PLAYING:
        return Transition(state, (Backfill(), step_back))

    # A score frame before the start was found does not open another game
    return Transition(state, (step_back,))


def timer_jump(game: Game, now: float, text: str, match_minutes: int = 10) -> Optional[Seek]:
    """
    Jump close to the game start using the in-game countdown.

    The countdown starts at ``match_minutes``:00, so "MM:SS" read at ``now``
    means the game began ``(match_minutes - MM) * 60 - SS`` seconds earlier.

    Args:
        game: Game being resolved; only inspected, never modified
        now: Position the timer was read at
        text: OCR text of the timer box
        match_minutes: Match length in minutes

    Returns:
        Seek to the estimated start, or None if the game already jumped,
        the text is not "MM:SS" or the countdown has barely started
    """
    if game.jumped:
        return None

    parsed = parse_timer(text)
    if parsed is None:
        logger.debug(f"Unreadable timer: {text!r}")
        return None

    minutes, seconds = parsed
    if minutes > match_minutes - 1:
        return None

    difference = (match_minutes - minutes) * 60 - seconds
    # Never seek forward
    if difference <= 0:
        return None

    target = max(0.0, now - difference)
    logger.info(f"Timer {minutes:02d}:{seconds:02d} at {now:.0f}s, jumping to {target:.0f}s")
    return Seek(target)
