"""Replay Game Scanner.

Walks a replay backward and cuts it into games. Scanning from the end means
every game is first seen on its post-match score screen (which gives the HUD
mode, team names and scores), then followed back to its loading or intro
screen. Playing frames met on the way fill in the map and team names, and the
in-game countdown lets the scan jump straight to the start.

Key features:
- Pure frame classification and state transitions, effects applied here
- Timer jump skips most of a game's playing frames
- Pause/resume from another thread without losing the current frame
- Replacing the video source cancels the running scan
- JSON/CSV export of the detected games

Typical usage example:

    from replay_cutter.game_detection import scan_video, save_games

    result = scan_video('replay.mp4')
    if result.no_games_found:
        print("No games found")
    else:
        save_games(result.games, 'games.json')
"""

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np
import pandas as pd

from ..config import ScanSettings
from ..hud_extraction.map_resolver import resolve_map
from ..hud_extraction.modes import Box, get_mode
from ..hud_extraction.text_extractor import (
    DEFAULT_FILTER_CHAIN, PSM_SINGLE_BLOCK, PSM_SINGLE_LINE,
    HUDTextExtractor, clean_team_name, create_engines, parse_score
)
from ..utils.video_source import OpenCVVideoSource, VideoSource
from .frame_classifier import NOTHING, FrameKind, classify
from .game import EXPORT_COLUMNS, Game
from .scan_state import (
    Backfill, Finish, ResolveStart, ScanState, Seek, StartGame,
    derive_state, timer_jump, transition
)

logger = logging.getLogger(__name__)

# Score screens are static, the extra luminance pass helps on bright backgrounds
SCORE_FILTER_CHAIN = DEFAULT_FILTER_CHAIN + ('luminance',)

ProgressCallback = Callable[[int, int], None]


class ScanContext:
    """
    Everything a scan needs besides the video: OCR extractor, settings and
    the generation token used to cancel stale scans.
    """

    def __init__(self, extractor: HUDTextExtractor, settings: Optional[ScanSettings] = None):
        self.extractor = extractor
        self.settings = settings or ScanSettings()
        self.generation = 0
        self._lock = threading.Lock()

    def next_generation(self) -> int:
        """Invalidate every scan started before this call"""
        with self._lock:
            self.generation += 1
            return self.generation

    def is_current(self, token: int) -> bool:
        return token == self.generation


@dataclass
class ScanResult:
    """
    Outcome of a scan.

    Attributes:
        games: Detected games in chronological order
        elapsed: Wall time of the scan in seconds
        cancelled: True if the video source was replaced mid-scan
    """
    games: List[Game] = field(default_factory=list)
    elapsed: float = 0.0
    cancelled: bool = False

    @property
    def no_games_found(self) -> bool:
        return not self.games


class GameScanner:
    """
    Drive a backward scan over a video source.

    The scanner listens to the source's position notifications. Each
    notification is handled completely (classification, OCR, state change)
    before ``run`` issues the next seek, so handlers never nest.
    """

    def __init__(self,
                 source: VideoSource,
                 context: ScanContext,
                 on_progress: Optional[ProgressCallback] = None):
        """
        Initialize scanner.

        Args:
            source: Video to scan
            context: OCR extractor, settings and generation token
            on_progress: Called with (percent, games found) after each position
        """
        self.source = source
        self.context = context
        self.on_progress = on_progress

        self.games: List[Game] = []
        self.state = ScanState.EXPECTING_BOUNDARY

        self._pending: Optional[float] = None
        self._token = context.generation
        self._stale = False
        self._resume = threading.Event()
        self._resume.set()

        source.add_listener(self._on_position_changed)

    @property
    def settings(self) -> ScanSettings:
        return self.context.settings

    # =====================================================================
    # CONTROL
    # =====================================================================

    @property
    def paused(self) -> bool:
        return not self._resume.is_set()

    def pause(self):
        """Hold the scan on its current frame (safe to call from another thread)"""
        self._resume.clear()
        logger.info("Scan paused")

    def resume(self):
        self._resume.set()
        logger.info("Scan resumed")

    def replace_source(self, source: VideoSource):
        """
        Swap the video being scanned.

        A scan running on the previous source stops and OCR results still in
        flight are discarded. Call ``run`` again to scan the new source.
        """
        self.source.remove_listener(self._on_position_changed)
        self.context.next_generation()
        self.source = source
        source.add_listener(self._on_position_changed)
        logger.info("Video source replaced")

    # =====================================================================
    # DRIVER
    # =====================================================================

    def run(self) -> ScanResult:
        """
        Scan the whole video, last second first.

        Returns:
            ScanResult with a copy of the detected games
        """
        started = time.time()

        self.games = []
        self.state = ScanState.EXPECTING_BOUNDARY
        self._token = self.context.generation
        self._stale = False

        source = self.source
        duration = source.duration
        logger.info(f"Scanning {duration:.1f}s of video (step {self.settings.step}s)")

        target: Optional[float] = duration
        while target is not None:
            self._pending = None
            source.seek(target)

            if self._stale or not self.context.is_current(self._token):
                logger.info("Scan cancelled, video source was replaced")
                self._stale = True
                break

            previous, target = target, self._pending
            if target is not None and (target == previous or target >= duration):
                logger.warning(f"Scan stuck at {previous:.1f}s, stopping")
                break

        elapsed = time.time() - started
        games = [] if self._stale else list(self.games)

        if not self._stale:
            if games:
                logger.info(f"Found {len(games)} game(s) in {elapsed:.1f}s")
            else:
                logger.info("No games found")

        return ScanResult(games=games, elapsed=elapsed, cancelled=self._stale)

    def _on_position_changed(self, now: float):
        self._pending = self.process_position(now)

    def process_position(self, now: float) -> Optional[float]:
        """
        Handle one visited position.

        Args:
            now: Position the source just moved to

        Returns:
            Next position to visit, or None when the scan is over
        """
        token = self._token
        now = self._wait_while_paused(now)

        if not self.context.is_current(token):
            self._stale = True
            return None

        frame = self.source.frame
        state = derive_state(self.games, now)
        classification = classify(frame, self.games) if state is not ScanState.FINISHED else NOTHING
        result = transition(state, classification, now, self.settings.step)

        next_target = None
        for effect in result.effects:
            if isinstance(effect, StartGame):
                self._start_game(effect, frame, now, token)
            elif isinstance(effect, ResolveStart):
                self.games[0].start = effect.start
                logger.info(f"Game start resolved at {self.games[0].readable_start}")
            elif isinstance(effect, Backfill):
                jump = self._backfill(frame, now, token)
                if jump is not None:
                    next_target = jump.target
                    break
            elif isinstance(effect, Seek):
                next_target = effect.target
            elif isinstance(effect, Finish):
                next_target = None

        if not self.context.is_current(token):
            self._stale = True
            return None

        self.state = result.state
        self._report_progress(now)
        return next_target

    def _wait_while_paused(self, now: float) -> float:
        while self.paused:
            self._resume.wait(self.settings.pause_delay)
            now = self.source.current_time
        return now

    def _report_progress(self, now: float):
        if not self.on_progress:
            return
        duration = self.source.duration
        percent = 100 if duration <= 0 else math.ceil(100 - now / duration * 100)
        self.on_progress(percent, len(self.games))

    # =====================================================================
    # EFFECTS
    # =====================================================================

    def _read(self, frame: np.ndarray, region: Box, charset: str, psm: int, label: str,
              filter_chain=DEFAULT_FILTER_CHAIN) -> str:
        return self.context.extractor.extract_text(
            frame, region, charset, psm=psm, filter_chain=filter_chain, label=label
        )

    def _start_game(self, effect: StartGame, frame: np.ndarray, now: float, token: int):
        """Open a game from a score frame (names and scores) or an end frame (scores only)"""
        template = get_mode(effect.mode)
        game = Game(effect.mode, end=now)

        if effect.kind is FrameKind.SCORE:
            layout = template.score_frame
            orange_name = self._read(frame, layout.orange_name, 'basic', PSM_SINGLE_LINE,
                                     'score_orange_name', SCORE_FILTER_CHAIN)
            blue_name = self._read(frame, layout.blue_name, 'basic', PSM_SINGLE_LINE,
                                   'score_blue_name', SCORE_FILTER_CHAIN)
            game.orange_team.name = self.settings.orange_team_name or clean_team_name(orange_name) or ''
            game.blue_team.name = self.settings.blue_team_name or clean_team_name(blue_name) or ''
            chain = SCORE_FILTER_CHAIN
        else:
            layout = template.end_frame
            chain = DEFAULT_FILTER_CHAIN

        orange_score = parse_score(self._read(frame, layout.orange_score, 'number', PSM_SINGLE_LINE,
                                              'orange_score', chain))
        blue_score = parse_score(self._read(frame, layout.blue_score, 'number', PSM_SINGLE_LINE,
                                            'blue_score', chain))

        if not self.context.is_current(token):
            return

        if orange_score is not None:
            game.orange_team.score = orange_score
        if blue_score is not None:
            game.blue_team.score = blue_score

        self.games.insert(0, game)
        logger.info(f"Game found ending at {game.readable_end}: {game.orange_team.name or '?'} "
                    f"{game.orange_team.score} - {game.blue_team.score} {game.blue_team.name or '?'}")

    def _backfill(self, frame: np.ndarray, now: float, token: int) -> Optional[Seek]:
        """
        Fill in what the front game is missing from a playing frame.

        Returns:
            Seek produced by the timer, or None to keep the generic step
        """
        game = self.games[0]
        layout = get_mode(game.mode).game_frame

        map_name = ''
        orange_name = blue_name = None
        if not game.map:
            map_name = resolve_map(self._read(frame, layout.map, 'letter', PSM_SINGLE_LINE, 'map'))
        if not game.orange_team.name:
            orange_name = clean_team_name(self._read(frame, layout.orange_name, 'basic',
                                                     PSM_SINGLE_BLOCK, 'orange_name'))
        if not game.blue_team.name:
            blue_name = clean_team_name(self._read(frame, layout.blue_name, 'basic',
                                                   PSM_SINGLE_BLOCK, 'blue_name'))

        if not self.context.is_current(token):
            return None

        if map_name:
            game.map = map_name
            logger.info(f"Map: {map_name}")
        if orange_name:
            game.orange_team.name = orange_name
        if blue_name:
            game.blue_team.name = blue_name

        if not (game.map and game.orange_team.name and game.blue_team.name) or game.jumped:
            return None

        text = self._read(frame, layout.timer, 'time', PSM_SINGLE_LINE, 'timer')
        if not self.context.is_current(token):
            return None

        jump = timer_jump(game, now, text, self.settings.match_minutes)
        if jump is not None:
            game.jumped = True
        return jump


def scan_video(video_path: str,
               settings: Optional[ScanSettings] = None,
               debug_dir: Optional[str] = None,
               on_progress: Optional[ProgressCallback] = None) -> ScanResult:
    """
    Convenience function to scan a video file with Tesseract.

    Args:
        video_path: Path to video file
        settings: Scan settings (default: loaded from the environment)
        debug_dir: If provided, save every OCR crop there
        on_progress: Progress callback (percent, games found)

    Returns:
        ScanResult

    Raises:
        ValueError: If the video cannot be opened
    """
    settings = settings or ScanSettings.from_env()
    settings.apply()

    extractor = HUDTextExtractor(create_engines(settings.ocr_lang), debug_dir=debug_dir)
    context = ScanContext(extractor, settings)

    with OpenCVVideoSource(video_path) as source:
        return GameScanner(source, context, on_progress=on_progress).run()


def save_games(games: List[Game], output_path: str):
    """
    Save detected games to JSON or CSV.

    Args:
        games: Games to save
        output_path: Output file, format picked from the extension

    Raises:
        ValueError: If the extension is neither .json nor .csv
    """
    suffix = Path(output_path).suffix.lower()
    if suffix not in ('.json', '.csv'):
        raise ValueError(f"Unsupported output format: {output_path} (use .json or .csv)")

    df = pd.DataFrame([game.to_dict() for game in games], columns=list(EXPORT_COLUMNS))

    if suffix == '.csv':
        df.to_csv(output_path, index=False)
    else:
        df.to_json(output_path, orient='records', indent=2)

    logger.info(f"Saved {len(games)} game(s) to {output_path}")
