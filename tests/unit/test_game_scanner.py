"""
Unit tests for the game scanner.

Replays are simulated with a scripted video source and fake OCR engines, so
these tests run without video files or tesseract.
"""

import csv
import json
import threading

import pytest

from conftest import (
    FakeEngine, FakeVideoSource, blank, frames_at, make_engines, make_scanner,
    paint_end_frame, paint_intro_frame, paint_loading_frame, paint_playing_frame,
    paint_score_frame
)
from replay_cutter.config import ScanSettings
from replay_cutter.game_detection.game import Game
from replay_cutter.game_detection.game_scanner import ScanResult, save_games
from replay_cutter.game_detection.scan_state import ScanState
from replay_cutter.hud_extraction.text_extractor import PSM_SINGLE_BLOCK


@pytest.mark.unit
class TestScanScenarios:
    """Test suite for complete scans over scripted replays."""

    def test_single_game(self):
        source = FakeVideoSource(600, frames_at({
            550: paint_score_frame(1),
            500: paint_loading_frame(1),
        }))
        engines = make_engines(basic=['wolves', 'bears'], number=['45', '38'])

        result = make_scanner(source, engines).run()

        assert not result.no_games_found
        assert len(result.games) == 1
        game = result.games[0]
        assert (game.mode, game.end, game.start) == (1, 550, 502)
        assert game.orange_team.name == 'WOLVES'
        assert game.orange_team.score == 45
        assert game.blue_team.name == 'BEARS'
        assert game.blue_team.score == 38

    def test_empty_replay(self):
        source = FakeVideoSource(200, frames_at({}))

        result = make_scanner(source).run()

        assert result.no_games_found
        assert result.games == []
        assert source.seeks[0] == 200
        assert source.seeks[-1] == 0

    def test_scan_starts_at_end_and_steps_back(self):
        source = FakeVideoSource(10, frames_at({}))
        make_scanner(source).run()
        assert source.seeks == [10, 8, 6, 4, 2, 0]

    def test_custom_step(self):
        source = FakeVideoSource(10, frames_at({}))
        make_scanner(source, settings=ScanSettings(step=5.0)).run()
        assert source.seeks == [10, 5, 0]

    def test_two_games_list_invariants(self):
        source = FakeVideoSource(1200, frames_at({
            1100: paint_score_frame(1),
            900: paint_loading_frame(1),
            500: paint_score_frame(2),
            300: paint_intro_frame(2),
        }))
        holder = {}

        def check_invariants(percent, games_found):
            games = holder['scanner'].games
            unresolved = [i for i, game in enumerate(games) if not game.start_resolved]
            assert unresolved in ([], [0])

        scanner = make_scanner(source, make_engines(number='1'), on_progress=check_invariants)
        holder['scanner'] = scanner
        result = scanner.run()

        assert [(g.mode, g.start, g.end) for g in result.games] == [(2, 302, 500), (1, 902, 1100)]
        ends = [game.end for game in result.games]
        assert ends == sorted(ends)

    def test_game_without_start(self):
        source = FakeVideoSource(100, frames_at({50: paint_score_frame(1)}))

        result = make_scanner(source).run()

        assert len(result.games) == 1
        assert result.games[0].end == 50
        assert not result.games[0].start_resolved

    def test_result_is_a_copy(self):
        source = FakeVideoSource(100, frames_at({50: paint_score_frame(1)}))
        scanner = make_scanner(source)

        result = scanner.run()
        scanner.games.clear()

        assert len(result.games) == 1


@pytest.mark.unit
class TestBoundaryExtraction:
    """Test suite for OCR on score and end frames."""

    def test_team_name_overrides(self):
        source = FakeVideoSource(100, frames_at({50: paint_score_frame(1)}))
        settings = ScanSettings(orange_team_name='ALPHA')

        result = make_scanner(source, make_engines(basic='wolves'), settings).run()

        assert result.games[0].orange_team.name == 'ALPHA'
        assert result.games[0].blue_team.name == 'WOLVES'

    def test_implausible_score_discarded(self):
        source = FakeVideoSource(100, frames_at({50: paint_score_frame(1)}))

        result = make_scanner(source, make_engines(number=['250', '7'])).run()

        assert result.games[0].orange_team.score == 0
        assert result.games[0].blue_team.score == 7

    def test_end_frame_reads_scores_only(self):
        source = FakeVideoSource(100, frames_at({50: paint_end_frame()}))
        engines = make_engines(basic='never', number='12')

        result = make_scanner(source, engines).run()

        game = result.games[0]
        assert game.mode == 2
        assert game.orange_team.score == 12
        assert game.orange_team.name == ''
        assert engines['basic'].calls == []

    def test_score_frame_tries_luminance_filter(self):
        source = FakeVideoSource(100, frames_at({50: paint_score_frame(1)}))
        engines = make_engines()

        make_scanner(source, engines).run()

        # Two names, four filter variants each
        assert len(engines['basic'].calls) == 8


@pytest.mark.unit
class TestPlayingFrames:
    """Test suite for backfill and the timer jump."""

    def test_backfill_from_playing_frame(self):
        source = FakeVideoSource(600, frames_at({520: paint_playing_frame(1)}))
        engines = make_engines(basic='wolves', letter='helios station')
        scanner = make_scanner(source, engines)
        scanner.games = [Game(1, end=550)]

        source.seek(520)

        game = scanner.games[0]
        assert game.map == 'Helios Station'
        assert game.orange_team.name == 'WOLVES'
        assert game.blue_team.name == 'WOLVES'
        assert not game.jumped
        assert all(call['psm'] == PSM_SINGLE_BLOCK for call in engines['basic'].calls)
        assert scanner._pending == 518

    def test_timer_not_read_until_names_known(self):
        source = FakeVideoSource(600, frames_at({520: paint_playing_frame(1)}))
        engines = make_engines(letter='outlaw', time='07:15')
        scanner = make_scanner(source, engines)
        scanner.games = [Game(1, end=550)]

        source.seek(520)

        assert engines['time'].calls == []
        assert scanner._pending == 518

    def test_timer_jump(self):
        score, playing, loading, empty = paint_score_frame(1), paint_playing_frame(1), paint_loading_frame(1), blank()

        def frame_at(t):
            if abs(t - 350) < 0.5:
                return score
            if abs(t - 300) < 0.5:
                return playing
            if 120 <= t <= 134:
                return loading
            return empty

        source = FakeVideoSource(400, frame_at)
        engines = make_engines(basic=['wolves', 'bears'], number='3', letter='outlaw', time='07:15')

        result = make_scanner(source, engines).run()

        game = result.games[0]
        assert game.jumped
        assert game.map == 'Outlaw'
        assert 135 in source.seeks
        assert 298 not in source.seeks
        assert game.start == 135

    def test_timer_jump_only_once(self):
        playing, loading = paint_playing_frame(1), paint_loading_frame(1)
        score, empty = paint_score_frame(1), blank()

        def frame_at(t):
            if abs(t - 350) < 0.5:
                return score
            if 200 < t <= 300:
                return playing
            if abs(t - 200) < 0.5:
                return loading
            return empty

        source = FakeVideoSource(400, frame_at)
        engines = make_engines(basic=['wolves', 'bears'], letter='outlaw', time='09:30')

        result = make_scanner(source, engines).run()

        assert len(engines['time'].calls) == 1
        assert 270 in source.seeks
        assert result.games[0].start == 202

    def test_end_frame_game_backfilled_from_its_layout(self):
        source = FakeVideoSource(600, frames_at({
            550: paint_end_frame(),
            520: paint_playing_frame(2),
        }))
        engines = make_engines(basic='wolves', number='12', letter='helios station')

        result = make_scanner(source, engines).run()

        game = result.games[0]
        assert game.mode == 2
        assert engines['letter'].calls
        assert game.map == 'Helios Station'
        assert game.orange_team.name == 'WOLVES'

    def test_out_of_range_timer_does_not_stop_scan(self):
        source = FakeVideoSource(400, frames_at({
            396: paint_score_frame(1),
            390: paint_playing_frame(1),
            300: paint_loading_frame(1),
            200: paint_score_frame(1),
        }))
        engines = make_engines(basic='wolves', number='3', letter='outlaw', time='09:99')

        result = make_scanner(source, engines).run()

        assert len(engines['time'].calls) == 1
        assert len(result.games) == 2
        assert [game.end for game in result.games] == [200, 396]
        assert result.games[1].start == 302
        assert not result.games[1].jumped
        assert all(seek <= 400 for seek in source.seeks)

    def test_malformed_timer_keeps_stepping(self):
        source = FakeVideoSource(600, frames_at({520: paint_playing_frame(1)}))
        engines = make_engines(basic='wolves', letter='outlaw', time='7 15')
        scanner = make_scanner(source, engines)
        scanner.games = [Game(1, end=550)]

        source.seek(520)

        assert not scanner.games[0].jumped
        assert scanner._pending == 518


@pytest.mark.unit
class TestScanControl:
    """Test suite for progress, pause, cancellation and the stuck guard."""

    def test_progress(self):
        source = FakeVideoSource(10, frames_at({}))
        progress = []

        make_scanner(source, on_progress=lambda percent, games: progress.append(percent)).run()

        assert progress[0] == 0
        assert progress[-1] == 100
        assert progress == sorted(progress)

    def test_pause_rereads_position(self):
        source = FakeVideoSource(600, frames_at({}))
        scanner = make_scanner(source, settings=ScanSettings(pause_delay=0.01))

        scanner.pause()
        source.current_time = 200
        threading.Timer(0.05, scanner.resume).start()

        assert scanner.process_position(300) == 198
        assert not scanner.paused

    def test_not_paused(self):
        source = FakeVideoSource(600, frames_at({}))
        scanner = make_scanner(source)
        assert scanner.process_position(300) == 298

    def test_replacing_source_cancels_scan(self):
        source = FakeVideoSource(600, frames_at({550: paint_score_frame(1)}))
        replacement = FakeVideoSource(20, frames_at({}))
        holder = {}

        engines = make_engines(number='3')
        engines['basic'] = FakeEngine('wolves', on_call=lambda: holder['scanner'].replace_source(replacement))
        scanner = make_scanner(source, engines)
        holder['scanner'] = scanner

        result = scanner.run()

        assert result.cancelled
        assert result.games == []
        assert source.seeks[-1] == 550
        assert scanner.source is replacement

        # The replacement is scanned by the next run
        engines['basic'].on_call = None
        second = scanner.run()
        assert not second.cancelled
        assert replacement.seeks[0] == 20

    def test_stuck_scan_stops(self):
        source = FakeVideoSource(100, frames_at({}))
        result = make_scanner(source, settings=ScanSettings(step=0.0)).run()

        assert source.seeks == [100]
        assert result.no_games_found

    def test_zero_duration(self):
        source = FakeVideoSource(0, frames_at({}))
        scanner = make_scanner(source)

        result = scanner.run()

        assert source.seeks == [0]
        assert scanner.state is ScanState.FINISHED
        assert result.no_games_found


@pytest.mark.unit
class TestSaveGames:
    """Test suite for JSON/CSV export."""

    def make_games(self):
        game = Game(1, end=550, start=502)
        game.map = 'Outlaw'
        game.orange_team.name = 'wolves'
        game.orange_team.score = 45
        return [game]

    def test_json(self, temp_output_dir):
        path = temp_output_dir / 'games.json'
        save_games(self.make_games(), str(path))

        with open(path) as f:
            data = json.load(f)

        assert data[0]['start'] == 502
        assert data[0]['readable_end'] == '09:10'
        assert data[0]['orange_team'] == 'WOLVES'

    def test_csv(self, temp_output_dir):
        path = temp_output_dir / 'games.csv'
        save_games(self.make_games(), str(path))

        with open(path, newline='') as f:
            rows = list(csv.DictReader(f))

        assert rows[0]['map'] == 'Outlaw'
        assert rows[0]['orange_score'] == '45'

    def test_empty_csv_has_header(self, temp_output_dir):
        path = temp_output_dir / 'games.csv'
        save_games([], str(path))
        assert path.read_text().startswith('mode,start,end')

    def test_unsupported_format(self, temp_output_dir):
        with pytest.raises(ValueError, match='Unsupported'):
            save_games(self.make_games(), str(temp_output_dir / 'games.xlsx'))


@pytest.mark.unit
def test_scan_result_no_games_found():
    assert ScanResult().no_games_found
    assert not ScanResult(games=[Game(1, end=5)]).no_games_found
