"""
Unit tests for the map name resolver.
"""

import pytest

from replay_cutter.hud_extraction.map_resolver import MAPS, find_map, get_map, resolve_map


@pytest.mark.unit
class TestResolveMap:
    """Test suite for OCR text to map name resolution."""

    @pytest.mark.parametrize("text,expected", [
        ("artefact", "Artefact"),
        ("HELIOS STATION", "Helios Station"),
        ("lunar", "Lunar Outpost"),
        ("qutlaw", "Outlaw"),
        ("the cliff", "The Cliff"),
        ("THE ROCK", "The Rock"),
    ])
    def test_known_maps(self, text, expected):
        assert resolve_map(text) == expected

    def test_case_and_newline_insensitive(self):
        assert resolve_map("At\nlantis") == resolve_map("ATLANTIS") == "Atlantis"
        assert resolve_map("SILVA\r\n") == "Silva"

    def test_no_match_is_empty(self):
        assert resolve_map("") == ""
        assert resolve_map("unknown arena") == ""

    def test_tokens_must_match_whole_words(self):
        assert resolve_map("rocky") == ""

    def test_first_entry_wins(self):
        # Tokens of two maps: the earlier entry in the list wins
        assert resolve_map("engine ceres") == "Ceres"
        assert resolve_map("horizon artefact") == "Artefact"

    def test_find_map_returns_margins(self):
        game_map = find_map("outlaw")
        assert game_map.margins == (3, 5, 5, 3)

    def test_get_map(self):
        assert get_map("Polaris").keywords == ("polaris",)
        assert get_map("Nowhere") is None

    def test_map_names_unique(self):
        names = [game_map.name for game_map in MAPS]
        assert len(names) == len(set(names))
