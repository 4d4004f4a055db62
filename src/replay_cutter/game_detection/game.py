"""
Game Records
One detected match and its two teams.
"""

import math
from typing import Dict, List, Optional

UNRESOLVED = -1

# Column order of exported game tables
EXPORT_COLUMNS = (
    'mode', 'start', 'end', 'readable_start', 'readable_end', 'duration',
    'map', 'orange_team', 'orange_score', 'blue_team', 'blue_score',
)


def readable_time(seconds: float) -> str:
    """
    Format seconds as H:MM:SS, omitting the hour when it is zero.

    The total is rounded half up to whole seconds before it is split.

    Examples:
        >>> readable_time(59)
        '00:59'
        >>> readable_time(3661)
        '1:01:01'
    """
    total = math.floor(seconds + 0.5)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)

    prefix = f"{hours}:" if hours != 0 else ''
    return f"{prefix}{minutes:02d}:{secs:02d}"


class Team:
    """A team as read from the HUD. Names are always stored uppercase."""

    def __init__(self, name: str = '', score: int = 0):
        self._name = ''
        self.name = name
        self.score = score
        self.players: List[str] = []

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str):
        self._name = (value or '').upper()

    def to_dict(self) -> Dict:
        return {'name': self.name, 'score': self.score, 'players': list(self.players)}

    def __repr__(self):
        return f"Team(name={self.name!r}, score={self.score})"


class Game:
    """
    One match found in the replay.

    ``end`` is always found before ``start`` because the replay is scanned
    backward. Both are seconds, -1 while unresolved.
    """

    def __init__(self, mode: int, end: float = UNRESOLVED, start: float = UNRESOLVED):
        self._mode = mode
        self.start = start
        self.end = end
        self.map = ''
        self.orange_team = Team()
        self.blue_team = Team()

        # The timer jump may only fire once per game
        self.jumped = False

        # Consumer bookkeeping
        self.checked = False
        self.splitted = False

    @property
    def mode(self) -> int:
        return self._mode

    @property
    def start_resolved(self) -> bool:
        return self.start != UNRESOLVED

    @property
    def end_resolved(self) -> bool:
        return self.end != UNRESOLVED

    @property
    def readable_start(self) -> str:
        return readable_time(self.start) if self.start_resolved else ''

    @property
    def readable_end(self) -> str:
        return readable_time(self.end) if self.end_resolved else ''

    @property
    def duration(self) -> Optional[float]:
        if self.start_resolved and self.end_resolved:
            return self.end - self.start
        return None

    def to_dict(self) -> Dict:
        """Flat representation for JSON/CSV export"""
        return {
            'mode': self.mode,
            'start': self.start,
            'end': self.end,
            'readable_start': self.readable_start,
            'readable_end': self.readable_end,
            'duration': self.duration,
            'map': self.map,
            'orange_team': self.orange_team.name,
            'orange_score': self.orange_team.score,
            'blue_team': self.blue_team.name,
            'blue_score': self.blue_team.score,
        }

    def __repr__(self):
        return (f"Game(mode={self.mode}, start={self.start}, end={self.end}, map={self.map!r}, "
                f"orange={self.orange_team!r}, blue={self.blue_team!r})")
