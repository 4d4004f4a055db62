"""
Scan Configuration
Settings for a replay scan, loaded from the environment / .env file.

Example .env:
    ORANGE_TEAM_NAME=WOLVES
    BLUE_TEAM_NAME=
    MATCH_MINUTES=10
    SCAN_STEP=2
    PAUSE_DELAY=1
    TESSERACT_CMD=/usr/local/bin/tesseract
    OCR_LANG=eng
"""

import os
from dataclasses import dataclass
from typing import Optional

import pytesseract
from dotenv import load_dotenv

load_dotenv()


def _get_number(name: str, default: float, cast=float, minimum: float = 0.0):
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default

    try:
        value = cast(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None

    if value <= minimum:
        raise ValueError(f"{name} must be greater than {minimum}, got {value}")
    return value


@dataclass
class ScanSettings:
    """
    Tunables of the game scanner.

    Attributes:
        orange_team_name: Overrides the orange team name read on score frames
        blue_team_name: Overrides the blue team name read on score frames
        match_minutes: Length of a match, the in-game countdown starts there
        step: Seconds between two visited positions
        pause_delay: Seconds to wait between checks while the scan is paused
        tesseract_cmd: Path to the tesseract binary (None uses PATH)
        ocr_lang: Tesseract language
    """
    orange_team_name: str = ''
    blue_team_name: str = ''
    match_minutes: int = 10
    step: float = 2.0
    pause_delay: float = 1.0
    tesseract_cmd: Optional[str] = None
    ocr_lang: str = 'eng'

    @classmethod
    def from_env(cls) -> 'ScanSettings':
        """
        Build settings from environment variables.

        Raises:
            ValueError: If a numeric variable is malformed or not positive
        """
        return cls(
            orange_team_name=os.getenv('ORANGE_TEAM_NAME', '').strip(),
            blue_team_name=os.getenv('BLUE_TEAM_NAME', '').strip(),
            match_minutes=_get_number('MATCH_MINUTES', 10, cast=int),
            step=_get_number('SCAN_STEP', 2.0),
            pause_delay=_get_number('PAUSE_DELAY', 1.0),
            tesseract_cmd=os.getenv('TESSERACT_CMD') or None,
            ocr_lang=os.getenv('OCR_LANG') or 'eng',
        )

    def apply(self):
        """Point pytesseract at the configured binary"""
        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
