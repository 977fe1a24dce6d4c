"""
Convention phases and geographic waves

A convention moves upcoming -> wave1-nominations -> wave1-voting -> ...
-> wave6-voting -> completed. The tag string is what gets stored; code
works with ConventionPhase values.
"""

import enum
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

# Waves run west to east
WAVES: List[Dict] = [
    {"wave": 1, "name": "Pacific", "provinces": ["BC", "YT"], "color": "#00d4aa"},
    {"wave": 2, "name": "Mountain", "provinces": ["AB", "NT"], "color": "#00c4ff"},
    {"wave": 3, "name": "Prairie", "provinces": ["SK", "MB", "NU"], "color": "#ffb347"},
    {"wave": 4, "name": "Central", "provinces": ["ON"], "color": "#ff6b6b"},
    {"wave": 5, "name": "Quebec", "provinces": ["QC"], "color": "#a855f7"},
    {"wave": 6, "name": "Atlantic", "provinces": ["NB", "NS", "PE", "NL"], "color": "#3b82f6"},
]

WAVE_PROVINCES: Dict[int, List[str]] = {w["wave"]: w["provinces"] for w in WAVES}

WAVE_NAMES: Dict[int, str] = {
    1: "Pacific (BC, Yukon)",
    2: "Mountain (Alberta, NWT)",
    3: "Prairie (SK, MB, Nunavut)",
    4: "Central (Ontario)",
    5: "Quebec",
    6: "Atlantic (NB, NS, PE, NL)",
}

FIRST_WAVE = 1
LAST_WAVE = len(WAVES)


def wave_for_province(code: Optional[str]) -> Optional[int]:
    """Which wave a province code belongs to"""
    if not code:
        return None
    for wave, provinces in WAVE_PROVINCES.items():
        if code.upper() in provinces:
            return wave
    return None


class PhaseKind(str, enum.Enum):
    UPCOMING = "upcoming"
    NOMINATIONS = "nominations"
    VOTING = "voting"
    COMPLETED = "completed"


_WAVE_TAG = re.compile(r"^wave([1-9]\d*)-(nominations|voting)$")


@dataclass(frozen=True)
class ConventionPhase:
    """Tagged phase: a kind plus the wave it applies to (wave phases only)"""

    kind: PhaseKind
    wave: Optional[int] = None

    def __post_init__(self):
        in_wave = self.kind in (PhaseKind.NOMINATIONS, PhaseKind.VOTING)
        if in_wave and (self.wave is None or not FIRST_WAVE <= self.wave <= LAST_WAVE):
            raise ValueError(f"Invalid wave for {self.kind.value} phase: {self.wave}")
        if not in_wave and self.wave is not None:
            raise ValueError(f"Phase {self.kind.value} does not take a wave")

    @classmethod
    def upcoming(cls) -> "ConventionPhase":
        return cls(PhaseKind.UPCOMING)

    @classmethod
    def nominations(cls, wave: int) -> "ConventionPhase":
        return cls(PhaseKind.NOMINATIONS, wave)

    @classmethod
    def voting(cls, wave: int) -> "ConventionPhase":
        return cls(PhaseKind.VOTING, wave)

    @classmethod
    def completed(cls) -> "ConventionPhase":
        return cls(PhaseKind.COMPLETED)

    @classmethod
    def parse(cls, tag: str) -> "ConventionPhase":
        """Parse a stored tag such as 'wave3-voting'"""
        tag = (tag or "").strip().lower()
        if tag == PhaseKind.UPCOMING.value:
            return cls.upcoming()
        if tag == PhaseKind.COMPLETED.value:
            return cls.completed()
        match = _WAVE_TAG.match(tag)
        if not match:
            raise ValueError(f"Unknown convention phase: {tag!r}")
        return cls(PhaseKind(match.group(2)), int(match.group(1)))

    @property
    def tag(self) -> str:
        if self.wave is None:
            return self.kind.value
        return f"wave{self.wave}-{self.kind.value}"

    def accepts_nominations(self, wave: Optional[int] = None) -> bool:
        """True during a nominations sub-phase (optionally of one particular wave)"""
        if self.kind != PhaseKind.NOMINATIONS:
            return False
        return wave is None or self.wave == wave

    def is_voting(self, wave: Optional[int] = None) -> bool:
        if self.kind != PhaseKind.VOTING:
            return False
        return wave is None or self.wave == wave

    def next(self) -> "ConventionPhase":
        """The phase an admin 'advance' moves to"""
        if self.kind == PhaseKind.UPCOMING:
            return ConventionPhase.nominations(FIRST_WAVE)
        if self.kind == PhaseKind.NOMINATIONS:
            return ConventionPhase.voting(self.wave)
        if self.kind == PhaseKind.VOTING:
            if self.wave >= LAST_WAVE:
                return ConventionPhase.completed()
            return ConventionPhase.nominations(self.wave + 1)
        return self

    def __str__(self) -> str:
        return self.tag


VALID_STATUSES: List[str] = (
    [PhaseKind.UPCOMING.value]
    + [ConventionPhase(kind, wave).tag
       for wave in range(FIRST_WAVE, LAST_WAVE + 1)
       for kind in (PhaseKind.NOMINATIONS, PhaseKind.VOTING)]
    + [PhaseKind.COMPLETED.value]
)
