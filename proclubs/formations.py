"""
Formation catalog for lineups.
Every formation lists exactly 11 pitch positions, goalkeeper first.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

LINEUP_SIZE = 11


@dataclass(frozen=True)
class Formation:
    name: str
    category: str
    positions: tuple[str, ...]

    def position_counts(self) -> Counter:
        return Counter(self.positions)


_FORMATION_LIST: list[Formation] = [
    # Community favorites
    Formation("4-2-3-1 Wide", "Community Favorite",
              ("GK", "RB", "CB", "CB", "LB", "CDM", "CDM", "RW", "CAM", "LW", "ST")),
    Formation("4-4-2 Flat", "Community Favorite",
              ("GK", "RB", "CB", "CB", "LB", "RM", "CM", "CM", "LM", "ST", "ST")),
    Formation("4-5-1 Flat", "Community Favorite",
              ("GK", "RB", "CB", "CB", "LB", "RM", "CM", "CM", "CM", "LM", "ST")),
    Formation("5-2-1-2", "Community Favorite",
              ("GK", "RWB", "CB", "CB", "CB", "LWB", "CM", "CM", "CAM", "ST", "ST")),
    # Defensive
    Formation("4-1-4-1", "Defensive",
              ("GK", "RB", "CB", "CB", "LB", "CDM", "RM", "CM", "CM", "LM", "ST")),
    Formation("5-3-2", "Defensive",
              ("GK", "RWB", "CB", "CB", "CB", "LWB", "CM", "CM", "CM", "ST", "ST")),
    # Balanced
    Formation("4-2-3-1", "Balanced",
              ("GK", "RB", "CB", "CB", "LB", "CDM", "CDM", "RW", "CAM", "LW", "ST")),
    Formation("4-3-3 Holding", "Balanced",
              ("GK", "RB", "CB", "CB", "LB", "CDM", "CM", "CM", "RW", "ST", "LW")),
    Formation("3-5-2", "Balanced",
              ("GK", "CB", "CB", "CB", "RWB", "CM", "CM", "CM", "LWB", "ST", "ST")),
    # Attacking
    Formation("4-3-3", "Attacking",
              ("GK", "RB", "CB", "CB", "LB", "CM", "CM", "CM", "RW", "ST", "LW")),
    Formation("4-1-2-1-2 Narrow", "Attacking",
              ("GK", "RB", "CB", "CB", "LB", "CDM", "CM", "CM", "CAM", "ST", "ST")),
    Formation("3-4-3", "Attacking",
              ("GK", "CB", "CB", "CB", "RM", "CM", "CM", "LM", "RW", "ST", "LW")),
]

FORMATIONS: dict[str, Formation] = {f.name: f for f in _FORMATION_LIST}


def get_formation(name: str) -> Formation | None:
    return FORMATIONS.get(name)


def list_formations() -> list[Formation]:
    return list(_FORMATION_LIST)
