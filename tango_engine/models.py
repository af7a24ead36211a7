from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, List, Optional, Tuple

RC = Tuple[int, int]  # (row, col)


class CellValue(IntEnum):
    EMPTY = 0
    SUN = 1
    MOON = 2

    @property
    def symbol(self) -> str:
        return ".SM"[self]

    @property
    def label(self) -> str:
        return ("Empty", "Sun", "Moon")[self]


Grid = List[List[CellValue]]

EMPTY = CellValue.EMPTY
SUN = CellValue.SUN
MOON = CellValue.MOON


def opposite(v: CellValue) -> CellValue:
    if v == SUN:
        return MOON
    if v == MOON:
        return SUN
    return EMPTY


class RelationKind(str, Enum):
    EQUAL = "="
    OPPOSITE = "x"


@dataclass(frozen=True)
class Relation:
    """Edge constraint between (r, c) and its right (or, if vertical, lower) neighbour."""
    r: int
    c: int
    vertical: bool
    kind: RelationKind

    @property
    def key(self) -> Tuple[int, int, bool]:
        return (self.r, self.c, self.vertical)

    @property
    def other(self) -> RC:
        if self.vertical:
            return (self.r + 1, self.c)
        return (self.r, self.c + 1)

    def holds(self, a: CellValue, b: CellValue) -> bool:
        """True unless both endpoints are placed and disagree with the kind."""
        if a == EMPTY or b == EMPTY:
            return True
        if self.kind == RelationKind.EQUAL:
            return a == b
        return a != b


@dataclass(frozen=True)
class ValidationResult:
    violating_cells: FrozenSet[RC] = frozenset()
    message: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return not self.violating_cells


class HintRule(str, Enum):
    TRIPLE = "triple"
    BALANCE = "balance"
    RELATION_EQUAL = "relation-equal"
    RELATION_OPPOSITE = "relation-opposite"


@dataclass(frozen=True)
class Hint:
    cell: RC
    value: CellValue
    rule: HintRule
    reason: str


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def _missing_(cls, value):
        # case-insensitive lookup: "easy" -> EASY
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return None


@dataclass(frozen=True)
class DifficultyConfig:
    fill_factor: float     # share of cells the carver tries to leave filled
    relation_chance: float  # probability of a relation on each adjacent pair


DIFFICULTY_CONFIG: Dict[Difficulty, DifficultyConfig] = {
    Difficulty.EASY: DifficultyConfig(fill_factor=0.55, relation_chance=0.4),
    Difficulty.MEDIUM: DifficultyConfig(fill_factor=0.40, relation_chance=0.3),
    Difficulty.HARD: DifficultyConfig(fill_factor=0.25, relation_chance=0.2),
}


@dataclass(frozen=True)
class GeneratedPuzzle:
    size: int
    puzzle: Grid
    relations: List[Relation]
    solution: Grid


class GenerationFailure(RuntimeError):
    """The search could not produce a base solution for an empty grid."""
