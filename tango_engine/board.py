from __future__ import annotations
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from tango_engine.models import (
    EMPTY, MOON, SUN, RC, CellValue, Grid, Relation, RelationKind,
)

RelationIndex = Dict[Tuple[int, int, bool], RelationKind]

_CHAR_TO_VALUE = {
    ".": EMPTY, "0": EMPTY,
    "S": SUN, "s": SUN, "1": SUN,
    "M": MOON, "m": MOON, "2": MOON,
}


def create_empty_grid(size: int) -> Grid:
    check_size(size)
    return [[EMPTY] * size for _ in range(size)]


def clone_grid(grid: Sequence[Sequence[int]]) -> Grid:
    return [[CellValue(v) for v in row] for row in grid]


def opposite_grid(grid: Sequence[Sequence[int]]) -> Grid:
    """Swap every Sun with a Moon and vice versa."""
    swap = {EMPTY: EMPTY, SUN: MOON, MOON: SUN}
    return [[swap[CellValue(v)] for v in row] for row in grid]


def is_full(grid: Sequence[Sequence[int]]) -> bool:
    return all(v != EMPTY for row in grid for v in row)


# ------------------ shape checks ------------------
def check_size(size: int) -> None:
    if not isinstance(size, int) or isinstance(size, bool):
        raise ValueError(f"Grid size must be an int, got {size!r}")
    if size < 4 or size % 2:
        raise ValueError(f"Grid size must be an even number >= 4, got {size}")


def check_grid(grid: Sequence[Sequence[int]]) -> Grid:
    """Validate the shape of a grid and return a normalised copy."""
    size = len(grid)
    check_size(size)
    out: Grid = []
    for r, row in enumerate(grid):
        if len(row) != size:
            raise ValueError(f"Row {r+1} has {len(row)} cells, expected {size}")
        cells = []
        for v in row:
            try:
                cells.append(CellValue(v))
            except ValueError:
                raise ValueError(f"Invalid cell value {v!r} in row {r+1}") from None
        out.append(cells)
    return out


def check_relations(relations: Iterable[Relation], size: int) -> List[Relation]:
    """Bounds and uniqueness check; returns the relations in declaration order."""
    seen = set()
    out: List[Relation] = []
    for rel in relations:
        r2, c2 = rel.other
        if not (0 <= rel.r < size and 0 <= rel.c < size and r2 < size and c2 < size):
            raise ValueError(f"Relation {relation_to_text(rel)} is outside a {size}x{size} grid")
        if rel.key in seen:
            raise ValueError(f"Duplicate relation for pair {relation_to_text(rel)}")
        seen.add(rel.key)
        out.append(rel)
    return out


def build_relation_index(relations: Iterable[Relation]) -> RelationIndex:
    return {rel.key: rel.kind for rel in relations}


# ------------------ text codec ------------------
def parse_grid(s: str) -> Grid:
    if not isinstance(s, str):
        raise ValueError(f"Grid text must be a string, got {type(s).__name__}")
    s = "".join(ch for ch in s if not ch.isspace() and ch != "/")
    size = math.isqrt(len(s))
    if size * size != len(s):
        raise ValueError(f"Expected a square number of cells after removing separators, got {len(s)}")
    check_size(size)
    grid: Grid = []
    for r in range(size):
        row: List[CellValue] = []
        for c in range(size):
            ch = s[r * size + c]
            if ch not in _CHAR_TO_VALUE:
                raise ValueError(f"Invalid char '{ch}' in grid.")
            row.append(_CHAR_TO_VALUE[ch])
        grid.append(row)
    return grid


def grid_to_text(grid: Sequence[Sequence[int]], sep: str = "") -> str:
    return sep.join("".join(CellValue(v).symbol for v in row) for row in grid)


def relation_to_text(rel: Relation) -> str:
    return f"{rel.r},{rel.c},{'v' if rel.vertical else 'h'},{rel.kind.value}"


def relations_to_text(relations: Iterable[Relation]) -> str:
    return ";".join(relation_to_text(rel) for rel in relations)


def parse_relations(s: Optional[str]) -> List[Relation]:
    relations: List[Relation] = []
    for item in (s or "").split(";"):
        item = item.strip()
        if not item:
            continue
        parts = [p.strip() for p in item.split(",")]
        if len(parts) != 4 or parts[2] not in ("h", "v"):
            raise ValueError(f"Invalid relation '{item}', expected r,c,h|v,=|x")
        try:
            r, c = int(parts[0]), int(parts[1])
            kind = RelationKind(parts[3])
        except ValueError:
            raise ValueError(f"Invalid relation '{item}', expected r,c,h|v,=|x") from None
        relations.append(Relation(r, c, parts[2] == "v", kind))
    return relations


def relation_to_dict(rel: Relation) -> dict:
    return {"r": rel.r, "c": rel.c, "vertical": rel.vertical, "kind": rel.kind.value}


def relation_from_dict(d: dict) -> Relation:
    try:
        r, c, vertical = d["r"], d["c"], d["vertical"]
        # JSON strings like "false" must not pass as booleans
        if not isinstance(vertical, bool):
            raise TypeError
        if any(isinstance(v, bool) or not isinstance(v, int) for v in (r, c)):
            raise TypeError
        return Relation(r, c, vertical, RelationKind(d["kind"]))
    except (KeyError, TypeError, ValueError):
        raise ValueError(f"Invalid relation object: {d!r}") from None


class Board:
    """
    Live grid seeded from a puzzle grid:
    - grid[r][c] = CellValue
    - cells that are non-Empty in the puzzle grid are locked
    """

    def __init__(self, puzzle: Sequence[Sequence[int]], current: Optional[Sequence[Sequence[int]]] = None):
        self.puzzle = check_grid(puzzle)
        self.size = len(self.puzzle)
        self.grid = check_grid(current) if current is not None else clone_grid(self.puzzle)
        if len(self.grid) != self.size:
            raise ValueError(f"Current grid is {len(self.grid)}x{len(self.grid)}, puzzle is {self.size}x{self.size}")

    @staticmethod
    def from_strings(puzzle_text: str, current_text: Optional[str] = None) -> "Board":
        puzzle = parse_grid(puzzle_text)
        current = parse_grid(current_text) if current_text is not None else None
        return Board(puzzle, current)

    def clone(self) -> "Board":
        return Board(self.puzzle, self.grid)

    def is_locked(self, r: int, c: int) -> bool:
        return self.puzzle[r][c] != EMPTY

    def tampered_cells(self) -> List[RC]:
        """Locked cells whose live value differs from the puzzle."""
        return [
            (r, c)
            for r in range(self.size)
            for c in range(self.size)
            if self.is_locked(r, c) and self.grid[r][c] != self.puzzle[r][c]
        ]

    def place(self, r: int, c: int, value: int) -> None:
        if self.is_locked(r, c):
            raise ValueError(f"Cell (r{r+1}, c{c+1}) is part of the puzzle and cannot be changed")
        self.grid[r][c] = CellValue(value)

    def clear(self, r: int, c: int) -> None:
        self.place(r, c, EMPTY)
