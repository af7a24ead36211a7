from __future__ import annotations
from typing import Iterable, List, Optional, Sequence, Set

from tango_engine.board import check_grid, check_relations, is_full
from tango_engine.models import EMPTY, MOON, SUN, RC, CellValue, Relation, RelationKind, ValidationResult

TRIPLE_MESSAGE = "No more than 2 adjacent symbols allowed"
EQUAL_MESSAGE = "Cells must be equal (=)"
OPPOSITE_MESSAGE = "Cells must be opposite (x)"


def can_place(grid: Sequence[Sequence[int]], r: int, c: int, value: int) -> bool:
    """
    False if value at (r, c) would complete three identical symbols in one of the
    six windows containing (r, c). Balance and relations are not checked here.
    The cell itself is never read, so the check also works for a placed cell.
    """
    size = len(grid)
    row = grid[r]

    # horizontal
    if c >= 2 and row[c - 1] == value and row[c - 2] == value:
        return False
    if c < size - 2 and row[c + 1] == value and row[c + 2] == value:
        return False
    if 1 <= c < size - 1 and row[c - 1] == value and row[c + 1] == value:
        return False

    # vertical
    if r >= 2 and grid[r - 1][c] == value and grid[r - 2][c] == value:
        return False
    if r < size - 2 and grid[r + 1][c] == value and grid[r + 2][c] == value:
        return False
    if 1 <= r < size - 1 and grid[r - 1][c] == value and grid[r + 1][c] == value:
        return False

    return True


def _overflow_message(unit: str, index: int, value: CellValue) -> str:
    return f"{unit} {index+1} has too many {value.label}s"


def validate(grid: Sequence[Sequence[int]], relations: Iterable[Relation] = ()) -> ValidationResult:
    """
    Scan the whole board and collect every offending cell.
    The message is the first violation met in this order:
      1) rows with more than size/2 of a symbol
      2) columns with more than size/2 of a symbol
      3) horizontal triples, row-major
      4) vertical triples, column-major
      5) relations, in declaration order
    """
    g = check_grid(grid)
    size = len(g)
    rels = check_relations(relations, size)
    target = size // 2

    bad: Set[RC] = set()
    message: Optional[str] = None

    def add(msg: str, cells: List[RC]) -> None:
        nonlocal message
        if message is None:
            message = msg
        bad.update(cells)

    # A) Row overflow
    for r in range(size):
        for value in (SUN, MOON):
            if sum(1 for v in g[r] if v == value) > target:
                add(_overflow_message("Row", r, value), [(r, c) for c in range(size)])

    # B) Column overflow
    for c in range(size):
        for value in (SUN, MOON):
            if sum(1 for r in range(size) if g[r][c] == value) > target:
                add(_overflow_message("Column", c, value), [(r, c) for r in range(size)])

    # C) Horizontal triples
    for r in range(size):
        for c in range(size - 2):
            v = g[r][c]
            if v != EMPTY and v == g[r][c + 1] == g[r][c + 2]:
                add(TRIPLE_MESSAGE, [(r, c), (r, c + 1), (r, c + 2)])

    # D) Vertical triples
    for c in range(size):
        for r in range(size - 2):
            v = g[r][c]
            if v != EMPTY and v == g[r + 1][c] == g[r + 2][c]:
                add(TRIPLE_MESSAGE, [(r, c), (r + 1, c), (r + 2, c)])

    # E) Relations
    for rel in rels:
        r2, c2 = rel.other
        if not rel.holds(g[rel.r][rel.c], g[r2][c2]):
            msg = EQUAL_MESSAGE if rel.kind == RelationKind.EQUAL else OPPOSITE_MESSAGE
            add(msg, [(rel.r, rel.c), (r2, c2)])

    return ValidationResult(frozenset(bad), message)


def is_solved(grid: Sequence[Sequence[int]], relations: Iterable[Relation] = ()) -> bool:
    if not is_full(check_grid(grid)):
        return False
    return validate(grid, relations).is_valid
