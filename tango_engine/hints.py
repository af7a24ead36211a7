from __future__ import annotations
from typing import Iterable, List, Optional, Sequence

from tango_engine.board import check_grid, check_relations
from tango_engine.models import (
    EMPTY, MOON, SUN, Grid, Hint, HintRule, Relation, RelationKind, opposite,
)
from tango_engine.rules import can_place


# ------------------ rule finders ------------------
def hint_triple(grid: Grid) -> Optional[Hint]:
    size = len(grid)
    for r in range(size):
        for c in range(size):
            if grid[r][c] != EMPTY:
                continue
            sun_ok = can_place(grid, r, c, SUN)
            moon_ok = can_place(grid, r, c, MOON)
            if not sun_ok and moon_ok:
                return Hint((r, c), MOON, HintRule.TRIPLE, "Avoids three Suns in a row")
            if sun_ok and not moon_ok:
                return Hint((r, c), SUN, HintRule.TRIPLE, "Avoids three Moons in a row")
    return None


def _balance_hint(grid: Grid, cells: Sequence, unit: str) -> Optional[Hint]:
    values = [grid[r][c] for (r, c) in cells]
    if EMPTY not in values:
        return None
    target = len(grid) // 2
    cell = cells[values.index(EMPTY)]
    if values.count(SUN) == target:
        return Hint(cell, MOON, HintRule.BALANCE, f"{unit} has maximum Suns")
    if values.count(MOON) == target:
        return Hint(cell, SUN, HintRule.BALANCE, f"{unit} has maximum Moons")
    return None


def hint_balance(grid: Grid) -> Optional[Hint]:
    size = len(grid)
    for r in range(size):
        h = _balance_hint(grid, [(r, c) for c in range(size)], "Row")
        if h is not None:
            return h
    for c in range(size):
        h = _balance_hint(grid, [(r, c) for r in range(size)], "Column")
        if h is not None:
            return h
    return None


def hint_relation(grid: Grid, relations: List[Relation]) -> Optional[Hint]:
    for rel in relations:
        r2, c2 = rel.other
        v1, v2 = grid[rel.r][rel.c], grid[r2][c2]
        if (v1 == EMPTY) == (v2 == EMPTY):
            continue

        filled = v1 if v1 != EMPTY else v2
        cell = (rel.r, rel.c) if v1 == EMPTY else (r2, c2)
        if rel.kind == RelationKind.EQUAL:
            return Hint(cell, filled, HintRule.RELATION_EQUAL, "Cells must be equal (=)")
        return Hint(cell, opposite(filled), HintRule.RELATION_OPPOSITE, "Cells must be opposite (x)")
    return None


def find_forced_move(grid, relations: Iterable[Relation] = ()) -> Optional[Hint]:
    """
    First single-step deduction, trying in order:
      1) triple avoidance (cells row-major)
      2) balance (rows, then columns)
      3) relations (declaration order)
    None means no rule applies, not that the grid is unsolvable.
    """
    g = check_grid(grid)
    rels = check_relations(relations, len(g))

    return hint_triple(g) or hint_balance(g) or hint_relation(g, rels)
