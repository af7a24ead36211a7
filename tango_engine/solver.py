from __future__ import annotations
import logging
import random
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from tango_engine.board import (
    RelationIndex, build_relation_index, check_grid, check_relations, clone_grid,
)
from tango_engine.models import EMPTY, MOON, SUN, CellValue, Grid, Relation, RelationKind
from tango_engine.rules import can_place

logger = logging.getLogger(__name__)

# (r, c) -> values to try at an empty cell, in order
OrderPolicy = Callable[[int, int], Sequence[CellValue]]

SUN_FIRST: Tuple[CellValue, CellValue] = (SUN, MOON)
MOON_FIRST: Tuple[CellValue, CellValue] = (MOON, SUN)


# ------------------ branch order policies ------------------
def fixed_order(r: int, c: int) -> Sequence[CellValue]:
    return SUN_FIRST


def random_order(rng: Optional[random.Random] = None) -> OrderPolicy:
    """One independent coin flip per visited cell."""
    rng = rng or random.Random()

    def order(r: int, c: int) -> Sequence[CellValue]:
        return SUN_FIRST if rng.random() < 0.5 else MOON_FIRST

    return order


# ------------------ search core ------------------
class _Search:
    """
    Row-major backtracking over a private working grid.
    - cells non-Empty in the input are fixed: never written, but still run
      through the filters so their rows, columns and relations get checked
    - row_count[r][v] / col_count[c][v] count v among the cells already
      visited in that row / column (the strict prefix)
    - stops once `limit` full assignments were found
    """

    def __init__(self, grid: Grid, index: RelationIndex, order: OrderPolicy, limit: int):
        self.grid = clone_grid(grid)
        self.size = len(grid)
        self.half = self.size // 2
        self.fixed = [[v != EMPTY for v in row] for row in grid]
        self.index = index
        self.order = order
        self.limit = limit
        self.row_count = [[0, 0, 0] for _ in range(self.size)]
        self.col_count = [[0, 0, 0] for _ in range(self.size)]
        self.found = 0
        self.first: Optional[Grid] = None

    def allows(self, r: int, c: int, value: CellValue) -> bool:
        # 1) triples
        if not can_place(self.grid, r, c, value):
            return False

        # 2) prefix balance
        row_prefix = self.row_count[r][value]
        col_prefix = self.col_count[c][value]
        if row_prefix > self.half - 1 or col_prefix > self.half - 1:
            return False

        # 3) closing a row / column needs exactly size/2
        last = self.size - 1
        if c == last and row_prefix + 1 != self.half:
            return False
        if r == last and col_prefix + 1 != self.half:
            return False

        # 4) relations to the left and top neighbours
        if c > 0:
            kind = self.index.get((r, c - 1, False))
            if kind is not None and not _relation_ok(kind, self.grid[r][c - 1], value):
                return False
        if r > 0:
            kind = self.index.get((r - 1, c, True))
            if kind is not None and not _relation_ok(kind, self.grid[r - 1][c], value):
                return False

        return True

    def _set(self, r: int, c: int, value: CellValue) -> None:
        if not self.fixed[r][c]:
            self.grid[r][c] = value
        self.row_count[r][value] += 1
        self.col_count[c][value] += 1

    def _unset(self, r: int, c: int, value: CellValue) -> None:
        if not self.fixed[r][c]:
            self.grid[r][c] = EMPTY
        self.row_count[r][value] -= 1
        self.col_count[c][value] -= 1

    def _candidates(self, r: int, c: int) -> Iterator[CellValue]:
        if self.fixed[r][c]:
            return iter((self.grid[r][c],))
        return iter(self.order(r, c))

    def run(self) -> None:
        """
        Depth-first over cells 0..size*size-1 with an explicit stack, so the
        depth is not bounded by the interpreter's recursion limit.
        pending[pos] holds the untried values of a cell, placed[pos] its current value.
        """
        total = self.size * self.size
        pending: List[Optional[Iterator[CellValue]]] = [None] * total
        placed: List[Optional[CellValue]] = [None] * total
        pending[0] = self._candidates(0, 0)
        pos = 0
        try:
            while pos >= 0:
                if pos == total:
                    self.found += 1
                    if self.first is None:
                        self.first = clone_grid(self.grid)
                    if self.found >= self.limit:
                        return
                    pos -= 1
                    continue

                r, c = divmod(pos, self.size)
                if placed[pos] is not None:
                    self._unset(r, c, placed[pos])
                    placed[pos] = None

                for value in pending[pos]:
                    if self.allows(r, c, value):
                        self._set(r, c, value)
                        placed[pos] = value
                        break

                if placed[pos] is None:
                    pos -= 1
                    continue
                pos += 1
                if pos < total:
                    pending[pos] = self._candidates(*divmod(pos, self.size))
        finally:
            # leave the working grid as it was handed in
            for p, value in enumerate(placed):
                if value is not None:
                    self._unset(p // self.size, p % self.size, value)


def _relation_ok(kind: RelationKind, placed: CellValue, value: CellValue) -> bool:
    if kind == RelationKind.EQUAL:
        return placed == value
    return placed != value


def _search(grid, relations: Iterable[Relation], order: OrderPolicy, limit: int) -> _Search:
    g = check_grid(grid)
    rels = check_relations(relations, len(g))
    search = _Search(g, build_relation_index(rels), order, limit)
    search.run()
    return search


# ------------------ public API ------------------
def count_solutions(grid, relations: Iterable[Relation] = (), limit: int = 2) -> int:
    """
    Number of completions of `grid`, capped at `limit`.
    A puzzle has a unique solution iff this returns 1 with limit=2.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    return _search(grid, relations, fixed_order, limit).found


def find_one_solution(
    grid,
    relations: Iterable[Relation] = (),
    randomized: bool = False,
    rng: Optional[random.Random] = None,
    order: Optional[OrderPolicy] = None,
) -> Optional[Grid]:
    """
    First completion found depth-first, or None if the partial grid is unsatisfiable.
    `order` overrides the branch policy; otherwise `randomized` picks a coin flip per cell.
    """
    if order is None:
        order = random_order(rng) if randomized else fixed_order
    return _search(grid, relations, order, 1).first


def solve_board(grid, relations: Iterable[Relation] = ()) -> Tuple[int, Optional[Grid]]:
    """(solution count capped at 2, first solution) for a "solve fully" request."""
    rels: List[Relation] = list(relations)
    search = _search(grid, rels, fixed_order, 2)
    logger.debug("solve_board: %d solution(s) found (limit 2)", search.found)
    return search.found, search.first
