from __future__ import annotations
import logging
import random
from typing import List, Optional, Union

from tango_engine.board import check_size, clone_grid, create_empty_grid
from tango_engine.models import (
    DIFFICULTY_CONFIG, EMPTY, Difficulty, DifficultyConfig, GeneratedPuzzle,
    GenerationFailure, Grid, Relation, RelationKind,
)
from tango_engine.solver import count_solutions, find_one_solution, random_order

logger = logging.getLogger(__name__)


def resolve_difficulty(difficulty: Union[Difficulty, DifficultyConfig, str]) -> DifficultyConfig:
    if isinstance(difficulty, DifficultyConfig):
        return difficulty
    try:
        return DIFFICULTY_CONFIG[Difficulty(difficulty)]
    except ValueError:
        names = ", ".join(d.value for d in Difficulty)
        raise ValueError(f"Unknown difficulty {difficulty!r}, expected one of: {names}") from None


def derive_relations(solution: Grid, relation_chance: float, rng: random.Random) -> List[Relation]:
    """Horizontal pairs row-major, then vertical pairs; kinds always agree with `solution`."""
    size = len(solution)
    relations: List[Relation] = []

    for r in range(size):
        for c in range(size - 1):
            if rng.random() < relation_chance:
                kind = RelationKind.EQUAL if solution[r][c] == solution[r][c + 1] else RelationKind.OPPOSITE
                relations.append(Relation(r, c, False, kind))

    for r in range(size - 1):
        for c in range(size):
            if rng.random() < relation_chance:
                kind = RelationKind.EQUAL if solution[r][c] == solution[r + 1][c] else RelationKind.OPPOSITE
                relations.append(Relation(r, c, True, kind))

    return relations


def carve_puzzle(solution: Grid, relations: List[Relation], fill_factor: float, rng: random.Random) -> Grid:
    """
    Clear cells in random order, keeping a removal only while the puzzle stays unique.
    Stops at floor(size^2 * fill_factor) filled cells or when every cell was tried,
    so the result may be denser than requested.
    """
    size = len(solution)
    puzzle = clone_grid(solution)
    cells = [(r, c) for r in range(size) for c in range(size)]
    rng.shuffle(cells)

    target_filled = int(size * size * fill_factor)
    filled = size * size

    for r, c in cells:
        if filled <= target_filled:
            break
        original = puzzle[r][c]
        puzzle[r][c] = EMPTY
        if count_solutions(puzzle, relations, limit=2) == 1:
            filled -= 1
        else:
            puzzle[r][c] = original

    logger.debug("carved %dx%d puzzle: %d filled (target %d)", size, size, filled, target_filled)
    return puzzle


def generate_puzzle(
    size: int,
    difficulty: Union[Difficulty, DifficultyConfig, str] = Difficulty.MEDIUM,
    rng: Optional[random.Random] = None,
) -> GeneratedPuzzle:
    """
    1) random full solution
    2) relations derived from it
    3) cells removed while the solution stays unique
    Raises GenerationFailure if step 1 finds nothing.
    """
    check_size(size)
    config = resolve_difficulty(difficulty)
    rng = rng or random.Random()

    solution = find_one_solution(create_empty_grid(size), [], order=random_order(rng))
    if solution is None:
        raise GenerationFailure(f"Failed to generate base solution for size {size}")

    relations = derive_relations(solution, config.relation_chance, rng)
    logger.debug("base solution ready, %d relation(s) derived", len(relations))

    puzzle = carve_puzzle(solution, relations, config.fill_factor, rng)
    return GeneratedPuzzle(size=size, puzzle=puzzle, relations=relations, solution=solution)
