import random

import pytest

from tango_engine.board import clone_grid, create_empty_grid, grid_to_text, parse_grid
from tango_engine.models import EMPTY, MOON, SUN, Relation, RelationKind
from tango_engine.rules import is_solved
from tango_engine.solver import (
    MOON_FIRST, count_solutions, find_one_solution, fixed_order, random_order, solve_board,
)
from tests.helpers import SOLUTION_4, all_relations


def test_count_all_balanced_4x4_grids():
    # 4x4 0/1 matrices with every row and column sum equal to 2
    assert count_solutions(create_empty_grid(4), [], limit=1000) == 90


def test_count_is_capped_by_limit():
    assert count_solutions(create_empty_grid(4), [], limit=2) == 2
    assert count_solutions(create_empty_grid(6)) == 2


def test_count_full_solution(solution4):
    assert count_solutions(solution4, all_relations(solution4)) == 1


def test_count_rejects_bad_limit(solution4):
    with pytest.raises(ValueError):
        count_solutions(solution4, [], limit=0)


def test_relations_pin_solution_up_to_swap(solution4):
    relations = all_relations(solution4)
    # equal/opposite relations cannot tell a grid from its swap
    assert count_solutions(create_empty_grid(4), relations) == 2

    puzzle = create_empty_grid(4)
    puzzle[0][0] = SUN
    assert count_solutions(puzzle, relations) == 1
    assert find_one_solution(puzzle, relations) == solution4


@pytest.mark.parametrize("text", [
    "SSS./..../..../....",   # fixed triple
    "S.SS/..../..../....",   # fixed overflow
    "S.../S.../S.../....",   # fixed vertical triple
])
def test_unsatisfiable_grids(text):
    grid = parse_grid(text)
    assert count_solutions(grid) == 0
    assert find_one_solution(grid) is None


def test_fixed_cells_at_row_end_are_checked():
    # a fixed Sun in the last column: only one more Sun fits in row 1
    grid = parse_grid("...S/..../..../....")
    solution = find_one_solution(grid)
    assert is_solved(solution)
    assert solution[0].count(SUN) == 2


def test_relation_to_a_fixed_right_neighbour_is_enforced():
    grid = parse_grid(".M../..../..../....")
    relations = [Relation(0, 0, False, RelationKind.EQUAL)]
    solution = find_one_solution(grid, relations)
    assert solution[0][0] == MOON
    assert is_solved(solution, relations)

    grid = parse_grid("..../S.../..../....")
    relations = [Relation(0, 0, True, RelationKind.OPPOSITE)]
    solution = find_one_solution(grid, relations)
    assert solution[0][0] == MOON
    assert is_solved(solution, relations)


def test_fixed_relation_conflict_has_no_solution():
    grid = parse_grid("SM../..../..../....")
    assert count_solutions(grid, [Relation(0, 0, False, RelationKind.EQUAL)]) == 0


def test_find_one_solution_completes_grid(solution4):
    puzzle = clone_grid(solution4)
    puzzle[1][2] = EMPTY
    puzzle[3][0] = EMPTY
    assert find_one_solution(puzzle) == solution4


@pytest.mark.parametrize("size", [4, 6, 8, 10, 12])
def test_find_one_solution_on_empty_grid(size):
    solution = find_one_solution(create_empty_grid(size))
    assert solution is not None
    assert is_solved(solution)


def test_input_grid_is_not_mutated():
    grid = parse_grid("S.../..../..M./....")
    before = clone_grid(grid)
    find_one_solution(grid)
    count_solutions(grid, [], limit=5)
    assert grid == before


def test_branch_order_policy():
    empty = create_empty_grid(4)
    assert find_one_solution(empty, order=fixed_order)[0][0] == SUN
    assert find_one_solution(empty, order=lambda r, c: MOON_FIRST)[0][0] == MOON


def test_randomized_search_is_seedable():
    empty = create_empty_grid(8)
    a = find_one_solution(empty, randomized=True, rng=random.Random(42))
    b = find_one_solution(empty, randomized=True, rng=random.Random(42))
    assert a == b
    assert is_solved(a)

    seen = {grid_to_text(find_one_solution(empty, order=random_order(random.Random(seed))))
            for seed in range(10)}
    assert len(seen) > 1


def test_solve_board():
    count, solution = solve_board(parse_grid(SOLUTION_4))
    assert count == 1
    assert grid_to_text(solution, "/") == SOLUTION_4

    count, solution = solve_board(create_empty_grid(4))
    assert count == 2
    assert is_solved(solution)

    assert solve_board(parse_grid("SSS./..../..../....")) == (0, None)


def test_malformed_input_raises():
    with pytest.raises(ValueError):
        count_solutions([[SUN, EMPTY, EMPTY]] * 3)
    with pytest.raises(ValueError):
        find_one_solution(create_empty_grid(4), [Relation(0, 3, False, RelationKind.EQUAL)])


def test_search_depth_is_not_bound_by_recursion_limit():
    # 34x34 checkerboard: 1156 cells, deeper than the default recursion limit
    size = 34
    solution = [[SUN if (r + c) % 2 == 0 else MOON for c in range(size)] for r in range(size)]
    puzzle = clone_grid(solution)
    for i in range(size):
        puzzle[i][i] = EMPTY

    assert count_solutions(puzzle, [], 2) == 1
    found = find_one_solution(puzzle)
    assert found == solution
    assert is_solved(found)
    assert puzzle[0][0] == EMPTY


def test_search_leaves_input_untouched_when_stopping_early():
    grid = create_empty_grid(6)
    assert count_solutions(grid, [], limit=3) == 3
    assert grid == create_empty_grid(6)
