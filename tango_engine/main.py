import argparse
import logging
import random
from typing import Sequence

from tango_engine.board import Board, grid_to_text, parse_relations, relations_to_text
from tango_engine.generator import generate_puzzle
from tango_engine.hints import find_forced_move
from tango_engine.models import Difficulty, GenerationFailure, Relation
from tango_engine.rules import is_solved, validate
from tango_engine.solver import solve_board


def render_grid(grid, relations: Sequence[Relation] = ()) -> str:
    """
    Text board: cells as S / M / ., relation marks between cells
    ('=' or 'x' on the edge they constrain).
    """
    size = len(grid)
    marks = {rel.key: rel.kind.value for rel in relations}
    lines = []
    for r in range(size):
        row = []
        for c in range(size):
            row.append(grid[r][c].symbol)
            if c < size - 1:
                row.append(marks.get((r, c, False), " "))
        lines.append(" ".join(row))
        if r < size - 1:
            below = [marks.get((r, c, True), " ") for c in range(size)]
            lines.append("   ".join(below).rstrip())
    return "\n".join(lines)


def print_grid(grid, relations: Sequence[Relation] = ()):
    print(render_grid(grid, relations))


def run_generate(args) -> int:
    rng = random.Random(args.seed) if args.seed is not None else None
    result = generate_puzzle(args.size, args.difficulty, rng=rng)

    print(f"\nPUZZLE ({result.size}x{result.size}, {Difficulty(args.difficulty).value}):\n")
    print_grid(result.puzzle, result.relations)
    print("\nSOLUTION:\n")
    print_grid(result.solution, result.relations)
    print()
    print(f"Puzzle:    {grid_to_text(result.puzzle)}")
    print(f"Relations: {relations_to_text(result.relations)}")
    print(f"Solution:  {grid_to_text(result.solution)}")
    return 0


def run_report(args) -> int:
    board = Board.from_strings(args.puzzle, args.current)
    relations = parse_relations(args.relations)

    print("\nPUZZLE:\n")
    print_grid(board.puzzle, relations)
    print("\nCURRENT GRID:\n")
    print_grid(board.grid, relations)
    print()

    print("RUN REPORT")
    print("=" * 60)

    # 1) VALIDATION
    print("VALIDATION REPORT")
    print("-" * 60)
    tampered = board.tampered_cells()
    if tampered:
        print("Status: FAIL")
        cells = [(r + 1, c + 1) for (r, c) in tampered]
        print(f"Puzzle cells were changed (1-indexed): {cells}")
        print("=" * 60)
        return 1
    result = validate(board.grid, relations)
    if not result.is_valid:
        print("Status: FAIL")
        print(result.message)
        cells = sorted((r + 1, c + 1) for (r, c) in result.violating_cells)
        print(f"Violating cells (1-indexed): {cells}")
    else:
        print("Status: PASS")
        print("No balance, adjacency or relation violations detected.")
    print(f"Solved: {'yes' if is_solved(board.grid, relations) else 'no'}")
    print("-" * 60)

    # 2) HINT REPORT (optional)
    if args.hint:
        print("HINT REPORT")
        print("-" * 60)
        hint = find_forced_move(board.grid, relations)
        if hint is not None:
            r, c = hint.cell
            print(f"Rule: {hint.rule.value}")
            print(f"Action: place {hint.value.label} in (r{r+1}, c{c+1})")
            print(hint.reason)
        else:
            print("No immediate deduction available.")
        print("-" * 60)

    # 3) SOLVER REPORT (optional)
    if args.solve:
        print("SOLVER REPORT")
        print("-" * 60)
        count, solution = solve_board(board.puzzle, relations)
        if solution is None:
            print("Status: FAIL (no solution)")
        else:
            print("Status: PASS (unique)" if count == 1 else "Status: PASS (multiple solutions)")
            print("\nSOLUTION:\n")
            print_grid(solution, relations)
        print("-" * 60)

    print("=" * 60)
    print()
    return 0


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Generate, check and hint Tango puzzles.")
    p.add_argument("--size", type=int, default=6, help="Grid side for generation (even, >= 4)")
    p.add_argument("--difficulty", default=Difficulty.MEDIUM.value,
                   type=Difficulty, help="Easy, Medium or Hard")
    p.add_argument("--seed", type=int, help="Seed for reproducible generation")
    p.add_argument("--puzzle", help="Puzzle grid (S, M, . per cell, row-major); skips generation")
    p.add_argument("--current", help="Current grid, same format as --puzzle")
    p.add_argument("--relations", help="Relations as r,c,h|v,=|x separated by ';'")
    p.add_argument("--hint", action="store_true", help="Print one forced move")
    p.add_argument("--solve", action="store_true", help="Solve the puzzle and print the solution")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    args = p.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        if args.puzzle is None:
            return run_generate(args)
        return run_report(args)
    except ValueError as e:
        p.error(str(e))
    except GenerationFailure as e:
        print(f"Generation failed: {e}. Try again.")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
