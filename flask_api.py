from __future__ import annotations

import os
import random

from flask import Flask, request, jsonify
from flask_cors import CORS

from tango_engine.board import Board, grid_to_text, parse_grid, relation_from_dict, relation_to_dict
from tango_engine.generator import generate_puzzle
from tango_engine.hints import find_forced_move
from tango_engine.models import GenerationFailure
from tango_engine.rules import is_solved, validate
from tango_engine.solver import solve_board

app = Flask(__name__)
CORS(app)


def _body():
    data = request.get_json(force=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _grid_text(data, key, required=True):
    value = data.get(key)
    if value is None and not required:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string of S, M and . cells")
    return value


def _relations(data):
    raw = data.get("relations") or []
    if not isinstance(raw, list):
        raise ValueError("relations must be a list of {r, c, vertical, kind} objects")
    return [relation_from_dict(d) for d in raw]


def _cells(cells):
    return [{"r": r + 1, "c": c + 1} for (r, c) in sorted(cells)]


def _hint_json(hint):
    if hint is None:
        return {"has_hint": False, "rule": None, "message": "No immediate deduction available."}
    r, c = hint.cell
    return {
        "has_hint": True,
        "rule": hint.rule.value,
        "r": r + 1,
        "c": c + 1,
        "value": hint.value.symbol,
        "message": hint.reason,
    }


@app.errorhandler(ValueError)
def bad_request(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(GenerationFailure)
def generation_failed(e):
    app.logger.warning("generation failed: %s", e)
    return jsonify({"error": str(e), "retry": True}), 503


@app.get("/health")
def health():
    return jsonify({"ok": True})


@app.post("/generate")
def generate():
    data = _body()
    size = data.get("size", 6)
    if not isinstance(size, int):
        raise ValueError("size must be an integer")
    seed = data.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ValueError("seed must be an integer")
    rng = random.Random(seed) if seed is not None else None

    result = generate_puzzle(size, data.get("difficulty", "Medium"), rng=rng)
    return jsonify({
        "size": result.size,
        "puzzle": grid_to_text(result.puzzle),
        "relations": [relation_to_dict(rel) for rel in result.relations],
        "solution": grid_to_text(result.solution),
    })


@app.post("/analyze")
def analyze():
    data = _body()

    puzzle_text = _grid_text(data, "puzzle")
    current_text = _grid_text(data, "current", required=False)
    if current_text is not None and current_text.strip() == "":
        current_text = None
    board = Board.from_strings(puzzle_text, current_text)
    relations = _relations(data)

    # 1) locked cells changed (must come first)
    tampered = board.tampered_cells()
    if tampered:
        return jsonify({
            "validation": {"ok": False, "explanation": "A puzzle cell was changed.", "cells": _cells(tampered)},
            "solved": False,
            "hint": _hint_json(None),
        })

    # 2) rule violations
    result = validate(board.grid, relations)
    if not result.is_valid:
        return jsonify({
            "validation": {"ok": False, "explanation": result.message, "cells": _cells(result.violating_cells)},
            "solved": False,
            "hint": _hint_json(None),
        })

    # 3) only now look for a hint
    solved = is_solved(board.grid, relations)
    return jsonify({
        "validation": {"ok": True, "explanation": "", "cells": []},
        "solved": solved,
        "hint": _hint_json(None if solved else find_forced_move(board.grid, relations)),
    })


@app.post("/solve")
def solve():
    data = _body()
    grid = parse_grid(_grid_text(data, "puzzle"))
    count, solution = solve_board(grid, _relations(data))
    return jsonify({
        "solvable": solution is not None,
        "unique": count == 1,
        "solution": grid_to_text(solution) if solution is not None else None,
    })


if __name__ == "__main__":
    app.run(
        host=os.environ.get("TANGO_API_HOST", "0.0.0.0"),
        port=int(os.environ.get("TANGO_API_PORT", "8000")),
        debug=True,
    )
