import pytest

import flask_api
from tango_engine.board import parse_grid, relation_from_dict
from tango_engine.models import GenerationFailure
from tango_engine.solver import count_solutions
from tests.helpers import SOLUTION_4


@pytest.fixture
def client():
    flask_api.app.config.update(TESTING=True)
    return flask_api.app.test_client()


def test_health(client):
    assert client.get("/health").get_json() == {"ok": True}


def test_generate(client):
    resp = client.post("/generate", json={"size": 4, "difficulty": "Easy", "seed": 8})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["size"] == 4
    assert len(data["puzzle"]) == 16
    assert len(data["solution"]) == 16
    relations = [relation_from_dict(d) for d in data["relations"]]
    assert count_solutions(parse_grid(data["puzzle"]), relations, 2) == 1


@pytest.mark.parametrize("payload", [{"size": 5}, {"size": "6"}, {"size": 4, "difficulty": "Brutal"}])
def test_generate_rejects_bad_input(client, payload):
    resp = client.post("/generate", json=payload)
    assert resp.status_code == 400
    assert "error" in resp.get_json()


def test_generate_failure_asks_for_retry(client, monkeypatch):
    def fail(*args, **kwargs):
        raise GenerationFailure("no base solution")

    monkeypatch.setattr(flask_api, "generate_puzzle", fail)
    resp = client.post("/generate", json={"size": 6})
    assert resp.status_code == 503
    assert resp.get_json()["retry"] is True


def test_analyze_reports_violation(client):
    resp = client.post("/analyze", json={
        "puzzle": "S.../..../..../....",
        "current": "SS../..../..../....",
        "relations": [{"r": 0, "c": 0, "vertical": False, "kind": "x"}],
    })
    data = resp.get_json()
    assert data["validation"]["ok"] is False
    assert data["validation"]["explanation"] == "Cells must be opposite (x)"
    assert data["validation"]["cells"] == [{"r": 1, "c": 1}, {"r": 1, "c": 2}]
    assert data["hint"]["has_hint"] is False


def test_analyze_returns_hint(client):
    data = client.post("/analyze", json={"puzzle": "SMS./..../..../...."}).get_json()
    assert data["validation"]["ok"] is True
    assert data["solved"] is False
    assert data["hint"] == {
        "has_hint": True, "rule": "balance", "r": 1, "c": 4, "value": "M", "message": "Row has maximum Suns",
    }


def test_analyze_solved(client):
    data = client.post("/analyze", json={"puzzle": "...M/MMSS/SMMS/MSSM", "current": SOLUTION_4}).get_json()
    assert data["solved"] is True
    assert data["hint"]["has_hint"] is False


def test_analyze_detects_changed_puzzle_cells(client):
    data = client.post("/analyze", json={"puzzle": "S.../..../..../....", "current": "M.../..../..../...."}).get_json()
    assert data["validation"]["ok"] is False
    assert data["validation"]["cells"] == [{"r": 1, "c": 1}]


def test_analyze_rejects_bad_relations(client):
    resp = client.post("/analyze", json={"puzzle": "S.../..../..../....", "relations": {"r": 0}})
    assert resp.status_code == 400
    resp = client.post("/analyze", json={"puzzle": "S.../..../..../....",
                                          "relations": [{"r": 3, "c": 3, "vertical": True, "kind": "="}]})
    assert resp.status_code == 400


def test_solve(client):
    data = client.post("/solve", json={"puzzle": "SSM./MMSS/SMMS/MSSM"}).get_json()
    assert data == {"solvable": True, "unique": True, "solution": SOLUTION_4.replace("/", "")}

    data = client.post("/solve", json={"puzzle": "SSS./..../..../...."}).get_json()
    assert data == {"solvable": False, "unique": False, "solution": None}


@pytest.mark.parametrize("payload", [
    {"puzzle": [[1, 2], [2, 1]]},
    {"puzzle": 1234},
    {},
    {"puzzle": "S.../..../..../....", "current": ["S", ".", ".", "."]},
])
def test_analyze_rejects_non_string_grids(client, payload):
    resp = client.post("/analyze", json=payload)
    assert resp.status_code == 400
    assert "must be a string" in resp.get_json()["error"]


@pytest.mark.parametrize("endpoint", ["/analyze", "/solve", "/generate"])
def test_non_object_body_is_rejected(client, endpoint):
    resp = client.post(endpoint, json=["SSMM", "MMSS"])
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Request body must be a JSON object"}


def test_solve_rejects_non_string_puzzle(client):
    resp = client.post("/solve", json={"puzzle": [[1, 2, 2, 1]]})
    assert resp.status_code == 400


def test_analyze_rejects_string_booleans_in_relations(client):
    resp = client.post("/analyze", json={"puzzle": "S.../..../..../....",
                                          "relations": [{"r": 0, "c": 0, "vertical": "false", "kind": "="}]})
    assert resp.status_code == 400


@pytest.mark.parametrize("seed", ["7", 1.5, True])
def test_generate_rejects_non_integer_seed(client, seed):
    resp = client.post("/generate", json={"size": 4, "seed": seed})
    assert resp.status_code == 400
