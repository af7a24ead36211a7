import pytest

from tango_engine.board import parse_grid
from tests.helpers import SOLUTION_4


@pytest.fixture
def solution4():
    return parse_grid(SOLUTION_4)
