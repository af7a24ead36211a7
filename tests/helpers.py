from tango_engine.models import Relation, RelationKind

# A valid, full 4x4 board.
SOLUTION_4 = "SSMM/MMSS/SMMS/MSSM"


def all_relations(solution):
    """Every adjacent pair of `solution` as a relation consistent with it."""
    size = len(solution)
    rels = []
    for r in range(size):
        for c in range(size - 1):
            kind = RelationKind.EQUAL if solution[r][c] == solution[r][c + 1] else RelationKind.OPPOSITE
            rels.append(Relation(r, c, False, kind))
    for r in range(size - 1):
        for c in range(size):
            kind = RelationKind.EQUAL if solution[r][c] == solution[r + 1][c] else RelationKind.OPPOSITE
            rels.append(Relation(r, c, True, kind))
    return rels
