import pytest

from TKPCode.InputDataTKP import TKPInstance
from TKPCode.tkpopt import SolutionState
from TKPCode.tabu_memory import TabuMemory


@pytest.fixture
def states():
    inst = TKPInstance.from_records(100, [(i + 1, 1, 0, 1) for i in range(6)])
    return [SolutionState.from_selection(inst, [i]) for i in range(6)]


def test_fifo_eviction(states):
    memory = TabuMemory(3)
    for s in states[:4]:
        memory.insert(s)
    assert len(memory) == 3
    assert states[0] not in memory
    assert all(memory.contains(s) for s in states[1:4])
    assert memory.oldest() == states[1]


def test_length_matches_set_and_capacity(states):
    memory = TabuMemory(2)
    for s in states + states[:3]:
        memory.insert(s)
        assert len(memory) == len(memory._members) <= 2


def test_duplicate_insert_moves_to_back(states):
    memory = TabuMemory(3)
    memory.insert(states[0])
    memory.insert(states[1])
    memory.insert(states[0])
    assert len(memory) == 2
    memory.insert(states[2])
    memory.insert(states[3])
    # states[1] 是最早的条目, 先被淘汰
    assert states[1] not in memory
    assert states[0] in memory


def test_structural_membership(states):
    memory = TabuMemory(5)
    memory.insert(states[2])
    again = SolutionState.from_selection(states[2].instance, [2])
    assert again in memory


def test_zero_capacity_never_holds(states):
    memory = TabuMemory(0)
    memory.insert(states[0])
    assert len(memory) == 0
    assert states[0] not in memory


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        TabuMemory(-1)


def test_clear(states):
    memory = TabuMemory(4)
    memory.insert(states[0])
    memory.clear()
    assert len(memory) == 0
    assert repr(memory) == "<TabuMemory 0/4>"
