import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))
import gridpop.component.tiebreak as t


def test_cell_id():
    assert t.cell_id([30, 10, 20]) == {10: 0, 20: 1, 30: 2}
    assert t.cell_id(['b', 'a']) == {'a': 0, 'b': 1}


def test_cell_id_mixed_types():
    priorities = t.cell_id(['x', 2, 1])
    assert priorities == {1: 0, 2: 1, 'x': 2}


def test_input_order():
    assert t.input_order([30, 10, 20]) == {30: 0, 10: 1, 20: 2}


@pytest.mark.parametrize('tiebreak', list(t.TIEBREAKS.values()))
def test_priorities_are_complete(tiebreak):
    cells = ['c', 'a', 'd', 'b']
    priorities = tiebreak(cells)
    assert set(priorities.keys()) == set(cells)
    assert sorted(priorities.values()) == list(range(len(cells)))


def test_get():
    for fx_name, fx in t.TIEBREAKS.items():
        assert t.get(fx_name) == fx
    with pytest.raises(KeyError):
        t.get('random')
