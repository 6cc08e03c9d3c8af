import sys
import os
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import gridpop.weight
from gridpop.core import (
    MatrixConsistencyError,
    MissingGeographyError,
    NegativePopulationError,
    WeightEntry,
)


def test_postcode_split():
    # a data zone of 5 postcodes, 3 in cell A and 2 in cell B
    matrix = gridpop.weight.build_weights(
        {'S01': 5},
        {('S01', 'A'): 3, ('S01', 'B'): 2},
    )
    assert dict(matrix['S01']) == {'A': Fraction(3, 5), 'B': Fraction(2, 5)}


def test_boundary_duplicates_normalized():
    # 4 postcodes, one straddling the grid line is counted in both cells
    matrix = gridpop.weight.build_weights(
        {'S01': 4},
        {('S01', 'A'): 3, ('S01', 'B'): 2},
    )
    assert dict(matrix['S01']) == {'A': Fraction(3, 5), 'B': Fraction(2, 5)}
    assert matrix.total_weight('S01') == 1


def test_postcodes_outside_grid_normalized():
    matrix = gridpop.weight.build_weights(
        {'S01': 10},
        {('S01', 'A'): 2, ('S01', 'B'): 6},
    )
    assert dict(matrix['S01']) == {'A': Fraction(1, 4), 'B': Fraction(3, 4)}


def test_thirds_exact():
    matrix = gridpop.weight.build_weights(
        {'S01': 3},
        {('S01', 1): 1, ('S01', 2): 1, ('S01', 3): 1},
    )
    assert all(wt == Fraction(1, 3) for wt in matrix['S01'].values())
    assert sum(matrix['S01'].values()) == 1


def test_zero_counts_omitted():
    matrix = gridpop.weight.build_weights(
        {'S01': 2, 'S02': 0},
        {('S01', 'A'): 2, ('S01', 'B'): 0, ('S02', 'A'): 0},
    )
    assert dict(matrix['S01']) == {'A': 1}
    assert 'S02' not in matrix
    assert matrix.cells == ['A']


def test_missing_total_uses_cell_counts():
    matrix = gridpop.weight.build_weights(
        {},
        {('S01', 'A'): 1, ('S01', 'B'): 3},
    )
    assert dict(matrix['S01']) == {'A': Fraction(1, 4), 'B': Fraction(3, 4)}


def test_negative_intersection_count():
    with pytest.raises(NegativePopulationError) as excinfo:
        gridpop.weight.build_weights(
            {'S01': 5},
            {('S01', 'A'): 6, ('S01', 'B'): -1},
        )
    assert excinfo.value.geography == 'S01'
    assert excinfo.value.cell == 'B'


def test_negative_total_count():
    with pytest.raises(NegativePopulationError) as excinfo:
        gridpop.weight.build_weights({'S01': -5}, {('S01', 'A'): 5})
    assert excinfo.value.geography == 'S01'


def test_missing_geography():
    with pytest.raises(MissingGeographyError) as excinfo:
        gridpop.weight.build_weights(
            {'S01': 5, 'S02': 3},
            {('S01', 'A'): 5},
            populations={'S01': 100, 'S02': 42},
        )
    assert excinfo.value.geography == 'S02'
    assert 'S02' in str(excinfo.value)


def test_unpopulated_geography_without_cells_allowed():
    matrix = gridpop.weight.build_weights(
        {'S01': 5},
        {('S01', 'A'): 5},
        populations={'S01': 100, 'S02': 0},
    )
    assert list(matrix.keys()) == ['S01']


def test_negative_population():
    with pytest.raises(NegativePopulationError):
        gridpop.weight.build_weights(
            {'S01': 5}, {('S01', 'A'): 5}, populations={'S01': -1},
        )


@pytest.mark.parametrize('row', [
    {'A': .4, 'B': .3, 'C': .2, 'D': .075, 'E': .025},
    {'A': Fraction(1, 3), 'B': Fraction(2, 3)},
    {'A': 1},
    {'A': .1, 'B': .2, 'C': .7},
])
def test_normalize_idempotent(row):
    once = gridpop.weight.normalize(row)
    assert once == row
    twice = gridpop.weight.normalize(once)
    assert twice == once


def test_normalize_scales():
    normalized = gridpop.weight.normalize({'A': 3, 'B': 1})
    assert normalized == {'A': Fraction(3, 4), 'B': Fraction(1, 4)}
    floats = gridpop.weight.normalize({'A': .6, 'B': .6})
    assert floats == {'A': .5, 'B': .5}


def test_normalize_tolerance():
    row = {'A': .5, 'B': .5 + 1e-12}
    assert gridpop.weight.normalize(row) == row


def test_normalize_empty():
    assert gridpop.weight.normalize({}) == {}
    assert gridpop.weight.normalize({'A': 0, 'B': 0}) == {}


def test_normalize_negative():
    with pytest.raises(NegativePopulationError):
        gridpop.weight.normalize({'A': 1.5, 'B': -.5})


def test_matrix_immutable():
    matrix = gridpop.weight.WeightMatrix({'S01': {'A': .5, 'B': .5}})
    with pytest.raises(TypeError):
        matrix['S01']['A'] = 1
    with pytest.raises(TypeError):
        matrix['S02'] = {'A': 1}


def test_matrix_from_entries():
    entries = [
        WeightEntry('S01', 'A', .25),
        WeightEntry('S01', 'B', .5),
        WeightEntry('S02', 'B', 1.),
        WeightEntry('S01', 'A', .25),
    ]
    matrix = gridpop.weight.WeightMatrix.from_entries(entries)
    assert dict(matrix['S01']) == {'A': .5, 'B': .5}
    assert matrix.geographies == ['S01', 'S02']
    assert matrix.cells == ['A', 'B']
    assert sorted(matrix.entries()) == [
        ('S01', 'A', .5), ('S01', 'B', .5), ('S02', 'B', 1.)
    ]


def test_matrix_column_unknown():
    matrix = gridpop.weight.WeightMatrix({'S01': {'A': 1}})
    assert dict(matrix.column('S99')) == {}
    assert matrix.total_weight('S99') == 0


def test_matrix_negative_weight():
    with pytest.raises(NegativePopulationError):
        gridpop.weight.WeightMatrix({'S01': {'A': 1.2, 'B': -.2}})


def test_validate():
    gridpop.weight.WeightMatrix({
        'S01': {'A': .4, 'B': .3, 'C': .2, 'D': .075, 'E': .025},
        'S02': {'A': Fraction(1, 3), 'B': Fraction(2, 3)},
    }).validate()
    with pytest.raises(MatrixConsistencyError) as excinfo:
        gridpop.weight.WeightMatrix({
            'S01': {'A': 1},
            'S02': {'A': .5, 'B': .4},
        }).validate()
    assert excinfo.value.geography == 'S02'


def test_check_coverage():
    matrix = gridpop.weight.WeightMatrix({'S01': {'A': 1}})
    matrix.check_coverage({'S01': 5, 'S02': 0})
    with pytest.raises(MissingGeographyError):
        matrix.check_coverage({'S01': 5, 'S02': 1})
