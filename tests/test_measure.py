import sys
import os
from fractions import Fraction

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import gridpop.apportion
import gridpop.measure

MATRIX = {
    'X': {1: Fraction(2, 5), 2: Fraction(3, 10), 3: Fraction(1, 5),
          4: Fraction(3, 40), 5: Fraction(1, 40)},
    'Y': {1: Fraction(1, 2), 2: Fraction(1, 2)},
}
TOTALS = {'X': 6, 'Y': 2}
APPORTIONED = {'X': {1: 2, 2: 2, 3: 1, 4: 1, 5: 0}, 'Y': {1: 1, 2: 1}}


def test_exact_allocations():
    exact = gridpop.measure.exact_allocations(MATRIX['X'], 6)
    assert exact == {
        1: Fraction(12, 5), 2: Fraction(9, 5), 3: Fraction(6, 5),
        4: Fraction(9, 20), 5: Fraction(3, 20),
    }


def test_deviations():
    devs = gridpop.measure.deviations(MATRIX, TOTALS, APPORTIONED)
    assert devs['X'] == {
        1: Fraction(-2, 5), 2: Fraction(1, 5), 3: Fraction(-1, 5),
        4: Fraction(11, 20), 5: Fraction(-3, 20),
    }
    assert devs['Y'] == {1: 0, 2: 0}


def test_max_deviation():
    assert gridpop.measure.max_deviation(MATRIX, TOTALS, APPORTIONED) == Fraction(11, 20)


def test_total_absolute_deviation():
    assert gridpop.measure.total_absolute_deviation(
        MATRIX, TOTALS, APPORTIONED
    ) == Fraction(3, 2)


def test_perfect():
    perfect = {'Y': {1: 1, 2: 1}}
    assert gridpop.measure.max_deviation(MATRIX, {'Y': 2}, perfect) == 0
    assert gridpop.measure.total_absolute_deviation(MATRIX, {'Y': 2}, perfect) == 0
    assert gridpop.measure.max_deviation({}, {}, {}) == 0


@pytest.mark.parametrize('total', [1, 3, 6, 11, 100, 999])
def test_apportioned_bounded(total):
    apportioned = gridpop.apportion.apportion(MATRIX, {'X': total})
    assert gridpop.measure.max_deviation(MATRIX, {'X': total}, apportioned) < 1
