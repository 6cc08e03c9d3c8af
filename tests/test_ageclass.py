import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import gridpop.ageclass as ac
from gridpop.core import NegativePopulationError

SINGLE_YEAR = {
    'S01': [1] * 91,
    'S02': [0] * 90 + [3],
    'S03': [0] * 91,
}
FIVE_YEAR = list(range(0, 91, 5))


def test_total_population():
    assert ac.total_population(SINGLE_YEAR) == {'S01': 91, 'S02': 3, 'S03': 0}


def test_drop_empty():
    assert list(ac.drop_empty(SINGLE_YEAR).keys()) == ['S01', 'S02']


def test_class_labels():
    assert ac.class_labels([0, 16, 65]) == ['age_0_15', 'age_16_64', 'age_65_plus']
    labels = ac.class_labels(FIVE_YEAR)
    assert len(labels) == 19
    assert labels[0] == 'age_0_4'
    assert labels[-2] == 'age_85_89'
    assert labels[-1] == 'age_90_plus'


@pytest.mark.parametrize('bounds', [[], [5, 10], [0, 10, 10], [0, 20, 10], [0, 95]])
def test_class_labels_invalid(bounds):
    with pytest.raises(ValueError):
        ac.class_labels(bounds)


def test_aggregate_age_classes():
    classed = ac.aggregate_age_classes(SINGLE_YEAR, [0, 5, 10, 90])
    assert classed['S01'] == {
        'age_0_4': 5, 'age_5_9': 5, 'age_10_89': 80, 'age_90_plus': 1
    }
    assert classed['S02'] == {
        'age_0_4': 0, 'age_5_9': 0, 'age_10_89': 0, 'age_90_plus': 3
    }


def test_aggregate_conserves_totals():
    classed = ac.aggregate_age_classes(SINGLE_YEAR, FIVE_YEAR)
    totals = ac.total_population(SINGLE_YEAR)
    for geog, class_counts in classed.items():
        assert sum(class_counts.values()) == totals[geog]


def test_wrong_length():
    with pytest.raises(ValueError):
        ac.total_population({'S01': [1] * 90})


def test_negative_count():
    with pytest.raises(NegativePopulationError) as excinfo:
        ac.aggregate_age_classes({'S01': [1] * 90 + [-1]}, [0])
    assert excinfo.value.geography == 'S01'


def test_apportion_classes():
    matrix = {'S01': {1: .5, 2: .5}, 'S02': {2: 1.}}
    class_table = ac.aggregate_age_classes(
        ac.drop_empty(SINGLE_YEAR), [0, 10, 90]
    )
    by_class = ac.apportion_classes(matrix, class_table)
    assert list(by_class.keys()) == ['age_0_9', 'age_10_89', 'age_90_plus']
    assert dict(by_class['age_0_9']) == {1: 5, 2: 5}
    assert dict(by_class['age_10_89']) == {1: 40, 2: 40}
    # S01 has a single person aged 90+, going to the lower cell
    assert dict(by_class['age_90_plus']) == {1: 1, 2: 3}
