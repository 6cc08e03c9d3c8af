'''Handle population tables broken down by single years of age.

Census population estimates are usually published per geography with one
count per single year of age: ages 0 to 89 and a final open class for
90 and over (:data:`N_SINGLE_YEARS` counts in total). Such a table can be
reduced to all-ages totals for redistribution, or regrouped into coarser
age classes given by their lower bounds, such as five-year classes::

    >>> aggregate_age_classes({'S01': [1] * 91}, [0, 5, 10, 90])
    {'S01': {'age_0_4': 5, 'age_5_9': 5, 'age_10_89': 80, 'age_90_plus': 1}}

Each age class is a population count of its own, so it can be apportioned
to the grid with the same engine (:func:`apportion_classes`); the class
totals of every geography are conserved separately.
'''

import logging
from typing import Dict, List, Mapping, Optional, Sequence

import gridpop.aggregate
import gridpop.apportion
from gridpop.core import (
    Apportioner,
    CellID,
    GeographyID,
    NegativePopulationError,
)


logger = logging.getLogger(__name__)

OPEN_AGE = 90
N_SINGLE_YEARS = OPEN_AGE + 1

SingleYearTable = Mapping[GeographyID, Sequence[int]]


def total_population(single_year: SingleYearTable) -> Dict[GeographyID, int]:
    '''Sum single-year counts to all-ages totals per geography.'''
    return {
        geog: sum(_checked_counts(geog, counts))
        for geog, counts in single_year.items()
    }


def drop_empty(single_year: SingleYearTable) -> Dict[GeographyID, List[int]]:
    '''Remove geographies with nobody living in them.

    Some census geographies (e.g. industrial estates) have zero population in
    every age; they carry no information for redistribution.
    '''
    kept = {}
    for geog, counts in single_year.items():
        counts = _checked_counts(geog, counts)
        if sum(counts):
            kept[geog] = counts
        else:
            logger.info('dropping empty geography %r', geog)
    return kept


def class_labels(lower_bounds: Sequence[int]) -> List[str]:
    '''Name the age classes starting at the given lower bounds.

    :param lower_bounds: Strictly increasing lower age bounds of the classes,
        starting at zero and not exceeding :data:`OPEN_AGE`.
    :returns: Labels like ``age_0_4`` with the last class open-ended
        (``age_85_plus``).
    :raises ValueError: For invalid bounds.
    '''
    bounds = list(lower_bounds)
    if not bounds or bounds[0] != 0:
        raise ValueError(f'age classes must start at 0, got {bounds!r}')
    for lower, upper in zip(bounds[:-1], bounds[1:]):
        if upper <= lower:
            raise ValueError(f'age class bounds not increasing: {bounds!r}')
    if bounds[-1] > OPEN_AGE:
        raise ValueError(f'age class bound over {OPEN_AGE}: {bounds[-1]}')
    labels = [
        f'age_{lower}_{upper - 1}'
        for lower, upper in zip(bounds[:-1], bounds[1:])
    ]
    labels.append(f'age_{bounds[-1]}_plus')
    return labels


def aggregate_age_classes(single_year: SingleYearTable,
                          lower_bounds: Sequence[int],
                          ) -> Dict[GeographyID, Dict[str, int]]:
    '''Regroup single-year counts into age classes.

    :param single_year: Single-year counts per geography.
    :param lower_bounds: Lower age bounds of the classes; see
        :func:`class_labels`.
    :returns: Counts per class label for every geography.
    '''
    labels = class_labels(lower_bounds)
    bounds = list(lower_bounds) + [N_SINGLE_YEARS]
    classed = {}
    for geog, counts in single_year.items():
        counts = _checked_counts(geog, counts)
        classed[geog] = {
            label: sum(counts[lower:upper])
            for label, lower, upper in zip(labels, bounds[:-1], bounds[1:])
        }
    return classed


def apportion_classes(matrix: Mapping[GeographyID, Mapping[CellID, float]],
                      class_table: Mapping[GeographyID, Mapping[str, int]],
                      apportioner: Optional[Apportioner] = None,
                      workers: int = 1,
                      ) -> Dict[str, Mapping[CellID, int]]:
    '''Redistribute every age class of the table to the grid separately.

    :param matrix: Weights of cells by geography.
    :param class_table: Counts per class label for every geography, as
        produced by :func:`aggregate_age_classes`.
    :param apportioner: Engine to split the totals; see
        :func:`gridpop.aggregate.redistribute`.
    :param workers: Number of threads for the apportionment.
    :returns: Populations of cells for every class label.
    '''
    if apportioner is None:
        apportioner = gridpop.apportion.LargestRemainderApportioner()
    labels = []
    for class_counts in class_table.values():
        for label in class_counts:
            if label not in labels:
                labels.append(label)
    by_class = {}
    for label in labels:
        class_totals = {
            geog: class_counts.get(label, 0)
            for geog, class_counts in class_table.items()
        }
        logger.debug('redistributing age class %s', label)
        by_class[label] = gridpop.aggregate.redistribute(
            matrix, class_totals, apportioner=apportioner, workers=workers
        )
    return by_class


def _checked_counts(geography: GeographyID,
                    counts: Sequence[int],
                    ) -> List[int]:
    counts = list(counts)
    if len(counts) != N_SINGLE_YEARS:
        raise ValueError(
            f'geography {geography!r} has {len(counts)} single-year counts,'
            f' expected {N_SINGLE_YEARS} (ages 0 to {OPEN_AGE - 1} and'
            f' {OPEN_AGE}+)'
        )
    for age, count in enumerate(counts):
        if count < 0:
            raise NegativePopulationError(
                f'negative count {count} at age {age} for geography'
                f' {geography!r}',
                geography=geography,
            )
    return counts
