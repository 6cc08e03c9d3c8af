'''Sum apportioned populations into grid cell populations.

This also hosts :func:`redistribute`, the one-call pipeline from a weight
matrix and population totals to populations of grid cells.
'''

from __future__ import annotations

import logging
import types
from numbers import Number
from typing import Dict, Iterable, Mapping, Optional, Union

import gridpop.apportion
from gridpop.core import (
    Apportioner,
    CellID,
    Geography,
    GeographyID,
    MatrixConsistencyError,
    id_sort_key,
    population_totals,
)


logger = logging.getLogger(__name__)


def cell_populations(apportioned: Mapping[GeographyID, Mapping[CellID, int]],
                     ) -> Mapping[CellID, int]:
    '''Sum the populations of all geographies in each cell.

    Python integers do not overflow, so national totals are safe.

    :param apportioned: Integer populations by geography and cell, as
        produced by an apportioner.
    :returns: A read-only mapping of cells to populations, ordered by cell
        identifier. Only cells receiving a share of some geography (even
        a zero one) appear.
    '''
    sums = {}
    for column in apportioned.values():
        for cell, population in column.items():
            sums[cell] = sums.get(cell, 0) + population
    return types.MappingProxyType({
        cell: sums[cell] for cell in sorted(sums, key=id_sort_key)
    })


def redistribute(matrix: Mapping[GeographyID, Mapping[CellID, Number]],
                 populations: Union[Dict[GeographyID, int], Iterable[Geography]],
                 apportioner: Optional[Apportioner] = None,
                 workers: int = 1,
                 ) -> Mapping[CellID, int]:
    '''Redistribute geography populations to grid cells.

    :param matrix: Weights of cells by geography, such as a
        :class:`gridpop.weight.WeightMatrix`.
    :param populations: Population totals of the geographies, as a mapping
        or an iterable of :class:`Geography` objects.
    :param apportioner: Engine to split the totals; a default
        :class:`gridpop.apportion.LargestRemainderApportioner` is used if not
        given.
    :param workers: Number of threads for the apportionment.
    :returns: Populations of cells, ordered by cell identifier.
    :raises MissingGeographyError: If a populated geography has no weights.
    :raises MatrixConsistencyError: If the apportioner does not conserve the
        total of some geography.
    '''
    totals = population_totals(populations)
    if hasattr(matrix, 'check_coverage'):
        matrix.check_coverage(totals)
    if apportioner is None:
        apportioner = gridpop.apportion.LargestRemainderApportioner()
    apportioned = apportioner.apportion(matrix, totals, workers=workers)
    for geog, total in totals.items():
        apportioned_total = sum(apportioned.get(geog, {}).values())
        if apportioned_total != total:
            raise MatrixConsistencyError(
                f'apportioned {apportioned_total} people of geography'
                f' {geog!r} instead of {total}',
                geography=geog,
            )
    cell_pops = cell_populations(apportioned)
    grand_total = sum(totals.values())
    logger.info('redistributed %d people into %d cells',
                grand_total, len(cell_pops))
    return cell_pops
