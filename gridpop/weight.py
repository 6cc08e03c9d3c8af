'''Build normalized weight matrices from sub-unit overlay counts.

The weight of a cell for a geography is the fraction of the geography's
population that should end up in the cell. It is estimated from a finer
spatial unit, usually postcodes: if a data zone contains five postcodes and
three of them fall into cell A and two into cell B, 60 % of the population
goes to cell A.

The overlay is never perfectly clean. A postcode straddling a grid line is
counted in both cells, and a postcode lying outside every cell is counted in
none, so the raw proportions of a geography may sum to more or less than
one. :func:`build_weights` therefore divides every raw proportion by the
geography's proportion sum.

Weights built from integer counts are exact fractions that sum to exactly
one. Weights given as floats are accepted as well and are compared to one
within a tolerance (:data:`TOLERANCE`).
'''

from __future__ import annotations

import collections
import collections.abc
import logging
import types
from fractions import Fraction
from numbers import Number
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from gridpop.core import (
    CellID,
    GeographyID,
    MatrixConsistencyError,
    MissingGeographyError,
    NegativePopulationError,
    WeightEntry,
    id_sort_key,
    population_totals,
)


logger = logging.getLogger(__name__)

TOLERANCE = 1e-9


class WeightMatrix(collections.abc.Mapping):
    '''An immutable sparse matrix of weights of cells for geographies.

    Indexed by geography first; ``matrix[geography]`` returns a read-only
    mapping of cells to weights (the geography's *column*). Zero weights are
    not stored.

    :param columns: A mapping of geography identifiers to mappings of cell
        identifiers to weights.
    '''
    def __init__(self, columns: Mapping[GeographyID, Mapping[CellID, Number]]):
        self._columns = {}
        for geog, column in columns.items():
            nonzero = {cell: wt for cell, wt in column.items() if wt != 0}
            for cell, wt in nonzero.items():
                if wt < 0:
                    raise NegativePopulationError(
                        f'negative weight {wt} of cell {cell!r} for geography'
                        f' {geog!r}',
                        geography=geog, cell=cell,
                    )
            self._columns[geog] = types.MappingProxyType(nonzero)

    @classmethod
    def from_entries(cls, entries: Iterable[WeightEntry]) -> WeightMatrix:
        '''Assemble the matrix from individual weight entries.

        Repeated (geography, cell) pairs are summed.
        '''
        columns = collections.defaultdict(dict)
        for geog, cell, weight in entries:
            column = columns[geog]
            column[cell] = column.get(cell, 0) + weight
        return cls(columns)

    def __getitem__(self, geography: GeographyID) -> Mapping[CellID, Number]:
        return self._columns[geography]

    def __iter__(self) -> Iterator[GeographyID]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        return (f'<{self.__class__.__name__}: {len(self)} geographies,'
                f' {len(self.cells)} cells>')

    def column(self, geography: GeographyID) -> Mapping[CellID, Number]:
        '''Return the weights of cells for the geography.

        Unknown geographies give an empty column.
        '''
        return self._columns.get(geography, types.MappingProxyType({}))

    @property
    def geographies(self) -> List[GeographyID]:
        return list(self._columns.keys())

    @property
    def cells(self) -> List[CellID]:
        '''All cells with a nonzero weight for any geography, sorted.'''
        all_cells = set()
        for column in self._columns.values():
            all_cells.update(column.keys())
        return sorted(all_cells, key=id_sort_key)

    def entries(self) -> Iterator[WeightEntry]:
        for geog, column in self._columns.items():
            for cell, weight in column.items():
                yield WeightEntry(geog, cell, weight)

    def total_weight(self, geography: GeographyID) -> Number:
        return sum(self.column(geography).values())

    def validate(self, tolerance: float = TOLERANCE) -> None:
        '''Check that every nonempty column sums to one.

        :param tolerance: Maximum allowed absolute deviation of a column sum
            from one. Exact (fractional) sums are held to the same tolerance.
        :raises MatrixConsistencyError: For the first column found that does
            not sum to one.
        '''
        for geog, column in self._columns.items():
            if column:
                col_sum = sum(column.values())
                if abs(col_sum - 1) > tolerance:
                    raise MatrixConsistencyError(
                        f'weights for geography {geog!r} sum to'
                        f' {float(col_sum)!r} instead of 1',
                        geography=geog,
                    )

    def check_coverage(self, populations: Dict[GeographyID, int]) -> None:
        '''Check that every populated geography maps to some cell.

        :param populations: Population totals of the geographies.
        :raises MissingGeographyError: If a geography with a nonzero
            population has no nonzero weight.
        '''
        for geog, population in populations.items():
            if population and not self.column(geog):
                raise MissingGeographyError(
                    f'geography {geog!r} with population {population} has no'
                    ' cell weights; its population would be lost',
                    geography=geog,
                )


def normalize(row: Mapping[CellID, Number],
              tolerance: float = TOLERANCE,
              ) -> Dict[CellID, Number]:
    '''Scale a row of weights to sum to one.

    Rows that already sum to one within the tolerance are returned unchanged
    (as a new dict), so repeated normalization is idempotent. Zero weights
    are dropped; a row summing to zero normalizes to an empty row.

    :param row: Weights or raw proportions of cells.
    :param tolerance: Maximum deviation from one to consider the row already
        normalized.
    :raises NegativePopulationError: If any weight is negative.
    '''
    for cell, weight in row.items():
        if weight < 0:
            raise NegativePopulationError(
                f'negative weight {weight} for cell {cell!r}', cell=cell,
            )
    row_sum = sum(row.values())
    if row_sum == 0:
        return {}
    elif abs(row_sum - 1) <= tolerance:
        return {cell: weight for cell, weight in row.items() if weight != 0}
    else:
        return {
            cell: _divide(weight, row_sum)
            for cell, weight in row.items() if weight != 0
        }


def build_weights(total_counts: Mapping[GeographyID, int],
                  intersection_counts: Mapping[Tuple[GeographyID, CellID], int],
                  populations: Optional[Mapping[GeographyID, int]] = None,
                  tolerance: float = TOLERANCE,
                  ) -> WeightMatrix:
    '''Convert sub-unit overlay counts to a normalized weight matrix.

    :param total_counts: Number of sub-units (postcodes) in each whole
        geography.
    :param intersection_counts: Number of sub-units of a geography located in
        a cell, keyed by (geography, cell) pairs.
    :param populations: Population totals of the geographies. If given, every
        geography with a nonzero population is checked to have some weight.
    :param tolerance: Tolerance for normalization of rows.
    :returns: A weight matrix with exact fractional weights (for integer
        counts) and zero weights omitted.
    :raises NegativePopulationError: If any count or population is negative.
    :raises MissingGeographyError: If a populated geography has no weight.
    '''
    for geog, count in total_counts.items():
        if count < 0:
            raise NegativePopulationError(
                f'negative sub-unit count {count} for geography {geog!r}',
                geography=geog,
            )
    counts_by_geog = collections.defaultdict(dict)
    for (geog, cell), count in intersection_counts.items():
        if count < 0:
            raise NegativePopulationError(
                f'negative sub-unit count {count} for geography {geog!r}'
                f' in cell {cell!r}',
                geography=geog, cell=cell,
            )
        if count:
            counts_by_geog[geog][cell] = count
    columns = {}
    for geog, cell_counts in counts_by_geog.items():
        proportions = _raw_proportions(
            geog, cell_counts, total_counts.get(geog)
        )
        prop_sum = sum(proportions.values())
        if prop_sum > 1:
            logger.debug('sub-units of %r counted %s times over the grid,'
                         ' normalizing', geog, prop_sum)
        elif prop_sum < 1:
            logger.debug('only %s of sub-units of %r fall into the grid,'
                         ' normalizing', prop_sum, geog)
        columns[geog] = normalize(proportions, tolerance=tolerance)
    matrix = WeightMatrix(columns)
    logger.info('built weights for %d geographies over %d cells',
                len(matrix), len(matrix.cells))
    if populations is not None:
        matrix.check_coverage(population_totals(populations))
    return matrix


def _raw_proportions(geography: GeographyID,
                     cell_counts: Dict[CellID, int],
                     total: Optional[int],
                     ) -> Dict[CellID, Any]:
    if not total:
        # the normalization cancels the denominator out anyway
        total = sum(cell_counts.values())
        logger.warning('no sub-unit total for geography %r, using the sum of'
                       ' its cell counts (%d)', geography, total)
    return {
        cell: _divide(count, total) for cell, count in cell_counts.items()
    }


def _divide(numerator: Number, denominator: Number) -> Number:
    if isinstance(numerator, (int, Fraction)) and isinstance(denominator, (int, Fraction)):
        return Fraction(numerator, denominator)
    else:
        return numerator / denominator
