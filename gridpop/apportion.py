'''Integer apportionment of geography populations among grid cells.

Multiplying a geography's population by the weights of its cells gives
fractional numbers of people. Rounding them independently loses or invents
people: a geography of 6 people split 0.4, 0.3, 0.2, 0.075 and 0.025 among
five cells gives exact allocations of 2.4, 1.8, 1.2, 0.45 and 0.15, which
round to 2, 2, 1, 0 and 0 - one person short.

The largest remainder method fixes this the same way it allocates leftover
seats in proportional elections. After the provisional rounding, the
difference between the true total and the rounded total (the *shortfall*) is
made up by adding a unit to the cells whose rounded values fell furthest
below their exact allocations (the largest residuals), or, if the rounding
overshot, by taking a unit from the cells that were rounded up the most (the
smallest residuals). In the example above, the fourth cell has the largest
residual of 0.45 and gets the missing person, giving 2, 2, 1, 1 and 0.

Every geography is processed independently, so the columns of a weight
matrix can be apportioned in parallel.
'''

from __future__ import annotations

import collections.abc
import concurrent.futures
import logging
import types
from numbers import Number
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

import gridpop.aggregate
import gridpop.component.rounding
import gridpop.component.tiebreak
from gridpop.core import (
    Apportioner,
    CellID,
    GeographyID,
    MatrixConsistencyError,
    MissingGeographyError,
    NegativePopulationError,
    population_totals,
)
from gridpop.persist import simple_serialization


logger = logging.getLogger(__name__)


class ApportionedMatrix(collections.abc.Mapping):
    '''Integer populations of cells for every geography. Read-only.

    ``matrix[geography]`` returns a read-only mapping of cells to the
    numbers of the geography's people assigned to them.
    '''
    def __init__(self, columns: Mapping[GeographyID, Mapping[CellID, int]]):
        self._columns = {
            geog: types.MappingProxyType(dict(column))
            for geog, column in columns.items()
        }

    def __getitem__(self, geography: GeographyID) -> Mapping[CellID, int]:
        return self._columns[geography]

    def __iter__(self) -> Iterator[GeographyID]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}: {len(self)} geographies>'

    def column_totals(self) -> Dict[GeographyID, int]:
        '''Return the total population apportioned for each geography.'''
        return {
            geog: sum(column.values())
            for geog, column in self._columns.items()
        }

    def cell_populations(self) -> Mapping[CellID, int]:
        '''Sum the populations of all geographies in each cell.'''
        return gridpop.aggregate.cell_populations(self)


@simple_serialization
class LargestRemainderApportioner(Apportioner):
    '''Apportion populations by rounding and a largest remainder correction.

    :param rounding: Rule for the provisional rounding of exact allocations.
        The rules can be referenced by string name from the
        :mod:`gridpop.component.rounding` module; the default rounds to
        nearest with halves to even.
    :param tiebreak: Rule ordering cells with exactly equal residuals when
        only some of them can be corrected. The rules can be referenced by
        string name from the :mod:`gridpop.component.tiebreak` module; the
        default prefers the lowest cell identifier.
    '''
    def __init__(self,
                 rounding: Union[str, Callable[[Number], int]] = 'half_even',
                 tiebreak: Union[str, Callable[[List[CellID]], Dict[CellID, int]]] = 'cell_id',
                 ):
        self.rounding = rounding
        self.tiebreak = tiebreak
        self._round = gridpop.component.rounding.construct(rounding)
        self._prioritize = gridpop.component.tiebreak.construct(tiebreak)

    def apportion_row(self,
                      weights: Mapping[CellID, Number],
                      total: int,
                      geography: Optional[GeographyID] = None,
                      ) -> Dict[CellID, int]:
        '''Split a single geography's total among its cells.

        Cells with zero weight are left out of the result.

        :param weights: Weights of the cells for the geography, summing
            to one.
        :param total: Total population of the geography.
        :param geography: Identifier of the geography, used in error
            messages only.
        :returns: Integer populations for every cell with a nonzero weight,
            summing exactly to the total.
        :raises NegativePopulationError: If the total or a weight is negative.
        :raises MissingGeographyError: If a nonzero total has no cells to go.
        :raises MatrixConsistencyError: If the weights do not sum to one
            closely enough for the rounding to be corrected.
        '''
        if total < 0:
            raise NegativePopulationError(
                f'negative population {total} for geography {geography!r}',
                geography=geography,
            )
        cells = []
        for cell, weight in weights.items():
            if weight < 0:
                raise NegativePopulationError(
                    f'negative weight {weight} of cell {cell!r} for geography'
                    f' {geography!r}',
                    geography=geography, cell=cell,
                )
            elif weight != 0:
                cells.append(cell)
        if not cells:
            if total:
                raise MissingGeographyError(
                    f'geography {geography!r} with population {total} has no'
                    ' cell weights; its population would be lost',
                    geography=geography,
                )
            return {}
        if total == 0:
            return {cell: 0 for cell in cells}
        if len(cells) == 1:
            return {cells[0]: total}
        exact = {cell: weights[cell] * total for cell in cells}
        result = {cell: self._round(exact[cell]) for cell in cells}
        shortfall = total - sum(result.values())
        if shortfall:
            self._correct(result, exact, shortfall, geography)
        self._check(result, total, geography)
        return result

    def _correct(self,
                 result: Dict[CellID, int],
                 exact: Dict[CellID, Number],
                 shortfall: int,
                 geography: Optional[GeographyID],
                 ) -> None:
        cells = list(result.keys())
        if abs(shortfall) > len(cells):
            raise MatrixConsistencyError(
                f'rounding of geography {geography!r} is off by {shortfall}'
                f' with only {len(cells)} cells to correct; its weights do'
                ' not sum to 1',
                geography=geography,
            )
        priorities = self._prioritize(cells)
        residuals = {cell: exact[cell] - result[cell] for cell in cells}
        step = 1 if shortfall > 0 else -1
        # adding goes to the largest residuals, taking to the smallest
        ranked = sorted(
            cells,
            key=lambda cell: (-step * residuals[cell], priorities[cell])
        )
        corrected = ranked[:abs(shortfall)]
        for cell in corrected:
            result[cell] += step
        logger.debug('geography %r: corrected shortfall %d in cells %s',
                     geography, shortfall, corrected)

    def _check(self,
               result: Dict[CellID, int],
               total: int,
               geography: Optional[GeographyID],
               ) -> None:
        if sum(result.values()) != total:
            raise MatrixConsistencyError(
                f'apportioned {sum(result.values())} people of geography'
                f' {geography!r} instead of {total}',
                geography=geography,
            )
        for cell, value in result.items():
            if value < 0:
                raise MatrixConsistencyError(
                    f'negative population {value} apportioned to cell'
                    f' {cell!r} from geography {geography!r}; its weights do'
                    ' not sum to 1',
                    geography=geography, cell=cell,
                )

    def apportion(self,
                  matrix: Mapping[GeographyID, Mapping[CellID, Number]],
                  totals: Mapping[GeographyID, int],
                  workers: int = 1,
                  ) -> ApportionedMatrix:
        '''Apportion the totals of all geographies according to the weights.

        :param matrix: Weights of cells by geography, such as a
            :class:`gridpop.weight.WeightMatrix`.
        :param totals: Population totals of the geographies to apportion.
            Geographies of the matrix that have no total are skipped.
        :param workers: Number of threads to process the geographies with.
            The result does not depend on the number of workers.
        :returns: Integer populations by geography and cell, in the order of
            the totals.
        :raises MissingGeographyError: If a geography with a nonzero total
            has no weights in the matrix.
        :raises ValueError: If the number of workers is below one.
        '''
        if workers < 1:
            raise ValueError(f'number of workers must be at least 1, got {workers}')
        totals = population_totals(totals)
        geographies = list(totals.keys())
        workers = min(workers, len(geographies))
        skipped = [geog for geog in matrix.keys() if geog not in totals]
        if skipped:
            logger.warning('%d geographies have weights but no population'
                           ' total, skipping', len(skipped))

        def process(geography: GeographyID) -> Dict[CellID, int]:
            return self.apportion_row(
                matrix.get(geography, {}), totals[geography], geography
            )

        if workers <= 1:
            columns = [process(geog) for geog in geographies]
        else:
            logger.info('apportioning %d geographies on %d threads',
                        len(geographies), workers)
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                columns = list(executor.map(process, geographies))
        apportioned = ApportionedMatrix(dict(zip(geographies, columns)))
        logger.info('apportioned %d people of %d geographies',
                    sum(totals.values()), len(apportioned))
        return apportioned

    def __repr__(self) -> str:
        return (f'{self.__class__.__name__}(rounding={self.rounding!r},'
                f' tiebreak={self.tiebreak!r})')


def apportion(matrix: Mapping[GeographyID, Mapping[CellID, Number]],
              totals: Mapping[GeographyID, int],
              workers: int = 1,
              **kwargs: Any,
              ) -> ApportionedMatrix:
    '''Apportion totals with a :class:`LargestRemainderApportioner`.

    :param kwargs: Passed to the apportioner constructor.
    '''
    return LargestRemainderApportioner(**kwargs).apportion(
        matrix, totals, workers=workers
    )
