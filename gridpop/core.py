'''Common data types and errors of the redistribution machinery.'''

from __future__ import annotations

import abc
import dataclasses
from numbers import Number
from typing import Any, Dict, Hashable, Iterable, NamedTuple, Optional, Tuple, Union


GeographyID = Hashable
CellID = Hashable


class GridpopError(Exception):
    '''A redistribution run ended in a state that cannot be resolved.

    Carries the identifier of the offending geography (and cell, where one
    is known) so that the upstream data can be corrected.
    '''
    def __init__(self,
                 message: str,
                 geography: Optional[GeographyID] = None,
                 cell: Optional[CellID] = None,
                 ):
        super().__init__(message)
        self.geography = geography
        self.cell = cell


class MissingGeographyError(GridpopError):
    '''A geography with nonzero population does not map to any cell.'''
    pass


class MatrixConsistencyError(GridpopError):
    '''Weights of a geography do not form a valid distribution.

    Raised when the rounding correction would have to adjust more cells than
    the geography has, which means the weights do not sum to one.
    '''
    pass


class NegativePopulationError(GridpopError):
    '''A population total, sub-unit count or weight is negative.'''
    pass


@dataclasses.dataclass(frozen=True)
class Geography:
    '''A source administrative unit with a known total population.

    :param id: Unique identifier of the geography, such as a data zone code.
    :param population: Total population, a non-negative integer.
    '''
    id: GeographyID
    population: int = 0

    def __post_init__(self):
        if self.population < 0:
            raise NegativePopulationError(
                f'negative population {self.population} for geography'
                f' {self.id!r}',
                geography=self.id,
            )


def population_totals(populations: Union[Dict[GeographyID, int],
                                         Iterable[Geography]],
                      ) -> Dict[GeographyID, int]:
    '''Return validated population totals keyed by geography identifier.

    :param populations: Either a mapping of geography identifiers to their
        populations, or an iterable of :class:`Geography` objects.
    :raises NegativePopulationError: If any of the totals is negative.
    :raises ValueError: If a geography identifier is repeated.
    '''
    if hasattr(populations, 'items'):
        pairs = list(populations.items())
    else:
        pairs = [(geog.id, geog.population) for geog in populations]
    totals = {}
    for geog_id, population in pairs:
        if geog_id in totals:
            raise ValueError(f'duplicate geography identifier: {geog_id!r}')
        if population < 0:
            raise NegativePopulationError(
                f'negative population {population} for geography {geog_id!r}',
                geography=geog_id,
            )
        totals[geog_id] = population
    return totals


class WeightEntry(NamedTuple):
    '''Fraction of a geography's population assigned to a single cell.'''
    geography: GeographyID
    cell: CellID
    weight: Number


class Apportioner(metaclass=abc.ABCMeta):
    '''Distribute integer population totals among cells by weights.

    A root abstract base class for all apportionment engines.
    '''
    @abc.abstractmethod
    def apportion_row(self,
                      weights: Dict[CellID, Number],
                      total: int,
                      geography: Optional[GeographyID] = None,
                      ) -> Dict[CellID, int]:
        '''Split a single geography's total among its cells.

        :param weights: Weights of the cells for the geography, summing
            to one.
        :param total: Total population of the geography.
        :param geography: Identifier of the geography, used in error
            messages only.
        :returns: Integer populations for every cell with a weight entry,
            summing exactly to the total.
        '''
        raise NotImplementedError

    @abc.abstractmethod
    def apportion(self, matrix: Any, totals: Dict[GeographyID, int],
                  *args, **kwargs) -> Any:
        '''Split the totals of all geographies according to a weight matrix.'''
        raise NotImplementedError


def id_sort_key(identifier: Hashable) -> Tuple[str, Any]:
    '''Sort key for geography and cell identifiers.

    Identifiers of one type compare naturally; mixed types are grouped by
    type name so that sorting never fails on e.g. integers mixed with strings.
    '''
    return (type(identifier).__name__, identifier)
