"""Measure the rounding distortion of apportioned populations.

These functions compare integer populations of cells with the exact
fractional allocations they were rounded from (weight times geography
total). A largest remainder apportionment never moves a cell by more than
one person from its exact allocation, so :func:`max_deviation` of a valid
result is always below one; :func:`total_absolute_deviation` then says how
many people in total had to be rounded somewhere.

The weights and results must be in the dictionary format of
:mod:`gridpop.weight` and :mod:`gridpop.apportion`.
"""

from numbers import Number
from typing import Dict, Mapping

from gridpop.core import CellID, GeographyID


def exact_allocations(weights: Mapping[CellID, Number],
                      total: int,
                      ) -> Dict[CellID, Number]:
    """Return the unrounded allocation of a total to weighted cells."""
    return {cell: weight * total for cell, weight in weights.items()}


def deviations(matrix: Mapping[GeographyID, Mapping[CellID, Number]],
               totals: Mapping[GeographyID, int],
               apportioned: Mapping[GeographyID, Mapping[CellID, int]],
               ) -> Dict[GeographyID, Dict[CellID, Number]]:
    """Return the differences of apportioned and exact populations.

    Positive values mean the cell received more people than its exact share.

    :param matrix: Weights of cells by geography.
    :param totals: Population totals of the geographies.
    :param apportioned: Integer populations by geography and cell.
    """
    out = {}
    for geog, column in apportioned.items():
        exact = exact_allocations(matrix.get(geog, {}), totals[geog])
        out[geog] = {
            cell: value - exact.get(cell, 0)
            for cell, value in column.items()
        }
    return out


def max_deviation(matrix: Mapping[GeographyID, Mapping[CellID, Number]],
                  totals: Mapping[GeographyID, int],
                  apportioned: Mapping[GeographyID, Mapping[CellID, int]],
                  ) -> float:
    """Return the largest absolute deviation of any cell of any geography.

    :param matrix: Weights of cells by geography.
    :param totals: Population totals of the geographies.
    :param apportioned: Integer populations by geography and cell.
    """
    return max(
        (
            abs(dev)
            for column in deviations(matrix, totals, apportioned).values()
            for dev in column.values()
        ),
        default=0,
    )


def total_absolute_deviation(matrix: Mapping[GeographyID, Mapping[CellID, Number]],
                             totals: Mapping[GeographyID, int],
                             apportioned: Mapping[GeographyID, Mapping[CellID, int]],
                             ) -> float:
    """Return the sum of absolute deviations over all cells and geographies.

    This is the overall distortion that the largest remainder method keeps
    as low as possible under the constraint of exact totals.
    """
    return sum(
        abs(dev)
        for column in deviations(matrix, totals, apportioned).values()
        for dev in column.values()
    )
