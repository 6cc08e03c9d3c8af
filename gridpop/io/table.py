"""Comma-separated tables of overlay counts, populations and results.

The overlay of geographies, sub-units and the grid is computed by GIS tools
that can export plain tables. Every table has a header row; the column
names are not checked, only their number and order:

-   intersection counts: ``geography,cell,count`` - the number of sub-units
    of the geography located in the cell,
-   totals: ``geography,count`` - the number of sub-units in the whole
    geography, or ``geography,population`` - the population total,
-   weights: ``geography,cell,weight`` - weights given directly, as
    decimals or fractions like ``1/3``,
-   population tables: ``geography,<column>,<column>...`` - e.g. single-year
    age counts,
-   cell populations (output): ``cell,population`` or
    ``cell,<class>,<class>...``.

Identifiers are read as strings unless a conversion function (such as
``int`` for numbered grid cells) is given.
"""

import csv
from fractions import Fraction
from numbers import Number
from typing import Callable, Dict, Iterable, List, Mapping, Sequence, Tuple

import gridpop.io.core
from gridpop.core import CellID, GeographyID
from gridpop.weight import WeightMatrix


class TableParseError(gridpop.io.core.ParseError):
    pass


def load_count_lines(lines: Iterable[str],
                     geography_type: Callable = str,
                     cell_type: Callable = str,
                     ) -> Dict[Tuple[GeographyID, CellID], int]:
    """Load sub-unit counts per geography and cell.

    Repeated geography-cell pairs are summed.
    """
    counts = {}
    for line_no, row in _data_rows(lines, n_columns=3):
        key = (
            _convert(geography_type, row[0], line_no),
            _convert(cell_type, row[1], line_no),
        )
        counts[key] = counts.get(key, 0) + _parse_int(row[2], line_no)
    return counts


load_counts, loads_counts = gridpop.io.core.loaders(load_count_lines)


def load_total_lines(lines: Iterable[str],
                     geography_type: Callable = str,
                     ) -> Dict[GeographyID, int]:
    """Load a single integer total (count or population) per geography."""
    totals = {}
    for line_no, row in _data_rows(lines, n_columns=2):
        geog = _convert(geography_type, row[0], line_no)
        if geog in totals:
            raise TableParseError(f'duplicate geography {geog!r}', line_no)
        totals[geog] = _parse_int(row[1], line_no)
    return totals


load_totals, loads_totals = gridpop.io.core.loaders(load_total_lines)


def load_weight_lines(lines: Iterable[str],
                      geography_type: Callable = str,
                      cell_type: Callable = str,
                      ) -> WeightMatrix:
    """Load precomputed weights of cells for geographies."""
    columns = {}
    for line_no, row in _data_rows(lines, n_columns=3):
        geog = _convert(geography_type, row[0], line_no)
        cell = _convert(cell_type, row[1], line_no)
        column = columns.setdefault(geog, {})
        if cell in column:
            raise TableParseError(
                f'duplicate weight for {geog!r} in cell {cell!r}', line_no
            )
        column[cell] = _parse_weight(row[2], line_no)
    return WeightMatrix(columns)


load_weights, loads_weights = gridpop.io.core.loaders(load_weight_lines)


def load_population_table_lines(lines: Iterable[str],
                                geography_type: Callable = str,
                                ) -> Tuple[List[str], Dict[GeographyID, List[int]]]:
    """Load several integer columns per geography.

    :returns: Names of the value columns from the header and the integer
        values for every geography.
    """
    lines = iter(lines)
    reader = csv.reader(lines)
    try:
        header = next(reader)
    except StopIteration as e:
        raise TableParseError('empty table') from e
    if len(header) < 2:
        raise TableParseError(f'need at least 2 columns, got {header!r}', 1)
    value_columns = header[1:]
    table = {}
    for line_no, row in enumerate(reader, start=2):
        if not row:
            continue
        if len(row) != len(header):
            raise TableParseError(
                f'expected {len(header)} columns, got {len(row)}', line_no
            )
        geog = _convert(geography_type, row[0], line_no)
        if geog in table:
            raise TableParseError(f'duplicate geography {geog!r}', line_no)
        table[geog] = [_parse_int(value, line_no) for value in row[1:]]
    return value_columns, table


load_population_table, loads_population_table = gridpop.io.core.loaders(
    load_population_table_lines
)


def dump_cell_population_lines(populations: Mapping[CellID, int],
                               value_name: str = 'population',
                               ) -> Iterable[str]:
    """Write populations of cells under a cell,population header."""
    yield _dump_row(['cell', value_name])
    for cell, population in populations.items():
        yield _dump_row([cell, population])


dump_cell_populations, dumps_cell_populations = gridpop.io.core.dumpers(
    dump_cell_population_lines
)


def dump_class_population_lines(by_class: Mapping[str, Mapping[CellID, int]],
                                ) -> Iterable[str]:
    """Write populations of cells with one column per population class.

    Cells missing in some class get zero there.
    """
    labels = list(by_class.keys())
    cells = []
    for class_pops in by_class.values():
        for cell in class_pops:
            if cell not in cells:
                cells.append(cell)
    yield _dump_row(['cell'] + labels)
    for cell in cells:
        yield _dump_row(
            [cell] + [by_class[label].get(cell, 0) for label in labels]
        )


dump_class_populations, dumps_class_populations = gridpop.io.core.dumpers(
    dump_class_population_lines
)


def _data_rows(lines: Iterable[str],
               n_columns: int,
               ) -> Iterable[Tuple[int, List[str]]]:
    reader = csv.reader(lines)
    try:
        next(reader)    # header
    except StopIteration as e:
        raise TableParseError('empty table') from e
    for line_no, row in enumerate(reader, start=2):
        if not row:
            continue
        if len(row) != n_columns:
            raise TableParseError(
                f'expected {n_columns} columns, got {len(row)}', line_no
            )
        yield line_no, [value.strip() for value in row]


def _dump_row(values: Sequence) -> str:
    return ','.join(_quote(str(value)) for value in values)


def _quote(value: str) -> str:
    if any(char in value for char in ',"\n'):
        return '"' + value.replace('"', '""') + '"'
    return value


def _convert(converter: Callable, value: str, line_no: int):
    try:
        return converter(value.strip())
    except ValueError as e:
        raise TableParseError(f'invalid identifier {value!r}', line_no) from e


def _parse_int(value: str, line_no: int) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise TableParseError(f'integer expected, got {value!r}', line_no) from e


def _parse_weight(value: str, line_no: int) -> Number:
    try:
        if '/' in value:
            return Fraction(value)
        return float(value)
    except (ValueError, ZeroDivisionError) as e:
        raise TableParseError(f'invalid weight {value!r}', line_no) from e
