"""A commandline tool to redistribute geography populations onto a grid.

Reads sub-unit overlay counts (or precomputed weights) and population
totals of geographies from CSV tables and writes populations of grid cells.
With age classes given, the population table is read as single-year age
counts and every class is redistributed separately.
"""

import argparse
import io
import logging
import sys
from typing import List, Optional

import gridpop.ageclass
import gridpop.aggregate
import gridpop.component.rounding
import gridpop.component.tiebreak
import gridpop.io.table
import gridpop.weight
from gridpop.apportion import LargestRemainderApportioner


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f'must be at least 1, got {number}')
    return number


argparser = argparse.ArgumentParser(
    prog='gridpop',
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    'populations',
    type=argparse.FileType('r', encoding='utf8'),
    help=(
        'population table (geography,population), or single-year age table'
        ' (geography,age0,...,age90) if age classes are given'
    ),
)
argparser.add_argument(
    '-c', '--counts',
    type=argparse.FileType('r', encoding='utf8'),
    help='sub-unit counts per geography and cell (geography,cell,count)',
)
argparser.add_argument(
    '-t', '--totals',
    type=argparse.FileType('r', encoding='utf8'),
    help=(
        'sub-unit counts per whole geography (geography,count); if omitted,'
        ' the sums of cell counts are used'
    ),
)
argparser.add_argument(
    '-w', '--weights',
    type=argparse.FileType('r', encoding='utf8'),
    help='precomputed weights (geography,cell,weight) instead of counts',
)
argparser.add_argument(
    '-o', '--output-file',
    type=argparse.FileType('w', encoding='utf8'),
    default='-',
    help='file to write cell populations to',
)
argparser.add_argument(
    '-a', '--age-classes',
    type=int,
    nargs='+',
    help='lower bounds of age classes to redistribute separately',
)
argparser.add_argument(
    '-r', '--rounding',
    choices=list(gridpop.component.rounding.ROUNDINGS.keys()),
    default='half_even',
    help='provisional rounding rule',
)
argparser.add_argument(
    '-b', '--tiebreak',
    choices=list(gridpop.component.tiebreak.TIEBREAKS.keys()),
    default='cell_id',
    help='rule to order cells with equal residuals',
)
argparser.add_argument(
    '-j', '--workers',
    type=positive_int,
    default=1,
    help='number of threads to apportion geographies with',
)
argparser.add_argument(
    '-n', '--numeric-cells',
    action='store_true',
    help=(
        'treat cell identifiers as integers (e.g. numbered grid squares);'
        ' without it they are strings, which sort and break ties'
        " lexicographically ('10' before '9')"
    ),
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all log messages including per-geography corrections',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='show only warnings and errors',
)


def main(populations: io.TextIOBase,
         counts: Optional[io.TextIOBase] = None,
         totals: Optional[io.TextIOBase] = None,
         weights: Optional[io.TextIOBase] = None,
         output_file: io.TextIOBase = sys.stdout,
         age_classes: Optional[List[int]] = None,
         rounding: str = 'half_even',
         tiebreak: str = 'cell_id',
         workers: int = 1,
         numeric_cells: bool = False,
         verbose: bool = False,
         quiet: bool = False,
         ) -> None:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    cell_type = int if numeric_cells else str
    matrix = load_matrix(counts, totals, weights, cell_type=cell_type)
    apportioner = LargestRemainderApportioner(
        rounding=rounding, tiebreak=tiebreak
    )
    if age_classes:
        _, single_year = gridpop.io.table.load_population_table(populations)
        single_year = gridpop.ageclass.drop_empty(single_year)
        class_table = gridpop.ageclass.aggregate_age_classes(
            single_year, age_classes
        )
        by_class = gridpop.ageclass.apportion_classes(
            matrix, class_table, apportioner=apportioner, workers=workers
        )
        gridpop.io.table.dump_class_populations(output_file, by_class)
    else:
        pop_totals = gridpop.io.table.load_totals(populations)
        cell_pops = gridpop.aggregate.redistribute(
            matrix, pop_totals, apportioner=apportioner, workers=workers
        )
        gridpop.io.table.dump_cell_populations(output_file, cell_pops)


def load_matrix(counts: Optional[io.TextIOBase],
                totals: Optional[io.TextIOBase],
                weights: Optional[io.TextIOBase],
                cell_type: type = str,
                ) -> gridpop.weight.WeightMatrix:
    """Load precomputed weights or build them from sub-unit counts."""
    if weights is not None:
        if counts is not None:
            raise ValueError('give either sub-unit counts or weights, not both')
        matrix = gridpop.io.table.load_weights(weights, cell_type=cell_type)
        matrix.validate()
        return matrix
    elif counts is None:
        raise ValueError('sub-unit counts or weights are required')
    cell_counts = gridpop.io.table.load_counts(counts, cell_type=cell_type)
    total_counts = {} if totals is None else gridpop.io.table.load_totals(totals)
    return gridpop.weight.build_weights(total_counts, cell_counts)


if __name__ == '__main__':
    args = argparser.parse_args()
    if not args.counts and not args.weights:
        argparser.print_usage()
    else:
        main(**vars(args))
