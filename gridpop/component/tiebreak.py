'''Tie-breaking rules for cells with equal rounding residuals.

When several cells of a geography have exactly the same residual and only
some of them can receive (or lose) a unit, a fixed rule must decide, or the
result would depend on dictionary or sort implementation details. A
tie-breaking function takes the cells of a weight row in their input order
and returns their priorities: the cell with the lower priority number wins
the tie, both when adding and when subtracting units.

All supported tie-breaking functions are assembled in the `TIEBREAKS`
dictionary keyed by their name. `get()` retrieves from this dictionary by
string key; `construct()` also accepts callables and passes them through.
'''

from typing import Callable, Dict, List

import gridpop.component.core
from gridpop.core import CellID, id_sort_key


TIEBREAKS = {}


tiebreak_mark, get, construct = gridpop.component.core.register_functions(
    TIEBREAKS, 'tie-breaking rule'
)

TiebreakFunction = Callable[[List[CellID]], Dict[CellID, int]]


@tiebreak_mark
def cell_id(cells: List[CellID]) -> Dict[CellID, int]:
    '''Lowest cell identifier wins.

    Identifiers are compared by their natural ordering within a type;
    identifiers of different types are grouped by type name first so that
    mixed integer and string identifiers still sort deterministically.
    '''
    ordered = sorted(cells, key=id_sort_key)
    return {cell: i for i, cell in enumerate(ordered)}


@tiebreak_mark
def input_order(cells: List[CellID]) -> Dict[CellID, int]:
    '''The cell appearing earlier in the weight row wins.'''
    return {cell: i for i, cell in enumerate(cells)}