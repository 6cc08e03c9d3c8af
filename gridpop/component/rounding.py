'''Rounding rules producing provisional integer allocations.

A rounding function takes the exact fractional allocation of a cell (its
weight times the geography total) and returns an integer. The largest
remainder correction then fixes whatever the rounding did to the total, so
any deterministic rule gives an exactly conserving result; the rules differ
in which cells end up receiving the leftover units.

The rules accept ints, floats and fractions alike. Fractions are rounded
exactly, so weights like 1/3 built from integer counts never suffer from
binary representation error.

All supported rounding functions are assembled in the `ROUNDINGS` dictionary
keyed by their name. `get()` retrieves from this dictionary by string key;
`construct()` also accepts callables and passes them through.
'''

import math
from fractions import Fraction
from numbers import Number
from typing import Callable

import gridpop.component.core


ROUNDINGS = {}


rounding_mark, get, construct = gridpop.component.core.register_functions(
    ROUNDINGS, 'rounding'
)

RoundingFunction = Callable[[Number], int]


@rounding_mark
def half_even(value: Number) -> int:
    '''Round to the nearest integer, halves to the even neighbour.

    This is what Python's (and R's) built-in ``round`` does and it is the
    default rule. Exact halves only arise for fractional or exactly
    representable float allocations, such as a weight of 1/2 with an odd
    total.
    '''
    return int(round(value))


@rounding_mark
def half_up(value: Number) -> int:
    '''Round to the nearest integer, halves away from zero.

    Allocations are never negative, so this always rounds halves up.
    '''
    exact = Fraction(value)
    floored = math.floor(exact)
    if exact - floored >= Fraction(1, 2):
        return floored + 1
    else:
        return floored


@rounding_mark
def down(value: Number) -> int:
    '''Round down (floor).

    Together with the largest remainder correction, this gives the classic
    Hamilton (Hare quota) method: all leftover units go to the cells with the
    largest fractional parts and no unit ever needs to be taken away.
    '''
    return math.floor(value)
