"""Gridpop - redistribution of census populations onto a regular grid.

Population counts are usually published for irregular administrative
geographies (such as census data zones) while many models need them on a
regular grid. When a geography straddles several grid cells, its population
must be split between them. Gridpop does that split in two steps:

-   The :mod:`weight` module turns overlay counts of finer sub-units (usually
    postcodes) per geography and grid cell into a normalized weight matrix
    that says which fraction of each geography belongs to which cell.
-   The :mod:`apportion` module distributes the integer population of every
    geography among its cells according to the weights, rounding by largest
    remainder so that no person is lost or invented by the rounding.

The :mod:`aggregate` module then sums the apportioned populations per cell
and offers a single :func:`aggregate.redistribute` call for the whole
pipeline. Computing the overlay itself (loading polygons, intersecting them
with the grid) is left to GIS tools; the :mod:`io` subpackage reads their
tabular output.
"""
