"""Input/output of overlay counts, populations and results.

This subpackage is structured into modules by file format. Currently the
comma-separated tables of :mod:`table` are supported; they are what GIS
tools export from an overlay of geographies, sub-units and the grid.
"""
