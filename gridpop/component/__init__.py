'''Interchangeable components of the apportionment engine.

The rounding rule producing the provisional integer allocations lives in
:mod:`rounding`, the rule ordering cells with equal residuals in
:mod:`tiebreak`.
'''
