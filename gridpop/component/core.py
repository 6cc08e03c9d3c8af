'''Named registers of interchangeable component functions.

Rounding and tie-breaking rules are kept in dictionaries keyed by the
function name so that engines can be configured (and serialized) by plain
strings. There should normally be no need to use these functions directly.
'''

from typing import Callable, Dict, Tuple, Union


def register_functions(register: Dict[str, Callable],
                       kind: str,
                       ) -> Tuple[Callable, Callable, Callable]:
    '''Build the marker, getter and constructer for a function register.

    :param register: Dictionary to hold the registered functions.
    :param kind: Human-readable name of the function kind, for messages.
    :returns: A triple of functions:

        -   a decorator registering the function under its own name,
        -   a getter retrieving a registered function by name, raising
            a KeyError for unknown names,
        -   a constructer that passes callables through unchanged and
            retrieves strings from the register.
    '''
    def mark(func: Callable) -> Callable:
        register[func.__name__] = func
        return func

    def get(name: str) -> Callable:
        try:
            return register[name]
        except KeyError:
            raise KeyError(f'unknown {kind}: {name!r}, available: '
                           + ', '.join(register.keys()))

    def construct(definition: Union[str, Callable]) -> Callable:
        if callable(definition):
            return definition
        return get(definition)

    get.__doc__ = f'Return a {kind} function by its name.'
    construct.__doc__ = (
        f'Return a {kind} function by its name; pass callables through.'
    )
    return mark, get, construct
