'''Serialize configured engine objects to JSON-ready dictionaries and back.

Engines are configured by a handful of constructor parameters (rounding
and tie-breaking rules). The :func:`simple_serialization` class decorator
gives them a ``to_dict()`` method storing those parameters together with the
scoped class name, so that a run setup can be stored next to its results and
recreated exactly by :func:`from_dict`.
'''

import importlib
import inspect
import sys
from typing import Any, Dict, List


def simple_serialization(class_: type) -> type:
    '''A decorator to provide a simple to_dict() serialization method.

    The method serializes all object attributes named like the constructor
    parameters, so the class must keep its parameters under the same names
    (in a form its constructor accepts).

    :param class_: The class to add the method to.
    '''
    param_names = [
        name for name in inspect.signature(class_.__init__).parameters
        if name not in ('self', 'args', 'kwargs')
    ]

    def to_dict(self) -> Dict[str, Any]:
        out_dict = {'class': scoped_name(type(self))}
        for attr in param_names:
            out_dict[attr] = serialize_value(getattr(self, attr))
        return out_dict

    class_.to_dict = to_dict
    return class_


def serialize_value(value: Any) -> Any:
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    elif isinstance(value, tuple(ATOMIC_TYPES)):
        return value
    elif callable(value):
        return {'callable': scoped_name(value)}
    else:
        raise ValueError(f'cannot serialize {value!r} to dict format')


def deserialize_value(value: Any) -> Any:
    if isinstance(value, dict):
        if is_scoped_identifier(value.get('class')):
            return deserialize_class(value)
        elif is_scoped_identifier(value.get('callable')):
            return get_object(value['callable'])
    elif isinstance(value, tuple(ATOMIC_TYPES)):
        return value
    raise ValueError(f'cannot deserialize {value!r}, type unknown')


def deserialize_class(clsdef: Dict[str, Any]) -> Any:
    cls = get_object(clsdef['class'])
    params = {
        key: deserialize_value(val)
        for key, val in clsdef.items() if key != 'class'
    }
    return cls(**params)


def get_object(identifier: str) -> Any:
    module, name = identifier.rsplit('.', 1)
    if module not in sys.modules:
        importlib.import_module(module)
    return getattr(sys.modules[module], name)


def from_dict(value: Dict[str, Any]) -> Any:
    '''Recreate an engine object from a dictionary created by :func:`to_dict`.

    :param value: A JSON-like dictionary with a scoped ``class`` key.
    :raises ValueError: If the dictionary does not define a class.
    '''
    if not isinstance(value, dict):
        raise ValueError(f'invalid gridpop object def: dict expected,'
                         f' got {value!r}')
    elif 'class' not in value:
        raise ValueError('invalid gridpop object def: must have a class key')
    elif not is_scoped_identifier(value['class']):
        raise ValueError(f"invalid gridpop class def: {value['class']!r}")
    return deserialize_class(value)


def to_dict(obj: Any) -> Dict[str, Any]:
    '''Serialize an engine object to a JSON-ready dictionary.

    :param obj: An object providing a ``to_dict()`` method, such as any
        apportioner decorated by :func:`simple_serialization`.
    '''
    return serialize_value(obj)


def is_scoped_identifier(value: Any) -> bool:
    return (
        isinstance(value, str)
        and '.' in value
        and not value.startswith('.')
        and all(chunk.isidentifier() for chunk in value.split('.'))
    )


def scoped_name(value: Any) -> str:
    return '.'.join((value.__module__, value.__qualname__))


ATOMIC_TYPES: List[type] = [
    str, int, float, bool, type(None),
]
