"""Shared functionality for table file I/O. Internal."""

import typing
from typing import Any, Callable, Iterable, Optional, TextIO, Tuple


class ParseError(Exception):
    """An input that is invalid according to the given format was detected."""

    def __init__(self, message: str, line_no: Optional[int] = None):
        if line_no is not None:
            message = f'line {line_no}: {message}'
        super().__init__(message)
        self.line_no = line_no


def loaders(line_loader: Callable[..., Any]
            ) -> Tuple[Callable[..., Any], Callable[..., Any]]:
    """Create load() and loads() functions from a line iterating function."""
    return_annot = typing.get_type_hints(line_loader).get('return', Any)

    def load(file: TextIO, **kwargs) -> return_annot:
        return line_loader(file, **kwargs)

    def loads(text: str, **kwargs) -> return_annot:
        return line_loader(iter(text.splitlines()), **kwargs)

    load.__doc__ = loads.__doc__ = line_loader.__doc__
    return load, loads


def dumpers(line_dumper: Callable[..., Iterable[str]]
            ) -> Tuple[Callable[..., None], Callable[..., str]]:
    """Create dump() and dumps() functions from a line generator function."""

    def dump(file: TextIO, *args, **kwargs) -> None:
        for line in line_dumper(*args, **kwargs):
            file.write(line + '\n')

    def dumps(*args, **kwargs) -> str:
        return ''.join(
            line + '\n' for line in line_dumper(*args, **kwargs)
        )

    dump.__doc__ = dumps.__doc__ = line_dumper.__doc__
    return dump, dumps
