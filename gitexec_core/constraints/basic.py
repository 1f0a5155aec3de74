from __future__ import annotations

import codecs
from collections.abc import (
    Mapping,
)
from typing import Any

from gitexec_core.constraints.constraint import Constraint


class NoConstraint(Constraint):
    """A constraint that represents no constraints"""

    @property
    def input_synopsis(self):
        return ''

    def __call__(self, value):
        return value


class EnsureNone(Constraint):
    """Ensure an input is ``None``"""

    @property
    def input_synopsis(self):
        return 'None'

    def __call__(self, value):
        if value is not None:
            self.raise_for(value, 'must be None')
        return value


class EnsureInstanceOf(Constraint):
    """Ensure an input is an instance of any of the given types"""

    def __init__(self, *types: type):
        self._types = types

    @property
    def input_synopsis(self):
        return ' or '.join(t.__name__ for t in self._types)

    def __call__(self, value):
        if not isinstance(value, self._types):
            self.raise_for(
                value,
                'must be {types}, not {vtype}',
                types=self.input_synopsis,
                vtype=type(value).__name__,
            )
        return value


class EnsurePositiveInt(Constraint):
    """Ensure an input is an integer larger than zero

    ``bool`` is not accepted, even though it is an ``int`` subclass.
    """

    @property
    def input_synopsis(self):
        return 'int > 0'

    def __call__(self, value):
        if isinstance(value, bool) or not isinstance(value, int):
            self.raise_for(value, 'is not an integer')
        if value < 1:
            self.raise_for(value, 'must be larger than zero')
        return value


class EnsureCallable(Constraint):
    """Ensure an input is callable"""

    @property
    def input_synopsis(self):
        return 'callable'

    def __call__(self, value):
        if not callable(value):
            self.raise_for(value, 'is not callable')
        return value


class EnsureHasMethod(Constraint):
    """Ensure an input has a callable attribute of a given name"""

    def __init__(self, name: str):
        self._name = name

    @property
    def input_synopsis(self):
        return f'object with a {self._name}() method'

    def __call__(self, value):
        if not callable(getattr(value, self._name, None)):
            self.raise_for(value, 'has no {name}() method', name=self._name)
        return value


class EnsureEncoding(Constraint):
    """Ensure an input names a known text encoding

    The name is returned unchanged.
    """

    @property
    def input_synopsis(self):
        return 'text encoding name'

    def __call__(self, value):
        if not isinstance(value, str):
            self.raise_for(value, 'is not an encoding name')
        try:
            codecs.lookup(value)
        except LookupError as e:
            self.raise_for(value, 'unknown encoding', __caused_by__=e)
        return value


class EnsureStrMapping(Constraint):
    """Ensure an input is a mapping of ``str`` keys to ``str`` values

    A plain ``dict`` copy of the input is returned.
    """

    @property
    def input_synopsis(self):
        return 'mapping of str to str'

    def __call__(self, value: Any) -> dict:
        if not isinstance(value, Mapping):
            self.raise_for(value, 'not a mapping')
        invalid = tuple(
            k
            for k, v in value.items()
            if not isinstance(k, str) or not isinstance(v, str)
        )
        if invalid:
            self.raise_for(
                value,
                'non-str keys or values for {invalid!r}',
                invalid=invalid,
            )
        return dict(value)


class EnsureMappingHasKeys(Constraint):
    """Ensure a mapping has all given keys (with non-empty values)"""

    def __init__(self, required_keys: tuple | list):
        self._required_keys = tuple(required_keys)

    @property
    def input_synopsis(self):
        return (
            f'mapping with required keys {self._required_keys!r}'
            if self._required_keys
            else 'mapping'
        )

    def __call__(self, value: Any) -> Mapping:
        if not isinstance(value, Mapping):
            self.raise_for(
                value,
                'not a mapping',
            )
        missing = tuple(a for a in self._required_keys if not value.get(a))
        if missing:
            self.raise_for(
                value,
                'missing keys {missing!r}',
                missing=missing,
            )
        return value
