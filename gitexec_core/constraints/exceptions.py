from __future__ import annotations

from textwrap import indent
from types import MappingProxyType
from typing import (
    Any,
)


class ConstraintError(ValueError):
    # ValueError is the closest built-in: a value of the right type, but
    # not an acceptable one
    """Exception type raised by constraints when their conditions are violated

    The message is kept as a template and is interpolated with the
    error context on access. This keeps the structured information on
    the violation (constraint, value, context) available to callers.
    """

    def __init__(
        self,
        constraint,
        value: Any,
        msg: str,
        ctx: dict[str, Any] | None = None,
    ):
        """
        Parameters
        ----------
        constraint: Constraint
          Instance of the ``Constraint`` class that determined a violation.
        value:
          The value that is in violation of a constraint.
        msg: str
          Message template describing the violation. It can contain
          keyword placeholders in ``format()`` syntax that are filled
          from ``ctx``.
        ctx: dict, optional
          Mapping with context information on the violation. The key
          ``'__caused_by__'`` can hold one exception, or a sequence of
          exceptions, that led to this error.
        """
        # `msg` goes first, where `ValueError` would have it
        super().__init__(msg, constraint, value, ctx)

    @property
    def msg(self) -> str:
        """Obtain the interpolated message on the constraint violation

        Besides the keys of the error context, the placeholders
        ``__value__`` (the offending value) and ``__itemized_causes__``
        (indented bullet list of underlying errors) are supported.
        """
        ctx = dict(self.context)
        ctx['__value__'] = self.value
        if self.caused_by:
            ctx['__itemized_causes__'] = indent(
                '\n'.join(f'- {c!s}' for c in self.caused_by),
                '  ',
            )
        return self.args[0].format(**ctx)

    @property
    def constraint(self):
        """Get the instance of the constraint that was violated"""
        return self.args[1]

    @property
    def value(self):
        """Get the value that violated the constraint"""
        return self.args[2]

    @property
    def caused_by(self) -> tuple[Exception, ...] | None:
        """Returns a tuple of any underlying exceptions"""
        cb = self.context.get('__caused_by__', None)
        if cb is None:
            return None
        if isinstance(cb, Exception):
            return (cb,)
        return tuple(cb)

    @property
    def context(self) -> MappingProxyType:
        """Get the (read-only) context of a constraint violation"""
        return MappingProxyType(self.args[3] or {})

    def __str__(self) -> str:
        return self.msg

    def __repr__(self) -> str:
        return '{0}({2!r}, {3!r}, {1!r}, {4!r})'.format(
            self.__class__.__name__,
            *self.args,
        )
