"""Parameter validation and coercion

Each :class:`Constraint` validates a single aspect of a value when called
with it, and returns the (possibly coerced) value. Constraints can be
combined with ``&`` (:class:`AllOf`) and ``|`` (:class:`AnyOf`).
Violations are reported with :class:`ConstraintError`, a ``ValueError``
that keeps the offending value and the violated constraint accessible.

.. currentmodule:: gitexec_core.constraints
.. autosummary::
   :toctree: generated

   Constraint
   AllOf
   AnyOf
   ConstraintError
   NoConstraint
   EnsureNone
   EnsureInstanceOf
   EnsurePositiveInt
   EnsureCallable
   EnsureHasMethod
   EnsureEncoding
   EnsureStrMapping
   EnsureMappingHasKeys
"""

__all__ = [
    'Constraint',
    'AllOf',
    'AnyOf',
    'ConstraintError',
    'NoConstraint',
    'EnsureNone',
    'EnsureInstanceOf',
    'EnsurePositiveInt',
    'EnsureCallable',
    'EnsureHasMethod',
    'EnsureEncoding',
    'EnsureStrMapping',
    'EnsureMappingHasKeys',
]


from .basic import (
    EnsureCallable,
    EnsureEncoding,
    EnsureHasMethod,
    EnsureInstanceOf,
    EnsureMappingHasKeys,
    EnsureNone,
    EnsurePositiveInt,
    EnsureStrMapping,
    NoConstraint,
)
from .constraint import (
    AllOf,
    AnyOf,
    Constraint,
)
from .exceptions import (
    ConstraintError,
)
