"""Base classes for constraints and their logical connectives"""

from __future__ import annotations

from abc import (
    ABC,
    abstractmethod,
)
from typing import Any

from gitexec_core.constraints.exceptions import ConstraintError


class Constraint(ABC):
    """Base class for value coercion/validation"""

    def __str__(self) -> str:
        return f'Constraint[{self.input_synopsis}]'

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}()'

    def raise_for(self, value: Any, msg: str, **ctx: Any) -> None:
        """Convenience method for raising a ``ConstraintError``

        The parameters are identical to those of ``ConstraintError``,
        except that the constraint instance is passed on implicitly.
        """
        if ctx:
            raise ConstraintError(self, value, msg, ctx)
        raise ConstraintError(self, value, msg)

    def __and__(self, other: Constraint) -> Constraint:
        return AllOf(self, other)

    def __or__(self, other: Constraint) -> Constraint:
        return AnyOf(self, other)

    @property
    @abstractmethod
    def input_synopsis(self) -> str:
        """Returns brief, single line summary of valid input"""

    @abstractmethod
    def __call__(self, value: Any):
        """Validate (and possibly coerce) ``value``, return the result"""


class _MultiConstraint(Constraint):
    def __init__(self, *constraints: Constraint):
        self._constraints = constraints

    def __repr__(self) -> str:
        creprs = ', '.join(f'{c!r}' for c in self.constraints)
        return f'{self.__class__.__name__}({creprs})'

    @property
    def constraints(self) -> tuple[Constraint, ...]:
        return self._constraints

    def _join_synopsis(self, operation: str) -> str:
        return f' {operation} '.join(
            c.input_synopsis for c in self.constraints if c.input_synopsis
        )


class AnyOf(_MultiConstraint):
    """Logical OR for constraints

    Constraints are tried in the order given. The return value of the
    first constraint that does not raise is the overall return value.
    """

    def __or__(self, other: Constraint) -> Constraint:
        constraints = list(self.constraints)
        if isinstance(other, AnyOf):
            constraints.extend(other.constraints)
        else:
            constraints.append(other)
        return AnyOf(*constraints)

    def __call__(self, value: Any) -> Any:
        e_list = []
        for c in self.constraints:
            try:
                return c(value)
            except ConstraintError as e:
                e_list.append(e)
        self.raise_for(  # noqa: RET503
            value,
            'does not match any of {n_alternatives} alternatives\n'
            '{__itemized_causes__}',
            n_alternatives=len(self.constraints),
            __caused_by__=e_list,
        )

    @property
    def input_synopsis(self) -> str:
        return self._join_synopsis('or')


class AllOf(_MultiConstraint):
    """Logical AND for constraints

    The return value of each constraint is passed as input into the next.
    No intermediate exceptions are caught.
    """

    def __and__(self, other: Constraint) -> Constraint:
        constraints = list(self.constraints)
        if isinstance(other, AllOf):
            constraints.extend(other.constraints)
        else:
            constraints.append(other)
        return AllOf(*constraints)

    def __call__(self, value: Any) -> Any:
        for c in self.constraints:
            value = c(value)
        return value

    @property
    def input_synopsis(self) -> str:
        return self._join_synopsis('and')
