from __future__ import annotations

from collections.abc import (
    Callable,
    Mapping,
)
from dataclasses import (
    dataclass,
    field,
)
from types import MappingProxyType
from typing import (
    Any,
    Protocol,
)

from gitexec_core.config import (
    UnsetValue,
    get_defaults,
)
from gitexec_core.constraints import (
    Constraint,
    EnsureCallable,
    EnsureEncoding,
    EnsureHasMethod,
    EnsureInstanceOf,
    EnsureNone,
    EnsurePositiveInt,
    EnsureStrMapping,
)


class CancelSignal(Protocol):
    """Anything with an ``is_set()`` method, e.g. ``threading.Event``"""

    def is_set(self) -> bool: ...


DoneCallback = Callable[[BaseException | None, str | bytes, str | bytes], None]
"""Completion callback handed to an external-exec function

Must be called exactly once with ``(error, stdout, stderr)``. ``error`` is
``None`` on success. Otherwise its ``code`` attribute, if it is an integer,
is used as the exit code of the invocation.
"""


@dataclass(frozen=True)
class ExternalExecOptions:
    """Options passed to an external-exec function"""

    cwd: str
    """Working directory the command must run in"""
    env: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    """Environment resolved for the invocation"""


ExecFunc = Callable[[str, list[str], ExternalExecOptions, DoneCallback], Any]
"""Signature of an external-exec function

It receives the path of the Git executable, the list of arguments,
:class:`ExternalExecOptions`, and a :data:`DoneCallback`.
"""


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a Git invocation"""

    exit_code: int
    stdout: str
    stderr: str
    stdout_overflow: bool = False
    """Whether ``stdout`` was truncated at the buffer limit"""
    stderr_overflow: bool = False
    """Whether ``stderr`` was truncated at the buffer limit"""
    overflow_terminated: bool = False
    """Whether the process was terminated because of an overflow

    The exit code of such a result does not reflect the outcome of the
    Git command, hence such a result is never classified.
    """

    @property
    def overflow(self) -> bool:
        """Whether any output stream was truncated"""
        return self.stdout_overflow or self.stderr_overflow

    @property
    def success(self) -> bool:
        return self.exit_code == 0


_option_constraints: dict[str, Constraint] = {
    'env': EnsureNone() | EnsureStrMapping(),
    'max_buffer': EnsurePositiveInt(),
    'exec_func': EnsureNone() | EnsureCallable(),
    'cancel': EnsureNone() | EnsureHasMethod('is_set'),
    'stdin': EnsureNone() | EnsureInstanceOf(str, bytes),
    'encoding': EnsureEncoding(),
    'process_callback': EnsureNone() | EnsureCallable(),
    'kill_on_overflow': EnsureInstanceOf(bool),
}

# options that take their default from the implementation defaults
_option_defaults = {
    'max_buffer': 'gitexec.maxbuffer',
    'encoding': 'gitexec.encoding',
    'kill_on_overflow': 'gitexec.kill-on-overflow',
}


@dataclass(frozen=True)
class GitExecOptions:
    """Configuration of a single Git invocation

    Any option that is not given takes its value from the implementation
    defaults (see :func:`~gitexec_core.config.get_defaults`) at the time
    of construction. All values are validated on construction, a violation
    raises :class:`~gitexec_core.constraints.ConstraintError`.
    """

    env: Mapping[str, str] | None = None
    """Environment variables that override those of the current process"""
    max_buffer: int | type[UnsetValue] = UnsetValue
    """Maximum number of bytes captured per output stream"""
    exec_func: ExecFunc | None = None
    """Function to run Git with, instead of spawning a local process

    Requires ``LOCAL_GIT_DIRECTORY`` and ``GIT_EXEC_PATH`` to be set.
    """
    cancel: CancelSignal | None = None
    """Signal to abort a local process with"""
    stdin: str | bytes | None = None
    """Data to write to the standard input of the process"""
    encoding: str | type[UnsetValue] = UnsetValue
    """Encoding of output text, and of ``stdin`` if it is a ``str``"""
    process_callback: Callable[[Any], Any] | None = None
    """Called with the ``subprocess.Popen`` instance of a local process"""
    kill_on_overflow: bool | type[UnsetValue] = UnsetValue
    """Whether to terminate a local process whose output exceeds ``max_buffer``"""

    def __post_init__(self):
        defaults = get_defaults()
        for name, constraint in _option_constraints.items():
            value = getattr(self, name)
            if value is UnsetValue:
                value = defaults[_option_defaults[name]].value
            value = constraint(value)
            if name == 'env' and value is not None:
                value = MappingProxyType(value)
            # frozen dataclass
            object.__setattr__(self, name, value)
