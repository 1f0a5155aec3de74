"""Execution of Git commands

The main entry point is :func:`~gitexec_core.runners.execute`. It runs a
Git command, either as a local subprocess or via a caller-supplied
external-exec function (see :class:`GitExecOptions`), and returns an
:class:`ExecResult`. A failed command raises a :class:`GitError` whose
``kind`` identifies the failure (see :class:`GitErrorKind`), determined
from the exit code and stderr of the command by :func:`classify`.

In addition, a few convenience functions for common patterns of calling
Git are provided, as well as :func:`iter_git_subproc` for streaming
interaction with a Git process.

.. currentmodule:: gitexec_core.runners
.. autosummary::
   :toctree: generated

   execute
   call_git
   call_git_lines
   call_git_oneline
   call_git_success
   iter_git_subproc
   classify
   describe
   parse_error
   parse_bad_config_value
   ExecResult
   ExternalExecOptions
   GitExecOptions
   GitErrorKind
   ErrorRule
   GIT_ERROR_RULES
   GitError
   GitConfigurationError
   CommandCancelled
   CommandError
"""

__all__ = [
    'CommandCancelled',
    'CommandError',
    'ErrorRule',
    'ExecResult',
    'ExternalExecOptions',
    'GIT_ERROR_RULES',
    'GitConfigurationError',
    'GitError',
    'GitErrorKind',
    'GitExecOptions',
    'call_git',
    'call_git_lines',
    'call_git_oneline',
    'call_git_success',
    'classify',
    'describe',
    'execute',
    'iter_git_subproc',
    'parse_bad_config_value',
    'parse_error',
]


from datasalad.runners import CommandError

from .errors import (
    GIT_ERROR_RULES,
    CommandCancelled,
    ErrorRule,
    GitConfigurationError,
    GitError,
    GitErrorKind,
    classify,
    describe,
    parse_bad_config_value,
    parse_error,
)
from .git import (
    call_git,
    call_git_lines,
    call_git_oneline,
    call_git_success,
    execute,
    iter_git_subproc,
)
from .options import (
    ExecResult,
    ExternalExecOptions,
    GitExecOptions,
)
