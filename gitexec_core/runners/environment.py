"""Resolution of the Git executable and the environment to run it in"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from gitexec_core.runners.options import GitExecOptions

from gitexec_core.constraints import (
    ConstraintError,
    EnsureMappingHasKeys,
)
from gitexec_core.consts import (
    GIT_EXEC_PATH_VAR,
    GIT_NOT_FOUND_EXIT_CODE,
    LOCAL_GIT_DIRECTORY_VAR,
)
from gitexec_core.runners.errors import (
    GitConfigurationError,
    GitError,
    GitErrorKind,
)
from gitexec_core.runners.options import ExecResult

lgr = logging.getLogger('gitexec.runners')

_ensure_external_exec_env = EnsureMappingHasKeys(
    (LOCAL_GIT_DIRECTORY_VAR, GIT_EXEC_PATH_VAR),
)


@dataclass(frozen=True)
class ResolvedEnvironment:
    executable: str
    """Path of the Git executable to run"""
    env: Mapping[str, str]
    """Complete environment of the Git process"""


def git_binary_path(root: str | Path) -> Path:
    """Path of the Git executable within an installation ``root``"""
    if sys.platform == 'win32':
        return Path(root, 'cmd', 'git.exe')
    return Path(root, 'bin', 'git')


def git_exec_path(root: str | Path) -> Path:
    """Path of the helper program directory within an installation ``root``"""
    if sys.platform == 'win32':
        return Path(root, 'mingw64', 'libexec', 'git-core')
    return Path(root, 'libexec', 'git-core')


def resolve_environment(options: GitExecOptions) -> ResolvedEnvironment:
    """Determine the Git executable and the environment for an invocation

    The environment is that of the current process, updated with
    ``options.env``.

    With an external-exec function in ``options``, ``LOCAL_GIT_DIRECTORY``
    and ``GIT_EXEC_PATH`` must both be set in that environment, otherwise
    :class:`GitConfigurationError` is raised. The executable is then
    located in ``LOCAL_GIT_DIRECTORY``, but not checked for existence
    (it may only exist where the function runs Git).

    Without such a function, a set ``LOCAL_GIT_DIRECTORY`` also determines
    the executable, and the environment is completed for running Git from
    that installation. Otherwise the executable is looked up via ``PATH``.
    A :class:`GitError` of kind ``git_not_found`` is raised, if no
    executable can be found.
    """
    env = dict(os.environ)
    if options.env:
        env.update(options.env)

    if options.exec_func is not None:
        try:
            _ensure_external_exec_env(env)
        except ConstraintError as e:
            msg = (
                f'{LOCAL_GIT_DIRECTORY_VAR} and {GIT_EXEC_PATH_VAR} must be '
                'specified when using an exec function.'
            )
            raise GitConfigurationError(msg) from e
        return ResolvedEnvironment(
            executable=str(git_binary_path(env[LOCAL_GIT_DIRECTORY_VAR])),
            env=MappingProxyType(env),
        )

    root = env.get(LOCAL_GIT_DIRECTORY_VAR)
    if root:
        executable = git_binary_path(root)
        if not executable.is_file():
            _raise_git_not_found(
                f'{LOCAL_GIT_DIRECTORY_VAR}={root} does not contain {executable}'
            )
        _setup_installation_env(env, Path(root))
        resolved = str(executable)
    else:
        resolved = shutil.which('git', path=env.get('PATH'))
        if resolved is None:
            _raise_git_not_found('no git executable on PATH')
    lgr.debug('Resolved Git executable %s', resolved)
    return ResolvedEnvironment(executable=resolved, env=MappingProxyType(env))


def _setup_installation_env(env: dict[str, str], root: Path) -> None:
    # values already in the environment are kept
    env.setdefault(GIT_EXEC_PATH_VAR, str(git_exec_path(root)))
    if sys.platform == 'win32':
        env['PATH'] = os.pathsep.join(
            p for p in (str(root / 'mingw64' / 'bin'), env.get('PATH')) if p
        )
        return
    templates = root / 'share' / 'git-core' / 'templates'
    if templates.is_dir():
        env.setdefault('GIT_TEMPLATE_DIR', str(templates))
    if sys.platform == 'linux':
        # lets a relocated Git resolve its runtime prefix
        env.setdefault('PREFIX', str(root))


def _raise_git_not_found(reason: str):
    result = ExecResult(
        exit_code=GIT_NOT_FOUND_EXIT_CODE,
        stdout='',
        stderr=reason,
    )
    raise GitError(GitErrorKind.git_not_found, result, cmd=['git'])
