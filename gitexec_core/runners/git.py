from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import (
        Mapping,
        Sequence,
    )

from datasalad.runners import iter_subproc

from gitexec_core.runners.backends import select_backend
from gitexec_core.runners.environment import resolve_environment
from gitexec_core.runners.errors import (
    GitError,
    GitErrorKind,
    raise_for_result,
)
from gitexec_core.runners.options import (
    ExecResult,
    GitExecOptions,
)

lgr = logging.getLogger('gitexec.runners')


def execute(
    args: Sequence[str],
    cwd: Path | str,
    options: GitExecOptions | None = None,
) -> ExecResult:
    """Run a Git command and return its result, or raise a ``GitError``

    ``args`` is a list of arguments for the Git command. This list must not
    contain the Git executable itself, it is determined from the
    environment (see :func:`~gitexec_core.runners.environment.resolve_environment`).
    The command runs in the working directory ``cwd``.

    All configuration errors are raised before a process is started (or an
    external-exec function is called).

    An :class:`~gitexec_core.runners.ExecResult` is returned when the
    command exits with zero, or when a local process was terminated,
    because its output exceeded ``options.max_buffer``. Any other non-zero
    exit raises :class:`~gitexec_core.runners.GitError` with the matching
    :class:`~gitexec_core.runners.GitErrorKind`.

    Raises
    ------
    GitConfigurationError
      if an external-exec function is given, but ``LOCAL_GIT_DIRECTORY``
      or ``GIT_EXEC_PATH`` is not set.
    GitError
      for a failed command, or when Git or the working directory cannot
      be found.
    CommandCancelled
      if ``options.cancel`` fired before the process exited.
    """
    if options is None:
        options = GitExecOptions()
    args = [str(a) for a in args]
    cwd = Path(cwd)
    resolved = resolve_environment(options)
    cmd = [resolved.executable, *args]
    if options.exec_func is None and not cwd.is_dir():
        # same exit code as `git -C <nonexisting-dir>`
        result = ExecResult(
            exit_code=128,
            stdout='',
            stderr=f"fatal: cannot change to '{cwd}': No such file or directory",
        )
        raise GitError(GitErrorKind.repository_does_not_exist, result, cmd=cmd, cwd=cwd)

    backend = select_backend(options)
    lgr.debug('Run %r in %s with %r', cmd, cwd, backend)
    result = backend.run(
        resolved.executable,
        args,
        cwd=cwd,
        env=resolved.env,
        options=options,
    )
    if result.overflow_terminated:
        lgr.debug('Not classifying %r, terminated on output overflow', cmd)
        return result
    raise_for_result(result, cmd=cmd, cwd=cwd)
    return result


def _get_options(
    *,
    inputs: str | None = None,
    force_c_locale: bool = False,
    env: Mapping[str, str] | None = None,
) -> GitExecOptions:
    # force_c_locale has precedence over any given locale setting
    env = dict(env or {})
    if force_c_locale:
        env['LC_ALL'] = 'C'
    return GitExecOptions(env=env or None, stdin=inputs)


def call_git(
    args: list[str],
    *,
    cwd: Path | None = None,
    force_c_locale: bool = False,
    env: Mapping[str, str] | None = None,
) -> None:
    """Call Git, raises on non-zero exit.

    ``args`` is a list of arguments for the Git command. This list must not
    contain the Git executable itself.

    If ``cwd`` is not None, the command runs in ``cwd``, otherwise in the
    current working directory.

    If ``force_c_locale`` is ``True`` the environment of the Git process
    is altered to ensure output according to the C locale. This is useful
    when output has to be processed in a locale invariant fashion.

    Raises
    ------
    GitError if the call exits with a non-zero status.
    """
    execute(
        args,
        cwd or Path.cwd(),
        _get_options(force_c_locale=force_c_locale, env=env),
    )


def call_git_success(
    args: list[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> bool:
    """Call Git and report success or failure of the command

    Any :class:`GitError` is logged at debug level, and reported as
    ``False``. Configuration errors are not caught.
    """
    try:
        execute(args, cwd or Path.cwd(), _get_options(env=env))
    except GitError:
        lgr.debug('call_git_success() failed with exception', exc_info=True)
        return False
    return True


def call_git_lines(
    args: list[str],
    *,
    cwd: Path | None = None,
    inputs: str | None = None,
    force_c_locale: bool = False,
    env: Mapping[str, str] | None = None,
) -> list[str]:
    """Call Git for any (small) number of lines of output

    If ``inputs`` is not None, the argument becomes the subprocess's stdin.
    This is intended for small-scale inputs. For call that require processing
    large inputs, ``iter_git_subproc()`` is to be preferred.

    Raises
    ------
    GitError if the call exits with a non-zero status.
    """
    res = execute(
        args,
        cwd or Path.cwd(),
        _get_options(inputs=inputs, force_c_locale=force_c_locale, env=env),
    )
    return res.stdout.splitlines()


def call_git_oneline(
    args: list[str],
    *,
    cwd: Path | None = None,
    inputs: str | None = None,
    force_c_locale: bool = False,
) -> str:
    """Call Git for a single line of output

    Raises
    ------
    GitError if the call exits with a non-zero status.
    AssertionError if there is more than one line of output.
    """
    lines = call_git_lines(args, cwd=cwd, inputs=inputs, force_c_locale=force_c_locale)
    if len(lines) > 1:
        msg = f'Expected Git {args} to return a single line, but got {lines}'
        raise AssertionError(msg)
    return lines[0]


def iter_git_subproc(args: list[str], **kwargs):
    """``iter_subproc()`` wrapper for calling Git commands

    All argument semantics are identical to those of
    ``datasalad.runners.iter_subproc()``, except that ``args`` must not
    contain the Git binary, but need to be exclusively arguments to it.
    The Git executable is resolved like for :func:`execute`, but the
    output is not buffered and not classified. A failure is reported as a
    ``CommandError``.
    """
    resolved = resolve_environment(GitExecOptions())
    cmd = [resolved.executable]
    cmd.extend(args)

    return iter_subproc(cmd, **kwargs)
