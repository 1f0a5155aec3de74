"""Execution backends

An :class:`ExecBackend` runs a resolved Git executable and reports an
:class:`~gitexec_core.runners.ExecResult`. :func:`select_backend` picks
the implementation for a particular invocation:

- :class:`LocalSpawnBackend` runs Git as a child process of this process
- :class:`ExternalExecBackend` delegates to a caller-supplied function,
  e.g. one that runs Git on a remote host
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import threading
from abc import (
    ABC,
    abstractmethod,
)
from types import MappingProxyType
from typing import (
    IO,
    TYPE_CHECKING,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from gitexec_core.runners.options import (
        CancelSignal,
        ExecFunc,
        GitExecOptions,
    )

from gitexec_core.consts import GENERIC_FAILURE_EXIT_CODE
from gitexec_core.runners.collector import (
    OutputCollector,
    OutputStream,
)
from gitexec_core.runners.errors import CommandCancelled
from gitexec_core.runners.options import (
    ExecResult,
    ExternalExecOptions,
)

lgr = logging.getLogger('gitexec.runners')

# seconds between checks of the cancellation signal
POLL_INTERVAL = 0.05
# seconds a process gets to exit after SIGTERM, before it is killed
TERMINATE_GRACE = 2.0
# bytes per read from an output pipe
READ_CHUNK_SIZE = 65536


class ExecBackend(ABC):
    """Base class for running a Git executable"""

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}()'

    @abstractmethod
    def run(
        self,
        executable: str,
        args: list[str],
        *,
        cwd: Path,
        env: Mapping[str, str],
        options: GitExecOptions,
    ) -> ExecResult:
        """Run ``executable`` with ``args`` and report the outcome

        No classification of the outcome is performed. Raises
        :class:`~gitexec_core.runners.CommandCancelled` if the backend
        honors a cancellation signal and it fired.
        """


def select_backend(options: GitExecOptions) -> ExecBackend:
    """Return the backend matching the given options"""
    if options.exec_func is not None:
        return ExternalExecBackend(options.exec_func)
    return LocalSpawnBackend()


class LocalSpawnBackend(ExecBackend):
    """Run Git as a local child process

    Both output streams are read concurrently and captured with an
    :class:`~gitexec_core.runners.collector.OutputCollector`. If
    ``options.kill_on_overflow`` is set, a process is terminated as soon
    as any of its output exceeds ``options.max_buffer``. A process is also
    terminated when ``options.cancel`` fires.
    """

    def run(
        self,
        executable: str,
        args: list[str],
        *,
        cwd: Path,
        env: Mapping[str, str],
        options: GitExecOptions,
    ) -> ExecResult:
        cmd = [executable, *args]
        if _is_cancelled(options.cancel):
            lgr.debug('Not starting %r, cancelled', cmd)
            raise CommandCancelled(cmd, cwd=cwd)

        collector = OutputCollector(options.max_buffer)
        overflow = threading.Event()
        stdin = options.stdin
        if isinstance(stdin, str):
            stdin = stdin.encode(options.encoding)

        threads: list[threading.Thread] = []
        with subprocess.Popen(
            cmd,
            cwd=cwd,
            env=dict(env),
            stdin=subprocess.DEVNULL if stdin is None else subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            # own process group, to be able to terminate the helper
            # processes Git starts along with Git itself
            start_new_session=sys.platform != 'win32',
        ) as proc:
            try:
                if options.process_callback is not None:
                    options.process_callback(proc)
                workers = [
                    (_pump, (proc.stdout, OutputStream.stdout, collector, overflow)),
                    (_pump, (proc.stderr, OutputStream.stderr, collector, overflow)),
                ]
                if stdin is not None:
                    workers.append((_feed, (proc.stdin, stdin)))
                for target, target_args in workers:
                    t = threading.Thread(target=target, args=target_args, daemon=True)
                    t.start()
                    threads.append(t)
                reason = _wait(
                    proc,
                    options.cancel,
                    overflow if options.kill_on_overflow else None,
                )
                _join(threads, None if reason is None else TERMINATE_GRACE)
            except BaseException:
                _terminate(proc)
                _join(threads, TERMINATE_GRACE)
                raise

        if reason == 'cancel':
            raise CommandCancelled(cmd, cwd=cwd)
        out = collector.finalize(options.encoding)
        return ExecResult(
            exit_code=proc.returncode,
            stdout=out.stdout,
            stderr=out.stderr,
            stdout_overflow=out.stdout_overflow,
            stderr_overflow=out.stderr_overflow,
            overflow_terminated=reason == 'overflow',
        )


def _is_cancelled(cancel: CancelSignal | None) -> bool:
    return cancel is not None and cancel.is_set()


def _pump(
    fh: IO[bytes],
    stream: OutputStream,
    collector: OutputCollector,
    overflow: threading.Event,
) -> None:
    # keep reading after an overflow, a full pipe would block the process
    for chunk in iter(lambda: fh.read1(READ_CHUNK_SIZE), b''):
        if not collector.append(stream, chunk):
            overflow.set()


def _feed(fh: IO[bytes], data: bytes) -> None:
    # a process may exit without consuming all input. that is its
    # business, its exit code tells
    try:
        fh.write(data)
    except BrokenPipeError:
        lgr.debug('Process did not read all of its input')
    try:
        fh.close()
    except BrokenPipeError:
        lgr.debug('Process closed its input before the last flush')


def _wait(
    proc: subprocess.Popen,
    cancel: CancelSignal | None,
    overflow: threading.Event | None,
) -> str | None:
    """Wait for a process to exit

    Returns the reason why the process was terminated (``'cancel'`` or
    ``'overflow'``), or ``None`` if it exited on its own.
    """
    if cancel is None and overflow is None:
        proc.wait()
        return None
    while True:
        try:
            proc.wait(timeout=POLL_INTERVAL)
        except subprocess.TimeoutExpired:
            pass
        else:
            return None
        if _is_cancelled(cancel):
            lgr.debug('Terminating %r, cancelled', proc.args)
            _terminate(proc)
            return 'cancel'
        if overflow is not None and overflow.is_set():
            lgr.debug('Terminating %r, output exceeded buffer limit', proc.args)
            _terminate(proc)
            return 'overflow'


def _terminate(proc: subprocess.Popen) -> None:
    """Terminate a process and all other processes of its group

    Other group members are typically Git helpers (e.g.
    ``git-remote-https``) that hold the output pipes open. They are killed
    even when the process itself has already exited.
    """
    if proc.poll() is None:
        _signal_group(proc, kill=False)
        try:
            proc.wait(timeout=TERMINATE_GRACE)
        except subprocess.TimeoutExpired:
            pass
    _signal_group(proc, kill=True)
    proc.wait()


def _signal_group(proc: subprocess.Popen, *, kill: bool) -> None:
    if sys.platform == 'win32':
        if proc.poll() is None:
            if kill:
                proc.kill()
            else:
                proc.terminate()
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL if kill else signal.SIGTERM)
    except (ProcessLookupError, PermissionError):
        # the group is gone already
        pass


def _join(threads: list[threading.Thread], timeout: float | None) -> None:
    for t in threads:
        t.join(timeout)
        if t.is_alive():
            lgr.debug('Stop waiting for %s, process output is still open', t.name)


class ExternalExecBackend(ExecBackend):
    """Run Git via a caller-supplied function

    The function is called with the executable path, the arguments, an
    :class:`~gitexec_core.runners.ExternalExecOptions` instance and a
    completion callback. It must call the completion callback exactly once
    with ``(error, stdout, stderr)``, possibly from another thread. This
    backend blocks until that happens.

    The reported output is taken as-is. Neither buffer limits nor
    cancellation are enforced by this backend, these are the responsibility
    of the function.
    """

    def __init__(self, exec_func: ExecFunc):
        self.exec_func = exec_func

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.exec_func!r})'

    def run(
        self,
        executable: str,
        args: list[str],
        *,
        cwd: Path,
        env: Mapping[str, str],
        options: GitExecOptions,
    ) -> ExecResult:
        completion = _Completion()
        self.exec_func(
            executable,
            list(args),
            ExternalExecOptions(cwd=str(cwd), env=MappingProxyType(dict(env))),
            completion,
        )
        completion.wait()
        error = completion.error
        exit_code = 0 if error is None else exit_code_from_error(error)
        return ExecResult(
            exit_code=exit_code,
            stdout=_as_text(completion.stdout, options.encoding),
            stderr=_as_text(completion.stderr, options.encoding),
        )


class _Completion:
    """Completion callback that accepts exactly one call"""

    def __init__(self):
        self._lock = threading.Lock()
        self._done = threading.Event()
        self.error: BaseException | None = None
        self.stdout: str | bytes = ''
        self.stderr: str | bytes = ''

    def __call__(
        self,
        error: BaseException | None,
        stdout: str | bytes,
        stderr: str | bytes,
    ) -> None:
        with self._lock:
            if self._done.is_set():
                msg = 'exec function reported completion more than once'
                raise RuntimeError(msg)
            self.error = error
            self.stdout = stdout or ''
            self.stderr = stderr or ''
            self._done.set()

    def wait(self) -> None:
        self._done.wait()


def exit_code_from_error(error: BaseException) -> int:
    """Determine the exit code reported by an external-exec error

    The ``code`` attribute is used, or ``returncode`` in its absence, if it
    is a non-zero integer (or a string of digits). Otherwise the generic
    failure code 1 is reported.
    """
    for attr in ('code', 'returncode'):
        code = getattr(error, attr, None)
        if isinstance(code, str) and code.isdigit():
            code = int(code)
        if isinstance(code, int) and not isinstance(code, bool) and code:
            return code
    return GENERIC_FAILURE_EXIT_CODE


def _as_text(output: str | bytes, encoding: str) -> str:
    if isinstance(output, bytes):
        return output.decode(encoding, errors='replace')
    return output
