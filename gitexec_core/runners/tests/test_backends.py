import os
import sys
import threading
import time

import pytest

from .. import (
    CommandCancelled,
    ExternalExecOptions,
    GitExecOptions,
)
from ..backends import (
    ExternalExecBackend,
    LocalSpawnBackend,
    exit_code_from_error,
    select_backend,
)

# a Python process is a well-controlled stand-in for a Git process
python = sys.executable


def run_python(code, tmp_path, **kwargs):
    return LocalSpawnBackend().run(
        python,
        ['-c', code],
        cwd=tmp_path,
        env=os.environ,
        options=GitExecOptions(**kwargs),
    )


def test_select_backend():
    assert isinstance(select_backend(GitExecOptions()), LocalSpawnBackend)
    backend = select_backend(GitExecOptions(exec_func=print))
    assert isinstance(backend, ExternalExecBackend)
    assert backend.exec_func is print
    assert repr(LocalSpawnBackend()) == 'LocalSpawnBackend()'


def test_local_spawn(tmp_path):
    res = run_python(
        'import sys, os; print(os.getcwd()); '
        "sys.stderr.write('oops'); sys.exit(3)",
        tmp_path,
    )
    assert res.exit_code == 3  # noqa: PLR2004
    assert res.stdout.strip() == str(tmp_path.resolve())
    assert res.stderr == 'oops'
    assert not res.overflow
    assert not res.overflow_terminated


def test_local_spawn_stdin(tmp_path):
    code = 'import sys; sys.stdout.write(sys.stdin.read().upper())'
    assert run_python(code, tmp_path, stdin='hello').stdout == 'HELLO'
    assert run_python(code, tmp_path, stdin=b'bytes').stdout == 'BYTES'
    # no input means immediate EOF
    assert run_python(code, tmp_path).stdout == ''


def test_local_spawn_process_callback(tmp_path):
    procs = []
    res = run_python('pass', tmp_path, process_callback=procs.append)
    assert res.exit_code == 0
    assert len(procs) == 1
    assert procs[0].returncode == 0


def test_local_spawn_overflow_terminates(tmp_path):
    procs = []
    res = run_python(
        "import sys, time; sys.stdout.write('x' * 100000); sys.stdout.flush(); "
        'time.sleep(60)',
        tmp_path,
        max_buffer=1000,
        process_callback=procs.append,
    )
    assert res.stdout == 'x' * 1000
    assert res.stdout_overflow
    assert not res.stderr_overflow
    assert res.overflow_terminated
    assert procs[0].poll() is not None


def test_local_spawn_overflow_no_kill(tmp_path):
    res = run_python(
        "import sys; sys.stdout.write('x' * 100000); sys.stderr.write('done')",
        tmp_path,
        max_buffer=10,
        kill_on_overflow=False,
    )
    # the process ran to completion
    assert res.exit_code == 0
    assert res.stderr == 'done'
    assert res.stdout == 'x' * 10
    assert res.overflow
    assert not res.overflow_terminated


def test_local_spawn_cancel_before_start(tmp_path):
    cancel = threading.Event()
    cancel.set()
    procs = []
    with pytest.raises(CommandCancelled):
        run_python('pass', tmp_path, cancel=cancel, process_callback=procs.append)
    # nothing was started
    assert not procs


def test_local_spawn_cancel_while_running(tmp_path):
    cancel = threading.Event()
    procs = []
    timer = threading.Timer(0.3, cancel.set)
    timer.start()
    try:
        with pytest.raises(CommandCancelled) as e:
            run_python(
                'import time; time.sleep(60)',
                tmp_path,
                cancel=cancel,
                process_callback=procs.append,
            )
    finally:
        timer.cancel()
    assert e.value.cmd[0] == python
    # the process is gone
    assert procs[0].poll() is not None


# starts a helper that inherits the output pipes and outlives its parent
# unless terminated with it
SPAWN_HELPER = (
    'import subprocess, sys, time; '
    "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(30)']); "
)


@pytest.mark.skipif(sys.platform == 'win32', reason='POSIX process groups')
def test_local_spawn_cancel_terminates_helpers(tmp_path):
    cancel = threading.Event()
    timer = threading.Timer(0.3, cancel.set)
    timer.start()
    start = time.monotonic()
    try:
        with pytest.raises(CommandCancelled):
            run_python(SPAWN_HELPER + 'time.sleep(60)', tmp_path, cancel=cancel)
    finally:
        timer.cancel()
    assert time.monotonic() - start < 5  # noqa: PLR2004


@pytest.mark.skipif(sys.platform == 'win32', reason='POSIX process groups')
def test_local_spawn_overflow_terminates_helpers(tmp_path):
    start = time.monotonic()
    res = run_python(
        SPAWN_HELPER + "sys.stdout.write('x' * 1000); sys.stdout.flush(); "
        'time.sleep(60)',
        tmp_path,
        max_buffer=10,
    )
    assert time.monotonic() - start < 5  # noqa: PLR2004
    assert res.overflow_terminated
    assert res.stdout == 'x' * 10


class FailingSignal:
    """Cancellation signal that breaks once a process is running"""

    def __init__(self):
        self.checks = 0

    def is_set(self):
        self.checks += 1
        if self.checks > 1:
            msg = 'signal source went away'
            raise RuntimeError(msg)
        return False


def test_local_spawn_error_while_running(tmp_path):
    procs = []
    with pytest.raises(RuntimeError, match='went away'):
        run_python(
            'import sys, time; sys.stdout.write("x"); time.sleep(60)',
            tmp_path,
            cancel=FailingSignal(),
            process_callback=procs.append,
            stdin='ignored',
        )
    assert procs[0].poll() is not None
    # output readers and input writer have finished before the pipes closed
    assert not [
        t
        for t in threading.enumerate()
        if t.is_alive() and t.name.endswith(('(_pump)', '(_feed)'))
    ]


def test_external_exec(tmp_path):
    calls = []

    def exec_func(path, args, options, done):
        calls.append((path, args, options))
        done(None, 'out', b'err')

    res = ExternalExecBackend(exec_func).run(
        '/remote/bin/git',
        ['status'],
        cwd=tmp_path,
        env={'SOME': 'thing'},
        options=GitExecOptions(),
    )
    assert res.exit_code == 0
    assert res.stdout == 'out'
    assert res.stderr == 'err'
    path, args, options = calls[0]
    assert path == '/remote/bin/git'
    assert args == ['status']
    assert isinstance(options, ExternalExecOptions)
    assert options.cwd == str(tmp_path)
    assert options.env['SOME'] == 'thing'


def test_external_exec_no_truncation(tmp_path):
    def exec_func(path, args, options, done):  # noqa: ARG001
        done(None, 'x' * 100, '')

    res = ExternalExecBackend(exec_func).run(
        'git', [], cwd=tmp_path, env={}, options=GitExecOptions(max_buffer=10)
    )
    assert res.stdout == 'x' * 100
    assert not res.overflow


def test_external_exec_done_from_thread(tmp_path):
    def exec_func(path, args, options, done):  # noqa: ARG001
        threading.Timer(0.1, done, args=(None, 'late', '')).start()

    res = ExternalExecBackend(exec_func).run(
        'git', [], cwd=tmp_path, env={}, options=GitExecOptions()
    )
    assert res.stdout == 'late'


def test_external_exec_done_twice(tmp_path):
    def exec_func(path, args, options, done):  # noqa: ARG001
        done(None, '', '')
        done(None, '', '')

    with pytest.raises(RuntimeError, match='more than once'):
        ExternalExecBackend(exec_func).run(
            'git', [], cwd=tmp_path, env={}, options=GitExecOptions()
        )


class CodedError(Exception):
    def __init__(self, msg, code):
        super().__init__(msg)
        self.code = code


def test_exit_code_from_error():
    assert exit_code_from_error(CodedError('x', 128)) == 128  # noqa: PLR2004
    assert exit_code_from_error(CodedError('x', '2')) == 2  # noqa: PLR2004
    # non-numeric or absent codes give a generic failure
    assert exit_code_from_error(CodedError('x', 'ENOENT')) == 1
    assert exit_code_from_error(CodedError('x', 0)) == 1
    assert exit_code_from_error(RuntimeError('x')) == 1
    err = RuntimeError('x')
    err.returncode = 7
    assert exit_code_from_error(err) == 7  # noqa: PLR2004
