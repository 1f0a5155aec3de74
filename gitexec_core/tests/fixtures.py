"""Collection of fixtures for facilitation test implementations"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import (
    TYPE_CHECKING,
)

if TYPE_CHECKING:
    from collections.abc import Generator

import pytest

from gitexec_core.consts import (
    GIT_EXEC_PATH_VAR,
    LOCAL_GIT_DIRECTORY_VAR,
)
from gitexec_core.runners import (
    call_git,
    call_git_oneline,
)


@pytest.fixture(autouse=False, scope='session')
def system_git() -> Path:
    """Path of the Git executable on ``PATH``, skips the test if there is none"""
    git = shutil.which('git')
    if git is None:  # pragma: no cover
        pytest.skip('Git was not found on the host system')
    return Path(git)


@pytest.fixture(autouse=False, scope='function')  # noqa: PT003
def no_external_git_env(monkeypatch):
    """Remove any ``LOCAL_GIT_DIRECTORY`` and ``GIT_EXEC_PATH`` setting

    Git is then taken from ``PATH``.
    """
    monkeypatch.delenv(LOCAL_GIT_DIRECTORY_VAR, raising=False)
    monkeypatch.delenv(GIT_EXEC_PATH_VAR, raising=False)


@pytest.fixture(autouse=False, scope='function')  # noqa: PT003
def external_git_env(
    monkeypatch,
    no_external_git_env,  # noqa: ARG001
    system_git,
) -> Generator[dict[str, str]]:
    """Point ``LOCAL_GIT_DIRECTORY`` and ``GIT_EXEC_PATH`` to the system Git

    Yields a mapping with the two variables and their values.
    """
    exec_path = call_git_oneline(['--exec-path'])
    # resolve symlinks, such that <root>/bin/git exists
    root = system_git.resolve().parent.parent
    if not (root / 'bin' / 'git').is_file():  # pragma: no cover
        pytest.skip(f'Git installation at {root} has a non-standard layout')
    env = {
        LOCAL_GIT_DIRECTORY_VAR: str(root),
        GIT_EXEC_PATH_VAR: exec_path,
    }
    for k, v in env.items():
        monkeypatch.setenv(k, v)
    yield env


@pytest.fixture(autouse=False, scope='function')  # noqa: PT003
def gitrepo(tmp_path_factory) -> Path:
    """Yield the path to an initialized Git repository"""
    # must use the factory to get a unique path even when a concrete
    # test also uses `tmp_path`
    path = tmp_path_factory.mktemp('gitrepo')
    call_git(
        ['init'],
        cwd=path,
    )
    return path


@pytest.fixture(autouse=False, scope='function')  # noqa: PT003
def baregitrepo(tmp_path_factory) -> Path:
    """Yield the path to an initialized, bare Git repository"""
    path = tmp_path_factory.mktemp('gitrepo')
    call_git(
        ['init', '--bare'],
        cwd=path,
    )
    return path
