from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import (
        Path,
        PurePath,
    )

from gitexec_core.runners import call_git

_identity = {
    'GIT_AUTHOR_NAME': 'Git Tester',
    'GIT_AUTHOR_EMAIL': 'test@example.com',
    'GIT_COMMITTER_NAME': 'Git Tester',
    'GIT_COMMITTER_EMAIL': 'test@example.com',
}


def call_git_addcommit(
    cwd: Path,
    paths: list[str | PurePath] | None = None,
    *,
    msg: str | None = None,
):
    if paths is None:
        paths = ['.']

    if msg is None:
        msg = 'done by call_git_addcommit()'

    call_git(['add'] + [str(p) for p in paths], cwd=cwd)
    call_git(
        [
            'commit',
            '--no-gpg-sign',
            '--allow-empty',
            '-m',
            msg,
        ],
        cwd=cwd,
        env=_identity,
    )
