"""Fixture setup"""

__all__ = [
    'baregitrepo',
    'external_git_env',
    'gitrepo',
    'no_external_git_env',
    'system_git',
]


from gitexec_core.tests.fixtures import (
    # function-scope temporary, bare Git repo
    baregitrepo,
    # function-scope LOCAL_GIT_DIRECTORY/GIT_EXEC_PATH pointing to system Git
    external_git_env,
    # function-scope temporary Git repo
    gitrepo,
    # function-scope removal of LOCAL_GIT_DIRECTORY/GIT_EXEC_PATH
    no_external_git_env,
    # session-scope path of the Git executable on PATH
    system_git,
)
