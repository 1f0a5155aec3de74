"""Assorted common constants"""

__all__ = [
    'UnsetValue',
    'LOCAL_GIT_DIRECTORY_VAR',
    'GIT_EXEC_PATH_VAR',
    'DEFAULT_MAX_BUFFER',
    'DEFAULT_ENCODING',
    'GENERIC_FAILURE_EXIT_CODE',
    'GIT_NOT_FOUND_EXIT_CODE',
]

from datasalad.settings import UnsetValue

LOCAL_GIT_DIRECTORY_VAR = 'LOCAL_GIT_DIRECTORY'
"""Environment variable with the root directory of a Git installation

When set, the Git executable is taken from this installation rather than
looked up on ``PATH``. It is mandatory when an external-exec function is
used.
"""
GIT_EXEC_PATH_VAR = 'GIT_EXEC_PATH'
"""Environment variable with the directory of Git's helper programs"""

DEFAULT_MAX_BUFFER = 10 * 1024 * 1024
"""Default maximum number of bytes captured per output stream"""

DEFAULT_ENCODING = 'utf-8'
"""Default encoding of subprocess output and input text"""

GENERIC_FAILURE_EXIT_CODE = 1
"""Exit code assumed for an external-exec error that reports no code"""

GIT_NOT_FOUND_EXIT_CODE = 127
"""Exit code reported when no Git executable could be located

Matches the POSIX shell convention for "command not found".
"""
