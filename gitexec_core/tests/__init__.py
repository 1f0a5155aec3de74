__all__ = [
    'call_git_addcommit',
]

from .utils import (
    call_git_addcommit,
)
