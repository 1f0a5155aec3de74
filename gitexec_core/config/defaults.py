from __future__ import annotations

from datasalad.settings import (
    Defaults,
    Setting,
)

from gitexec_core.consts import (
    DEFAULT_ENCODING,
    DEFAULT_MAX_BUFFER,
)


class ImplementationDefaults(Defaults):
    """Source for registering implementation defaults of settings

    This is a in-memory only source. Values registered here are used
    whenever a per-call option is not given explicitly.
    """

    def __str__(self):
        return 'ImplementationDefaults'


__the_defaults: ImplementationDefaults | None = None


def get_defaults() -> ImplementationDefaults:
    """Return a process-unique ``ImplementationDefaults`` instance

    The instance is populated with the defaults of all execution settings
    on first access.
    """
    global __the_defaults  # noqa: PLW0603
    if __the_defaults is None:
        __the_defaults = ImplementationDefaults()
        register_defaults_gitexec(__the_defaults)
    return __the_defaults


def register_defaults_gitexec(defaults: ImplementationDefaults) -> None:
    for k, v in _gitexec.items():
        defaults[k] = v


def anything2bool(val):
    if val == '':
        return False
    if hasattr(val, 'lower'):
        val = val.lower()
    if val in {'off', 'no', 'false', '0'} or not bool(val):
        return False
    if (
        val in {'on', 'yes', 'true', True}
        or (hasattr(val, 'isdigit') and val.isdigit() and int(val))
        or isinstance(val, int)
        and val
    ):
        return True
    msg = f'Cannot interpret {val!r} as a boolean'
    raise ValueError(msg)


_gitexec = {
    'gitexec.maxbuffer': Setting(DEFAULT_MAX_BUFFER, coercer=int),
    'gitexec.encoding': Setting(DEFAULT_ENCODING),
    'gitexec.kill-on-overflow': Setting(True, coercer=anything2bool),
}
