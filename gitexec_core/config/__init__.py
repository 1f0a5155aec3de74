"""Implementation defaults of execution settings

Built on `datasalad.settings
<https://datasalad.readthedocs.io/latest/generated/datasalad.settings.html>`__.
A common :class:`ImplementationDefaults` instance is obtained via
:func:`get_defaults`. Any per-call option of
:class:`~gitexec_core.runners.GitExecOptions` that is not given explicitly
takes its value from this instance:

- ``gitexec.maxbuffer``: maximum number of captured bytes per output stream
- ``gitexec.encoding``: encoding of output and input text
- ``gitexec.kill-on-overflow``: whether to terminate a process whose output
  exceeds the buffer limit

Defaults can be changed process-wide by assigning a new
:class:`~datasalad.settings.Setting` to a key.

.. currentmodule:: gitexec_core.config
.. autosummary::
   :toctree: generated

   ImplementationDefaults
   UnsetValue
   anything2bool
   get_defaults
"""

__all__ = [
    'ImplementationDefaults',
    'UnsetValue',
    'anything2bool',
    'get_defaults',
]

from datasalad.settings import UnsetValue

from .defaults import (
    ImplementationDefaults,
    anything2bool,
    get_defaults,
)
