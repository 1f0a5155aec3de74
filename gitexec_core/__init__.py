"""Run Git as a subprocess and report failures as typed errors

.. currentmodule:: gitexec_core
.. autosummary::
   :toctree: generated

   config
   constraints
   consts
   runners
"""

__version__ = '0.1.0'
