"""Callshift package root."""

from callshift.exceptions import CallshiftError, ConfigError, ImportConflict, NeverThrown
from callshift.invariants import never

__all__ = [
    "__version__",
    "CallshiftError",
    "ConfigError",
    "ImportConflict",
    "NeverThrown",
    "never",
]

__version__ = "0.1.0"
