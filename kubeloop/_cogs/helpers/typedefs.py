"""
Rudimentary type [re-]definitions for cross-versioned Python & mypy.

Some stdlib types are defined as generics in the type-sheds, while
the runtime does not support subscripting them (e.g. ``logging.LoggerAdapter``).
This module defines them once in a reusable way.
"""
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    LoggerAdapter = logging.LoggerAdapter[Any]
else:
    LoggerAdapter = logging.LoggerAdapter

# As publicly exposed: we only promise that it is based on one of the built-in loggable classes.
Logger = logging.Logger | LoggerAdapter
