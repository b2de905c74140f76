# File: utils/__init__.py
"""Pure Python utilities for Family Economy.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - currency_utils: Integer-cents arithmetic, parsing and formatting
    - dt_utils: Period bounds, reset detection and clock helpers

Usage:
    from . import dt_utils
    from .currency_utils import format_cents
"""

from . import currency_utils, dt_utils

__all__ = ["currency_utils", "dt_utils"]
