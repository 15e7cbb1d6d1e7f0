"""Pure Python utilities for habitflow.

Submodules:
    - dt_utils: Date/time parsing, day keys, local day boundaries, formatting
    - math_utils: Minute rounding and progress percentages

Usage:
    from . import dt_utils
    from .math_utils import round_half_up
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
