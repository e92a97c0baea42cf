"""Type aliases shared between modules."""

from __future__ import annotations

from typing import Callable

import numpy as np

# ``window(n)`` returns *n* weighting coefficients, e.g. ``np.hanning``.
WindowFunction = Callable[[int], np.ndarray]
