# config.py
# Numerical defaults shared across the engine. Functions take these as
# keyword defaults, so a caller overrides them per call rather than here.

from __future__ import annotations

# Rounding
DEFAULT_ROUNDING_DIGITS = 2

# Currencies without minor units
ZERO_DIGIT_CURRENCIES = frozenset(
    {"BIF", "CLP", "DJF", "GNF", "ISK", "JPY", "KMF", "KRW", "PYG", "RWF",
     "TRL", "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}
)

# Discounting
DEFAULT_DAY_COUNT = "ACT/365"
DEFAULT_COMPOUNDING = "annual"

# Yield-to-maturity search
YTM_LOWER_BOUND = 0.0
YTM_UPPER_BOUND = 0.5
YTM_TOL = 1e-11
YTM_MAX_ITER = 100

# Default absolute tolerance for cash flow comparisons
CASH_FLOW_TOL = 1e-8
