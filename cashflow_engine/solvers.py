from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

from scipy.optimize import bisect, brentq

from .exceptions import CashflowEngineError, NotConverged

logger = logging.getLogger(__name__)


class RootFinder(ABC):
    """
    Bracketed 1-D root finder.

    ``solve`` returns x in [lower, upper] with f(x) ~ 0, or raises NotConverged
    when f has no sign change on the bracket or the iteration budget runs out.
    """

    def solve(
        self,
        f: Callable[[float], float],
        lower: float,
        upper: float,
        tol: float,
        max_iter: int,
    ) -> float:
        if not lower < upper:
            raise NotConverged(f"Invalid bracket [{lower}, {upper}]")

        fa, fb = f(lower), f(upper)
        logger.debug("bracket f(%s)=%s f(%s)=%s", lower, fa, upper, fb)

        if fa == 0.0 and fb == 0.0:
            raise NotConverged("Objective vanishes on the whole bracket; root is not unique.")
        if fa == 0.0:
            return float(lower)
        if fb == 0.0:
            return float(upper)
        if fa * fb > 0:
            raise NotConverged(f"Root not bracketed in [{lower}, {upper}].")

        return self._solve_bracketed(f, lower, upper, tol, max_iter)

    @abstractmethod
    def _solve_bracketed(self, f, lower: float, upper: float, tol: float, max_iter: int) -> float:
        ...


class _ScipyBracketSolver(RootFinder):
    method = None

    def _solve_bracketed(self, f, lower, upper, tol, max_iter):
        try:
            root, info = self.method(
                f, lower, upper, xtol=tol, maxiter=max_iter, full_output=True, disp=False
            )
        except CashflowEngineError:
            raise
        except (RuntimeError, ValueError) as e:
            raise NotConverged(str(e)) from e

        if not info.converged:
            raise NotConverged(f"{info.flag} after {info.iterations} iterations")
        return float(root)


class BrentSolver(_ScipyBracketSolver):
    method = staticmethod(brentq)


class BisectionSolver(_ScipyBracketSolver):
    method = staticmethod(bisect)
