"""
Tax Solvers
Strategies that search for the tax producing a target Gini coefficient.

Every candidate tax is evaluated on a copy of the economy, so the search
never touches the live fortunes.

PRECONDITION:
Both strategies assume the Gini coefficient after an update falls as the
tax rises. This is not guaranteed by the model and should be checked
experimentally for a given population before trusting a result.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Type

import numpy as np
from scipy import optimize

from .errors import ConfigurationError, DegenerateEconomyError

logger = logging.getLogger(__name__)

MAX_TAX = 1.0


def evaluate_tax(economy: Any, tax: float) -> float:
    """Gini coefficient the economy would have after one update at `tax`."""
    candidate = economy.copy()
    candidate.tax = tax
    candidate.update()
    return candidate.gini()


class TaxSolver(ABC):
    """Base class for tax calibration strategies."""

    name = "solver"
    # Keyword arguments accepted from `make_solver`
    options = ("min_tax",)

    def __init__(self, min_tax: float = 0.0):
        self.min_tax = min_tax

    @abstractmethod
    def find_tax(self, economy: Any, target_gini: float) -> float:
        """Return a tax in [min_tax, 1.0] for the target Gini."""
        pass

    def clamp(self, tax: float) -> float:
        """Clamp a tax into [min_tax, 1.0]."""
        if tax < self.min_tax:
            tax = self.min_tax
        if tax > MAX_TAX:
            tax = MAX_TAX
        return tax


class DecayingPerturbationSearch(TaxSolver):
    """
    Nudges a running tax by a shrinking step.

    Starting from tax 0 with step 0.5, the tax is lowered when the Gini
    is below target and raised otherwise, then the step is multiplied by
    `smooth_target`. The search stops once the tax exceeds 1.0 or the step
    falls below `min_step`.

    No bracket around the root is kept, so the result can be poor when
    Gini does not respond monotonically to tax.
    """

    name = "decaying"
    options = ("smooth_target", "min_tax")

    def __init__(
        self,
        smooth_target: float = 0.9,
        min_tax: float = 0.0,
        initial_step: float = 0.5,
        min_step: float = 0.0001,
    ):
        super().__init__(min_tax)
        if not 0.0 < smooth_target < 1.0:
            raise ConfigurationError("smooth_target", f"must be in (0, 1), got {smooth_target}")
        if not initial_step > min_step > 0.0:
            raise ConfigurationError("initial_step", "must exceed a positive min_step")
        self.smooth_target = smooth_target
        self.initial_step = initial_step
        self.min_step = min_step
        self.iterations = 0

    def find_tax(self, economy: Any, target_gini: float) -> float:
        tax = 0.0
        step = self.initial_step
        self.iterations = 0

        while True:
            if tax > MAX_TAX:
                break
            gini = evaluate_tax(economy, tax)
            self.iterations += 1

            diff = target_gini - gini
            if diff > 0.0:
                tax -= step
            else:
                tax += step

            step *= self.smooth_target
            if step < self.min_step:
                break

        logger.debug(f"decaying search stopped at tax {tax:.6f} after {self.iterations} steps")
        return self.clamp(tax)


class BracketedBisection(TaxSolver):
    """
    Bisection over the bracket [min_tax, 1.0].

    When the target lies outside the Gini range spanned by the bracket
    ends, the end whose Gini is closest to the target is returned.
    """

    name = "bisection"
    options = ("min_tax", "tolerance", "max_iterations")

    def __init__(
        self,
        min_tax: float = 0.0,
        tolerance: float = 1e-4,
        max_iterations: int = 100,
    ):
        super().__init__(min_tax)
        if not 0.0 <= min_tax <= MAX_TAX:
            raise ConfigurationError("min_tax", f"must be in [0, 1], got {min_tax}")
        if tolerance <= 0.0:
            raise ConfigurationError("tolerance", f"must be positive, got {tolerance}")
        if max_iterations < 1:
            raise ConfigurationError("max_iterations", f"must be at least 1, got {max_iterations}")
        self.tolerance = tolerance
        self.max_iterations = max_iterations

    def find_tax(self, economy: Any, target_gini: float) -> float:
        def gap(tax: float) -> float:
            return evaluate_tax(economy, tax) - target_gini

        low, high = self.min_tax, MAX_TAX
        gap_low, gap_high = gap(low), gap(high)
        if not (np.isfinite(gap_low) and np.isfinite(gap_high)):
            raise DegenerateEconomyError(
                f"Gini is not finite at the bracket ends [{low}, {high}]"
            )

        if gap_low == 0.0:
            return low
        if gap_high == 0.0:
            return high
        if np.sign(gap_low) == np.sign(gap_high):
            logger.debug(f"target gini {target_gini:.4f} not bracketed by [{low}, {high}]")
            return low if abs(gap_low) <= abs(gap_high) else high

        tax, result = optimize.bisect(
            gap,
            low,
            high,
            xtol=self.tolerance,
            maxiter=self.max_iterations,
            full_output=True,
            disp=False,
        )
        if not result.converged:
            logger.warning(
                f"bisection did not converge after {result.iterations} iterations"
            )
        return self.clamp(tax)


STRATEGIES: Dict[str, Type[TaxSolver]] = {
    DecayingPerturbationSearch.name: DecayingPerturbationSearch,
    BracketedBisection.name: BracketedBisection,
}


def make_solver(
    strategy: str = "decaying",
    smooth_target: float = 0.9,
    min_tax: float = 0.0,
    tolerance: float = 1e-4,
    max_iterations: int = 100,
) -> TaxSolver:
    """Create a tax solver by strategy name, passing on the options it takes."""
    solver_cls = STRATEGIES.get(strategy)
    if solver_cls is None:
        raise ConfigurationError(
            "strategy", f"unknown strategy '{strategy}', expected one of {sorted(STRATEGIES)}"
        )
    settings = {
        "smooth_target": smooth_target,
        "min_tax": min_tax,
        "tolerance": tolerance,
        "max_iterations": max_iterations,
    }
    return solver_cls(**{key: settings[key] for key in solver_cls.options})
