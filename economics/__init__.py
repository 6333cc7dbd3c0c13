"""
Economics package - Economy model, tax solvers and aggregate computations.
"""

from .aggregates import compute_gini, compute_wealth_distribution
from .economy import SOFT_LIMIT, Economy, EconomySnapshot
from .errors import (
    ConfigurationError,
    DegenerateEconomyError,
    EconomyBusyError,
    EconomyError,
    TransactionError,
)
from .solvers import (
    STRATEGIES,
    BracketedBisection,
    DecayingPerturbationSearch,
    TaxSolver,
    evaluate_tax,
    make_solver,
)

__all__ = [
    'Economy', 'EconomySnapshot', 'SOFT_LIMIT',
    'TaxSolver', 'DecayingPerturbationSearch', 'BracketedBisection',
    'STRATEGIES', 'evaluate_tax', 'make_solver',
    'EconomyError', 'TransactionError', 'DegenerateEconomyError',
    'EconomyBusyError', 'ConfigurationError',
    'compute_gini', 'compute_wealth_distribution',
]
