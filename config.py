"""
Configuration for Mix Economy Simulation

FORTUNE CONVENTION:
- Fortunes are normalized against a soft limit of 1.0
- Start fortune should lie in [0, 1]
- Tax is a factor in [0, 1] on the square root of fortune above the limit

TIME CONVENTION:
- 1 period = one batch of random transactions followed by one update
- 1 sample = `periods_per_sample` periods, after which Gini is smoothed
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict

from economics.errors import ConfigurationError
from economics.solvers import STRATEGIES


@dataclass
class EconomyConfig:
    """Parameters of the economy itself."""

    num_players: int = 100
    start_fortune: float = 0.25
    tax: float = 0.0
    legacy: bool = False  # Silent NaN/inf on degenerate states


@dataclass
class SolverConfig:
    """Tax calibration toward a target Gini coefficient."""

    strategy: str = "decaying"  # Key of economics.solvers.STRATEGIES
    target_gini: float = 0.2
    min_tax: float = 0.001

    # Decaying perturbation search
    smooth_target: float = 0.9  # 0.5 = binary search, closer to 1 = slower decay

    # Bracketed bisection
    tolerance: float = 1e-4
    max_iterations: int = 100


@dataclass
class SimulationConfig:
    """Random transaction driver."""

    baseline_tax: float = 0.0  # Fixed tax of the uncalibrated economy
    avg_transaction: float = 0.03
    transactions_per_period: int = 1000
    periods_per_sample: int = 10

    # Exponential smoothing of reported Gini/tax
    smooth_fact: float = 0.99  # Stop once smoothing weight < 1 - smooth_fact
    max_samples: int = 2000


@dataclass
class Config:
    """Master configuration."""

    seed: int = 42
    economy: EconomyConfig = field(default_factory=EconomyConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)

    def validate(self) -> "Config":
        """Check value ranges, raising ConfigurationError on the first problem."""
        if self.economy.num_players < 2:
            raise ConfigurationError("num_players", "random transactions need at least 2 players")
        if self.solver.strategy not in STRATEGIES:
            raise ConfigurationError(
                "strategy",
                f"unknown strategy '{self.solver.strategy}', expected one of {sorted(STRATEGIES)}",
            )
        if not 0.0 < self.solver.smooth_target < 1.0:
            raise ConfigurationError("smooth_target", "must be in (0, 1)")
        if not 0.0 <= self.solver.min_tax <= 1.0:
            raise ConfigurationError("min_tax", "must be in [0, 1]")
        if self.simulation.transactions_per_period < 0:
            raise ConfigurationError("transactions_per_period", "must be non-negative")
        if self.simulation.periods_per_sample < 1:
            raise ConfigurationError("periods_per_sample", "must be at least 1")
        if not 0.0 < self.simulation.smooth_fact < 1.0:
            raise ConfigurationError("smooth_fact", "must be in (0, 1)")
        if self.simulation.max_samples < 1:
            raise ConfigurationError("max_samples", "must be at least 1")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


# Default configuration instance
DEFAULT_CONFIG = Config()


def create_config(
    num_players: int = 100,
    start_fortune: float = 0.25,
    target_gini: float = 0.2,
    smooth_target: float = 0.9,
    min_tax: float = 0.001,
    strategy: str = "decaying",
    transactions_per_period: int = 1000,
    periods_per_sample: int = 10,
    avg_transaction: float = 0.03,
    smooth_fact: float = 0.99,
    legacy: bool = False,
    seed: int = 42,
) -> Config:
    """Create a validated configuration with custom parameters."""
    config = Config(seed=seed)
    config.economy.num_players = num_players
    config.economy.start_fortune = start_fortune
    config.economy.legacy = legacy
    config.solver.target_gini = target_gini
    config.solver.smooth_target = smooth_target
    config.solver.min_tax = min_tax
    config.solver.strategy = strategy
    config.simulation.transactions_per_period = transactions_per_period
    config.simulation.periods_per_sample = periods_per_sample
    config.simulation.avg_transaction = avg_transaction
    config.simulation.smooth_fact = smooth_fact
    return config.validate()
