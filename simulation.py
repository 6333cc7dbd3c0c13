"""
Mix Economy Simulation Driver

Runs two economies side by side under identical random transactions:
- controlled: tax recalibrated toward a target Gini every period
- baseline: fixed tax, plain update every period

TIMING WITHIN EACH PERIOD:
1. Draw random (sender, receiver) pairs
2. Attempt each transaction on both economies (rejections are skipped)
3. Calibrate the controlled economy, update the baseline

Every `periods_per_sample` periods the Gini coefficients and the tax are
exponentially smoothed with a weight that decays by `smooth_fact`. The run
ends when that weight drops below 1 - smooth_fact.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd

from config import Config, DEFAULT_CONFIG
from economics import Economy, TransactionError, compute_wealth_distribution, make_solver

logger = logging.getLogger(__name__)


@dataclass
class PeriodResult:
    """Result from a single period."""
    period: int
    tax: float
    accepted: int
    rejected: int


class MixEconomySimulation:
    """Calibrated economy against a fixed-tax baseline."""

    def __init__(self, config: Optional[Config] = None):
        self.config = (config or DEFAULT_CONFIG).validate()
        self.solver = make_solver(
            strategy=self.config.solver.strategy,
            smooth_target=self.config.solver.smooth_target,
            min_tax=self.config.solver.min_tax,
            tolerance=self.config.solver.tolerance,
            max_iterations=self.config.solver.max_iterations,
        )
        self.reset()

    def reset(self) -> None:
        """Reset economies, random stream and smoothing state."""
        econ = self.config.economy
        self.controlled = Economy(econ.tax, econ.start_fortune, econ.num_players, legacy=econ.legacy)
        self.baseline = Economy(
            self.config.simulation.baseline_tax,
            econ.start_fortune,
            econ.num_players,
            legacy=econ.legacy,
        )
        self.rng = np.random.default_rng(self.config.seed)

        self.current_period = 0
        self.smooth = 1.0
        self.smooth_gini = 0.0
        self.smooth_gini_baseline = 0.0
        self.smooth_tax = 0.0
        self.history: List[Dict[str, Any]] = []

    @property
    def expected_samples(self) -> int:
        """Number of samples until smoothing settles, capped by max_samples."""
        sim = self.config.simulation
        settled = int(np.floor(np.log(1.0 - sim.smooth_fact) / np.log(sim.smooth_fact))) + 1
        return min(settled, sim.max_samples)

    @property
    def is_done(self) -> bool:
        """Whether smoothing has settled or the sample limit is reached."""
        sim = self.config.simulation
        return self.smooth < 1.0 - sim.smooth_fact or len(self.history) >= sim.max_samples

    def period(self) -> PeriodResult:
        """Run random transactions, then calibrate and update."""
        sim = self.config.simulation
        n = len(self.controlled)
        senders = self.rng.integers(0, n, size=sim.transactions_per_period)
        receivers = self.rng.integers(0, n, size=sim.transactions_per_period)

        accepted = 0
        for from_id, to_id in zip(senders, receivers):
            try:
                self.controlled.transaction(from_id, to_id, sim.avg_transaction)
                accepted += 1
            except TransactionError:
                pass
            try:
                self.baseline.transaction(from_id, to_id, sim.avg_transaction)
            except TransactionError:
                pass

        tax = self.controlled.calibrate(self.config.solver.target_gini, self.solver)
        self.baseline.update()

        self.current_period += 1
        return PeriodResult(
            period=self.current_period,
            tax=tax,
            accepted=accepted,
            rejected=sim.transactions_per_period - accepted,
        )

    def sample(self) -> Dict[str, Any]:
        """Run one sample of periods and record smoothed measures."""
        results = [self.period() for _ in range(self.config.simulation.periods_per_sample)]

        gini = self.controlled.gini()
        gini_baseline = self.baseline.gini()
        self.smooth_gini += (gini - self.smooth_gini) * self.smooth
        self.smooth_gini_baseline += (gini_baseline - self.smooth_gini_baseline) * self.smooth
        self.smooth_tax += (self.controlled.tax - self.smooth_tax) * self.smooth

        record = {
            "sample": len(self.history) + 1,
            "period": self.current_period,
            "gini": gini,
            "gini_baseline": gini_baseline,
            "tax": self.controlled.tax,
            "smooth_gini": self.smooth_gini,
            "smooth_gini_baseline": self.smooth_gini_baseline,
            "smooth_tax": self.smooth_tax,
            "smooth": self.smooth,
            "rejected": sum(r.rejected for r in results),
            "wealth_distribution": compute_wealth_distribution(self.controlled.players),
        }
        self.history.append(record)
        logger.debug(
            f"sample {record['sample']}: gini {self.smooth_gini:.4f} "
            f"(baseline {self.smooth_gini_baseline:.4f}) tax {self.smooth_tax:.4f}"
        )

        self.smooth *= self.config.simulation.smooth_fact
        return record

    def run(self, callback: Optional[Callable[[Dict[str, Any]], None]] = None) -> pd.DataFrame:
        """Sample until done and return the history."""
        while not self.is_done:
            record = self.sample()
            if callback is not None:
                callback(record)
        logger.info(
            f"target gini {self.config.solver.target_gini:.4f}: "
            f"gini {self.smooth_gini:.4f} baseline {self.smooth_gini_baseline:.4f} "
            f"tax {self.smooth_tax:.4f} after {len(self.history)} samples"
        )
        return self.get_history_dataframe()

    def get_history_dataframe(self) -> pd.DataFrame:
        """Convert history to pandas DataFrame."""
        records = []
        for h in self.history:
            record = {k: v for k, v in h.items() if k != "wealth_distribution"}
            record.update({f"wealth_{k}": v for k, v in h["wealth_distribution"].items()})
            records.append(record)

        return pd.DataFrame(records)

    def get_current_summary(self) -> Dict[str, float]:
        """Get summary of current smoothed state."""
        if not self.history:
            return {}

        return {
            "target_gini": self.config.solver.target_gini,
            "gini": self.smooth_gini,
            "gini_baseline": self.smooth_gini_baseline,
            "tax": self.smooth_tax,
            "samples": len(self.history),
            "periods": self.current_period,
        }


def sweep_targets(count: int, max_gini: float = 0.5) -> List[float]:
    """Target Gini values from `max_gini` down toward zero."""
    return [max_gini * (count - i) / count for i in range(count)]


def run_sweep(
    config: Config,
    targets: List[float],
    callback: Optional[Callable[[Dict[str, float]], None]] = None,
) -> pd.DataFrame:
    """Run one full simulation per target Gini and collect the summaries."""
    summaries = []
    for i, target in enumerate(targets):
        run_config = copy.deepcopy(config)
        run_config.solver.target_gini = target
        simulation = MixEconomySimulation(run_config)
        simulation.run()

        summary = {"id": i}
        summary.update(simulation.get_current_summary())
        summaries.append(summary)
        if callback is not None:
            callback(summary)

    return pd.DataFrame(summaries)
