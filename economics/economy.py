"""
Mix Economy Model
Wealth redistribution for the economy of persistent multi-player worlds.

Each player holds a normalized fortune against an upper soft limit of 1.0:

1. Fortunes above the limit decay with the square root of the excess.
2. The shortfall below the limit, summed over players, funds the rewards.
3. Rewards grow with fortune, so saving stays worthwhile.

At start every player gets the start fortune. Call `Economy.update` at
regular intervals to distribute wealth with a fixed tax, or `Economy.solve`
to let the tax be adjusted toward a target Gini coefficient.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from operator import index as as_index
from typing import Any, Dict, Iterator, Tuple

import numpy as np

from .errors import DegenerateEconomyError, EconomyBusyError, TransactionError
from .solvers import DecayingPerturbationSearch, TaxSolver

logger = logging.getLogger(__name__)

# Fortune above which wealth starts to burn
SOFT_LIMIT = 1.0


@dataclass
class EconomySnapshot:
    """In-memory copy of an economy's state."""
    players: np.ndarray = field(default_factory=lambda: np.zeros(0))
    tax: float = 0.0
    start_fortune: float = 0.0
    legacy: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert snapshot to dictionary for logging."""
        return {
            "players": [float(p) for p in self.players],
            "tax": float(self.tax),
            "start_fortune": float(self.start_fortune),
            "legacy": self.legacy,
        }


class Economy:
    """
    Fortune ledger with a progressive tax.

    One tax factor scales both the decay of fortunes above the soft limit
    and the rewards paid to players below it on every update.

    PLAYER IDENTITY:
    A player's id is its position in `players`. The canonical array is
    exposed read-only and never reordered; use `ranking()` for a sorted view.

    DEGENERATE STATES:
    By default a Gini of an empty or wealthless population, or a
    redistribution with no usable weights, raises `DegenerateEconomyError`.
    With `legacy=True` these produce non-finite values silently instead.
    """

    def __init__(
        self,
        tax: float,
        start_fortune: float,
        player_count: int,
        legacy: bool = False,
    ):
        if player_count < 0:
            raise ValueError(f"player_count must be non-negative, got {player_count}")

        self.tax = tax
        self.start_fortune = start_fortune
        self.legacy = legacy

        self._fortunes = np.full(player_count, start_fortune, dtype=np.float64)
        self._lock = threading.Lock()

    # === STATE ACCESS ===

    @property
    def players(self) -> np.ndarray:
        """Read-only view of the fortunes, indexed by player id."""
        view = self._fortunes.view()
        view.flags.writeable = False
        return view

    @players.setter
    def players(self, fortunes) -> None:
        fortunes = np.array(fortunes, dtype=np.float64).reshape(-1)
        with self._exclusive("players"):
            if len(fortunes) < len(self._fortunes):
                raise ValueError(
                    f"Cannot shrink population from {len(self._fortunes)} "
                    f"to {len(fortunes)} players"
                )
            self._fortunes = fortunes

    def __len__(self) -> int:
        return len(self._fortunes)

    def __repr__(self) -> str:
        return (
            f"Economy(tax={self.tax!r}, start_fortune={self.start_fortune!r}, "
            f"players={len(self)}, legacy={self.legacy!r})"
        )

    def copy(self) -> "Economy":
        """Return an independent economy with the same state."""
        clone = Economy(self.tax, self.start_fortune, 0, legacy=self.legacy)
        clone._fortunes = self._fortunes.copy()
        return clone

    __copy__ = copy

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Economy":
        return self.copy()

    def snapshot(self) -> EconomySnapshot:
        """Capture players, tax and start fortune."""
        return EconomySnapshot(
            players=self._fortunes.copy(),
            tax=self.tax,
            start_fortune=self.start_fortune,
            legacy=self.legacy,
        )

    @classmethod
    def from_snapshot(cls, snapshot: EconomySnapshot) -> "Economy":
        """Restore an economy captured with `snapshot()`."""
        economy = cls(snapshot.tax, snapshot.start_fortune, 0, legacy=snapshot.legacy)
        economy.players = snapshot.players
        return economy

    @contextmanager
    def _exclusive(self, operation: str) -> Iterator[None]:
        """Hold the economy for one mutating operation."""
        if not self._lock.acquire(blocking=False):
            raise EconomyBusyError(operation)
        try:
            yield
        finally:
            self._lock.release()

    def _check_index(self, player_id: int) -> int:
        player_id = as_index(player_id)
        if not 0 <= player_id < len(self._fortunes):
            raise IndexError(
                f"Player {player_id} out of range for {len(self._fortunes)} players"
            )
        return player_id

    # === BOOKKEEPING ===

    def add_player(self) -> int:
        """Add a player with the start fortune and return its id."""
        with self._exclusive("add_player"):
            self._fortunes = np.append(self._fortunes, self.start_fortune)
            return len(self._fortunes) - 1

    def min_max(self) -> Tuple[float, float]:
        """Find the minimum and maximum fortune, (0.0, 0.0) when empty."""
        if len(self._fortunes) == 0:
            return 0.0, 0.0
        return float(self._fortunes.min()), float(self._fortunes.max())

    def total_wealth(self) -> float:
        """Sum of all fortunes."""
        return float(self._fortunes.sum())

    def ranking(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Sorted projection for display.

        Returns:
            (ids, fortunes) ordered by ascending fortune. Ties keep id order.
        """
        order = np.argsort(self._fortunes, kind="stable")
        return order, self._fortunes[order]

    # === MEASURES ===

    def gini(self) -> float:
        """
        Gini coefficient as the mean absolute difference over all pairs.

        gini = sum_i sum_j |p_i - p_j| / (2 * n * sum_j p_j)

        Exact O(n^2) double sum, evaluated one row at a time.
        """
        fortunes = self._fortunes
        n = len(fortunes)
        total = fortunes.sum()

        if not self.legacy and (n == 0 or total == 0.0):
            raise DegenerateEconomyError(
                f"Gini is undefined for {n} players holding a total of {total}"
            )

        abs_diff_sum = np.float64(0.0)
        for fortune in fortunes:
            abs_diff_sum += np.abs(fortunes - fortune).sum()

        with np.errstate(divide="ignore", invalid="ignore"):
            return float(abs_diff_sum / (2.0 * n * total))

    # === MUTATIONS ===

    def transaction(self, from_id: int, to_id: int, amount: float) -> None:
        """
        Move `amount` from one player to another.

        The sender must keep a strictly positive fortune. A negative amount
        is a transfer in the opposite direction.

        Raises:
            TransactionError: self-transfer or insufficient funds
            IndexError: either id is not a player
        """
        with self._exclusive("transaction"):
            if from_id == to_id:
                raise TransactionError(from_id, to_id, amount)
            from_id = self._check_index(from_id)
            to_id = self._check_index(to_id)

            new_fortune = self._fortunes[from_id] - amount
            if not new_fortune > 0.0:
                raise TransactionError(from_id, to_id, amount)

            self._fortunes[to_id] += amount
            self._fortunes[from_id] = new_fortune

    def update(self) -> None:
        """Run one redistribution step at the current tax."""
        with self._exclusive("update"):
            self._update()

    def _update(self) -> None:
        tax = self.tax
        fortunes = self._fortunes.copy()

        with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
            # Burn wealth above the soft limit
            rich = fortunes >= SOFT_LIMIT
            fortunes[rich] -= np.sqrt(fortunes[rich] - SOFT_LIMIT) * tax

            # Weights and amount to distribute, after the burn
            poor = fortunes < SOFT_LIMIT
            if poor.any():
                below = fortunes[poor]
                weights = np.sqrt(np.maximum(below, self.start_fortune))
                distribute = np.sum(SOFT_LIMIT - below)
                sum_weights = np.sum(weights)

                if not self.legacy and (sum_weights == 0.0 or not np.isfinite(sum_weights)):
                    raise DegenerateEconomyError(
                        f"Cannot distribute {distribute} among {len(below)} players "
                        f"with total weight {sum_weights}"
                    )

                # Reward players below the limit
                fortunes[poor] = below + weights / sum_weights * distribute * tax

        self._fortunes[:] = fortunes

    def solve(
        self,
        target_gini: float,
        smooth_target: float,
        min_tax: float = 0.0,
    ) -> float:
        """
        Recalibrate the tax toward a target Gini, then update.

        The tax is found with a decaying perturbation search and then
        applied with a single `update()`. Less accurate for high targets
        (~0.5 and above); very low targets (<0.1) may not be reached at all
        since rewards grow with fortune below the soft limit.

        Args:
            target_gini: Desired Gini coefficient
            smooth_target: Step decay in [0.5, 1). 0.5 behaves like binary
                search and assumes Gini falls strictly as tax rises; higher
                values weaken that assumption at the cost of more iterations.
            min_tax: Floor for the chosen tax

        Returns:
            The tax now held by the economy.
        """
        solver = DecayingPerturbationSearch(smooth_target=smooth_target, min_tax=min_tax)
        return self.calibrate(target_gini, solver)

    def calibrate(self, target_gini: float, solver: TaxSolver) -> float:
        """Pick a tax with `solver`, assign it and run one update."""
        with self._exclusive("calibrate"):
            tax = solver.find_tax(self, target_gini)
            logger.debug(
                f"{solver.name}: tax {tax:.6f} for target gini {target_gini:.4f}"
            )
            self.tax = tax
            self._update()
            return tax
