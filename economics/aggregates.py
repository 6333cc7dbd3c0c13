"""
Aggregate Wealth Computations
Distribution statistics over player fortunes for reporting.

These are approximate reporting helpers. The exact pairwise Gini used for
calibration lives on `Economy.gini`.
"""

from typing import Dict, Sequence

import numpy as np


def compute_gini(values: Sequence[float]) -> float:
    """
    Pairwise Gini coefficient, summed over sorted values.

    Same quantity as `Economy.gini`, sum_i sum_j |p_i - p_j| / (2 * n * total),
    but for sorted p the double sum collapses to
    2 * sum_k (2k - n - 1) * p_k, which is O(n log n) and suits histories
    with many samples. Negative values are shifted to zero first; fewer than
    two values or no wealth give 0.0 instead of raising.
    """
    values = np.sort(np.asarray(values, dtype=np.float64))
    n = len(values)
    if n < 2:
        return 0.0

    values = values - min(values[0], 0.0)
    total = values.sum()
    if total == 0.0:
        return 0.0

    ranks = np.arange(1, n + 1)
    abs_diff_sum = 2.0 * np.sum((2 * ranks - n - 1) * values)
    return float(np.clip(abs_diff_sum / (2.0 * n * total), 0.0, 1.0))


def compute_wealth_distribution(
    fortunes: Sequence[float],
    soft_limit: float = 1.0,
) -> Dict[str, float]:
    """Compute wealth distribution statistics."""
    wealth = np.sort(np.asarray(fortunes, dtype=np.float64))
    n = len(wealth)
    if n == 0:
        return {}

    total = max(wealth.sum(), 1e-12)
    top_count = max(int(n * 0.1), 1)
    bottom_count = int(n * 0.5)

    return {
        "mean_wealth": float(np.mean(wealth)),
        "median_wealth": float(np.median(wealth)),
        "std_wealth": float(np.std(wealth)),
        "min_wealth": float(wealth[0]),
        "max_wealth": float(wealth[-1]),
        "gini_wealth": compute_gini(wealth),
        "top_10_share": float(wealth[-top_count:].sum() / total),
        "bottom_50_share": float(wealth[:bottom_count].sum() / total),
        "below_limit_share": float(np.mean(wealth < soft_limit)),
    }
