"""
Visualization Utilities
Plotting for the mix economy simulation.
"""

from typing import List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from economics import SOFT_LIMIT, Economy


def plot_fortune_distribution(
    economies: Sequence[Economy],
    labels: Optional[List[str]] = None,
    save_path: Optional[str] = None,
) -> plt.Figure:
    """
    Plot the sorted fortunes of one or more economies.

    Fortunes are drawn from `Economy.ranking()`, so the economies themselves
    keep their player order.

    Args:
        economies: Economies to draw, one panel each
        labels: Panel titles
        save_path: If provided, save figure to this path

    Returns:
        matplotlib Figure
    """
    labels = labels or [f"Economy {i + 1}" for i in range(len(economies))]
    fig, axes = plt.subplots(len(economies), 1, figsize=(12, 3.5 * len(economies)), squeeze=False)
    fig.suptitle("Fortune Distribution", fontsize=14)

    for ax, economy, label in zip(axes[:, 0], economies, labels):
        _, fortunes = economy.ranking()
        ax.bar(np.arange(len(fortunes)), fortunes, width=1.0, color="red")
        ax.axhline(y=economy.start_fortune, color="green", linestyle="--",
                   label=f"Start fortune ({economy.start_fortune:g})")
        ax.axhline(y=SOFT_LIMIT, color="blue", linestyle="--", label="Soft limit")
        ax.set_xlabel("Player (sorted by fortune)")
        ax.set_ylabel("Fortune")
        ax.set_title(f"{label} (tax {economy.tax:.4f})")
        ax.legend(loc="upper left")
        ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_gini_history(
    history_df: pd.DataFrame,
    target_gini: Optional[float] = None,
    save_path: Optional[str] = None,
) -> plt.Figure:
    """
    Plot smoothed Gini coefficients and tax over samples.

    Args:
        history_df: DataFrame from `MixEconomySimulation.get_history_dataframe`
        target_gini: If provided, drawn as a reference line
        save_path: If provided, save figure to this path

    Returns:
        matplotlib Figure
    """
    fig, axes = plt.subplots(2, 1, figsize=(10, 8), sharex=True)
    fig.suptitle("Gini Calibration", fontsize=14)

    # Gini
    ax = axes[0]
    ax.plot(history_df["sample"], history_df["smooth_gini"], label="Calibrated", color="red")
    ax.plot(history_df["sample"], history_df["smooth_gini_baseline"],
            label="Fixed tax", color="black", alpha=0.7)
    if target_gini is not None:
        ax.axhline(y=target_gini, color="red", linestyle="--", alpha=0.5, label="Target")
    ax.set_ylabel("Gini Coefficient")
    ax.set_title("Smoothed Gini")
    ax.legend()
    ax.grid(True, alpha=0.3)

    # Tax
    ax = axes[1]
    ax.plot(history_df["sample"], history_df["tax"], color="green", alpha=0.4, label="Tax")
    ax.plot(history_df["sample"], history_df["smooth_tax"], color="green", label="Smoothed tax")
    ax.set_xlabel("Sample")
    ax.set_ylabel("Tax")
    ax.set_title("Calibrated Tax")
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_target_sweep(
    sweep_df: pd.DataFrame,
    save_path: Optional[str] = None,
) -> plt.Figure:
    """
    Plot achieved Gini and tax against the target Gini of each run.

    Args:
        sweep_df: DataFrame from `run_sweep`
        save_path: If provided, save figure to this path

    Returns:
        matplotlib Figure
    """
    fig, axes = plt.subplots(1, 2, figsize=(14, 6))
    fig.suptitle("Target Gini Sweep", fontsize=14)

    ax = axes[0]
    ax.plot(sweep_df["target_gini"], sweep_df["gini"], "o-", label="Calibrated", color="red")
    ax.plot(sweep_df["target_gini"], sweep_df["gini_baseline"], "s-",
            label="Fixed tax", color="black", alpha=0.6)
    lo, hi = sweep_df["target_gini"].min(), sweep_df["target_gini"].max()
    ax.plot([lo, hi], [lo, hi], "r--", alpha=0.5, label="Ideal")
    ax.set_xlabel("Target Gini")
    ax.set_ylabel("Achieved Gini")
    ax.set_title("Achieved vs Target")
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[1]
    ax.plot(sweep_df["target_gini"], sweep_df["tax"], "o-", color="green")
    ax.set_xlabel("Target Gini")
    ax.set_ylabel("Smoothed Tax")
    ax.set_title("Tax Needed")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig
