"""
Visualization Module
"""

from .plots import (
    plot_fortune_distribution,
    plot_gini_history,
    plot_target_sweep,
)

__all__ = [
    "plot_fortune_distribution",
    "plot_gini_history",
    "plot_target_sweep",
]
