"""
Target Gini Sweep for the Mix Economy

Runs one random-transaction simulation per target Gini and reports how
close the calibrated economy gets, next to a fixed-tax baseline.

USAGE:
    python simulate.py [--targets 100] [--players 100] [--start-fortune 0.05]
    python simulate.py --target 0.2 --plot
"""

import argparse
import json
import logging
import os
import time
from datetime import datetime

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
from tqdm import tqdm

from config import create_config
from economics import STRATEGIES
from simulation import MixEconomySimulation, run_sweep, sweep_targets
from visualization import plot_fortune_distribution, plot_gini_history, plot_target_sweep


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Calibrate tax toward target Gini coefficients")
    parser.add_argument("--targets", type=int, default=100, help="Number of targets swept from 0.5 down")
    parser.add_argument("--target", type=float, default=None, help="Run a single target Gini instead")
    parser.add_argument("--players", type=int, default=100, help="Number of players")
    parser.add_argument("--start-fortune", type=float, default=0.05, help="Fortune of new players")
    parser.add_argument("--transactions", type=int, default=1000, help="Random transactions per period")
    parser.add_argument("--periods", type=int, default=10, help="Periods per smoothed sample")
    parser.add_argument("--avg-transaction", type=float, default=0.03, help="Transaction amount")
    parser.add_argument("--smooth-target", type=float, default=0.9, help="Step decay of the tax search")
    parser.add_argument("--smooth-fact", type=float, default=0.99, help="Decay of the reporting smoothing weight")
    parser.add_argument("--min-tax", type=float, default=0.001, help="Floor for the calibrated tax")
    parser.add_argument("--strategy", type=str, default="decaying", choices=sorted(STRATEGIES),
                        help="Tax search strategy")
    parser.add_argument("--legacy", action="store_true", help="Let degenerate states produce NaN silently")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--output-dir", type=str, default="runs", help="Output directory")
    parser.add_argument("--plot", action="store_true", help="Save plots next to the results")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level")
    return parser.parse_args(argv)


def setup_run_dir(output_dir: str, label: str) -> str:
    """Create `<output_dir>/<label>_<timestamp>` for one invocation."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = os.path.join(output_dir, f"{label}_{stamp}")
    os.makedirs(run_dir, exist_ok=True)
    return run_dir


def run_single(config, run_dir: str, plot: bool) -> dict:
    """Run one target and save its history."""
    simulation = MixEconomySimulation(config)
    pbar = tqdm(total=simulation.expected_samples, desc=f"Target {config.solver.target_gini:.3f}", ncols=100)

    def on_sample(record):
        pbar.update(1)
        pbar.set_postfix({
            "gini": f"{record['smooth_gini']:.4f}",
            "tax": f"{record['smooth_tax']:.4f}",
        })

    history_df = simulation.run(callback=on_sample)
    pbar.close()

    history_path = os.path.join(run_dir, "history.csv")
    history_df.to_csv(history_path, index=False)

    if plot:
        fig = plot_gini_history(history_df, target_gini=config.solver.target_gini,
                                save_path=os.path.join(run_dir, "gini_history.png"))
        plt.close(fig)
        fig = plot_fortune_distribution(
            [simulation.controlled, simulation.baseline],
            labels=["Calibrated", "Fixed tax"],
            save_path=os.path.join(run_dir, "fortunes.png"),
        )
        plt.close(fig)

    return simulation.get_current_summary()


def simulate(args):
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    config = create_config(
        num_players=args.players,
        start_fortune=args.start_fortune,
        target_gini=args.target if args.target is not None else 0.2,
        smooth_target=args.smooth_target,
        min_tax=args.min_tax,
        strategy=args.strategy,
        transactions_per_period=args.transactions,
        periods_per_sample=args.periods,
        avg_transaction=args.avg_transaction,
        smooth_fact=args.smooth_fact,
        legacy=args.legacy,
        seed=args.seed,
    )

    label = "sweep" if args.target is None else f"target_{args.target:.3f}"
    run_dir = setup_run_dir(args.output_dir, label)
    with open(os.path.join(run_dir, "config.json"), "w") as f:
        json.dump(config.to_dict(), f, indent=2)

    print(f"\n{'='*60}")
    print("MIX ECONOMY CALIBRATION")
    print(f"{'='*60}")
    print(f"  Players:        {config.economy.num_players}")
    print(f"  Start fortune:  {config.economy.start_fortune}")
    print(f"  Strategy:       {config.solver.strategy}")
    print(f"  Transactions:   {config.simulation.transactions_per_period} x {config.simulation.avg_transaction}")
    print()

    start = time.time()

    if args.target is not None:
        summary = run_single(config, run_dir, args.plot)
        print(f"gini \tcalibrated: {summary['gini']:.4f} \tbaseline: {summary['gini_baseline']:.4f}")
        print(f"tax \tsmoothed: {summary['tax']:.4f}")
        result = summary
    else:
        targets = sweep_targets(args.targets)
        pbar = tqdm(total=len(targets), desc="Sweep", ncols=100)

        def on_target(summary):
            pbar.update(1)
            tqdm.write(f"id: {summary['id']} \ttarget_gini: {summary['target_gini']:.4f} "
                       f"\tgini: {summary['gini']:.4f} \tbaseline: {summary['gini_baseline']:.4f} "
                       f"\ttax: {summary['tax']:.4f}")

        sweep_df = run_sweep(config, targets, callback=on_target)
        pbar.close()

        sweep_path = os.path.join(run_dir, "sweep.csv")
        sweep_df.to_csv(sweep_path, index=False)
        if args.plot:
            fig = plot_target_sweep(sweep_df, save_path=os.path.join(run_dir, "sweep.png"))
            plt.close(fig)
        result = sweep_df

    print(f"\n{'='*60}")
    print("CALIBRATION COMPLETE")
    print(f"{'='*60}")
    print(f"  Total time:  {time.time() - start:.1f}s")
    print(f"  Results:     {run_dir}")

    return result


def main(argv=None):
    args = parse_args(argv)
    return simulate(args)


if __name__ == "__main__":
    main()
