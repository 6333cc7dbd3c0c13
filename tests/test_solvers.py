"""Tests for tax calibration strategies."""

import numpy as np
import pytest

from config import Config
from economics import (
    BracketedBisection,
    ConfigurationError,
    DecayingPerturbationSearch,
    STRATEGIES,
    Economy,
    TaxSolver,
    evaluate_tax,
    make_solver,
)


@pytest.fixture
def unequal_economy():
    """Ten rich players above the soft limit and ninety poor ones."""
    economy = Economy(0.0, 0.1, 0)
    economy.players = [3.0] * 10 + [0.1] * 90
    return economy


def test_evaluate_tax_leaves_economy_untouched(unequal_economy):
    before = unequal_economy.players.copy()
    gini = evaluate_tax(unequal_economy, 0.5)

    assert np.array_equal(unequal_economy.players, before)
    assert unequal_economy.tax == 0.0
    assert gini < unequal_economy.gini()


def test_evaluate_tax_zero_is_current_gini(unequal_economy):
    assert evaluate_tax(unequal_economy, 0.0) == unequal_economy.gini()


class TestDecayingPerturbationSearch:
    """Shrinking step search without a bracket."""

    @pytest.mark.parametrize("smooth_target", [0.0, 1.0, 1.5, -0.5])
    def test_invalid_smooth_target(self, smooth_target):
        with pytest.raises(ConfigurationError):
            DecayingPerturbationSearch(smooth_target=smooth_target)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            DecayingPerturbationSearch(smooth_target=2.0)

    def test_binary_decay_on_equal_wealth(self):
        # Gini is zero at every tax, so every step raises the tax
        solver = DecayingPerturbationSearch(smooth_target=0.5)
        tax = solver.find_tax(Economy(0.0, 0.2, 20), 0.0)

        assert solver.iterations == 13
        assert tax == pytest.approx(1.0 - 0.5 ** 13)

    def test_tax_above_one_stops_search(self):
        solver = DecayingPerturbationSearch(smooth_target=0.9)
        assert solver.find_tax(Economy(0.0, 0.2, 20), 0.0) == 1.0
        assert solver.iterations == 3

    def test_does_not_mutate(self, unequal_economy):
        before = unequal_economy.players.copy()
        DecayingPerturbationSearch(smooth_target=0.9).find_tax(unequal_economy, 0.2)
        assert np.array_equal(unequal_economy.players, before)

    def test_clamp(self):
        solver = DecayingPerturbationSearch(min_tax=0.05)
        assert solver.clamp(-0.3) == 0.05
        assert solver.clamp(0.4) == 0.4
        assert solver.clamp(1.7) == 1.0


class TestBracketedBisection:
    """Bisection over [min_tax, 1]."""

    def test_reaches_bracketed_target(self, unequal_economy):
        low, high = evaluate_tax(unequal_economy, 0.0), evaluate_tax(unequal_economy, 1.0)
        target = (low + high) / 2

        tax = BracketedBisection(tolerance=1e-6).find_tax(unequal_economy, target)

        assert 0.0 < tax < 1.0
        assert evaluate_tax(unequal_economy, tax) == pytest.approx(target, abs=1e-3)

    def test_unbracketed_target_returns_closest_end(self):
        solver = BracketedBisection(min_tax=0.01)
        assert solver.find_tax(Economy(0.0, 0.2, 20), 0.5) == 0.01

    def test_calibrate_applies_tax(self, unequal_economy):
        target = (evaluate_tax(unequal_economy, 0.0) + evaluate_tax(unequal_economy, 1.0)) / 2
        before = unequal_economy.copy()

        tax = unequal_economy.calibrate(target, BracketedBisection())

        before.tax = tax
        before.update()
        assert unequal_economy.tax == tax
        assert np.array_equal(unequal_economy.players, before.players)

    @pytest.mark.parametrize(
        "kwargs",
        [{"min_tax": -0.1}, {"min_tax": 1.5}, {"tolerance": 0.0}, {"max_iterations": 0}],
    )
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ConfigurationError):
            BracketedBisection(**kwargs)


def test_make_solver():
    decaying = make_solver("decaying", smooth_target=0.7, min_tax=0.02)
    assert isinstance(decaying, DecayingPerturbationSearch)
    assert decaying.smooth_target == 0.7
    assert decaying.min_tax == 0.02

    bisection = make_solver("bisection", min_tax=0.02, tolerance=1e-5)
    assert isinstance(bisection, BracketedBisection)
    assert bisection.tolerance == 1e-5

    with pytest.raises(ConfigurationError):
        make_solver("newton")


class FixedTax(TaxSolver):
    name = "fixed"
    options = ("min_tax",)

    def find_tax(self, economy, target_gini):
        return self.clamp(0.3)


def test_registered_strategy(monkeypatch):
    monkeypatch.setitem(STRATEGIES, FixedTax.name, FixedTax)

    solver = make_solver("fixed", smooth_target=0.7, min_tax=0.4, tolerance=1e-5)
    assert isinstance(solver, FixedTax)
    assert solver.min_tax == 0.4

    config = Config()
    config.solver.strategy = "fixed"
    assert config.validate() is config

    economy = Economy(0.0, 0.2, 5)
    assert economy.calibrate(0.2, solver) == 0.4
