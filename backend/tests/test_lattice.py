import math

import pytest

from quantkit.services.black_scholes import bs_price
from quantkit.services.crr import crr_price
from quantkit.services.errors import (
    InvalidModelParameter,
    NumericOverflow,
    PreconditionViolated,
    UndefinedRiskNeutralProbability,
)
from quantkit.services.lattice import (
    BinomialModel,
    binomial_option_price,
    build_path_tree,
    lattice_price,
    node_count,
    path_lattice_price,
)
from quantkit.services.payoffs import asian_payoff, vanilla_payoff


def test_crr_and_lattice_agree_on_known_case():
    payoff = lambda s: max(s - 240.0, 0.0)  # noqa: E731
    model = BinomialModel(spot=239.51, up=0.03, down=-0.02, rate=0.00076 / 360, steps=2)

    tree = lattice_price(payoff, model)
    closed = crr_price(payoff, 239.51, 0.03, -0.02, 0.00076 / 360, 2)

    assert tree == pytest.approx(3.1013, abs=1e-3)
    assert closed == pytest.approx(tree, rel=1e-12)


@pytest.mark.parametrize("option_type", ["call", "put"])
def test_crr_matches_lattice_for_path_independent_payoffs(option_type):
    model = BinomialModel(spot=50.0, up=0.04, down=-0.035, rate=0.001, steps=25)
    payoff = vanilla_payoff(option_type, 52.0)
    assert crr_price(payoff, 50.0, 0.04, -0.035, 0.001, 25) == pytest.approx(lattice_price(payoff, model), rel=1e-10)



@pytest.mark.parametrize("steps", [1100, 1500])
def test_crr_matches_lattice_where_binomial_coefficients_exceed_float_range(steps):
    model = BinomialModel(spot=100.0, up=0.01, down=-0.01, rate=1e-4, steps=steps)
    payoff = vanilla_payoff("call", 100.0)
    closed = crr_price(payoff, 100.0, 0.01, -0.01, 1e-4, steps)
    assert math.isfinite(closed)
    assert closed == pytest.approx(lattice_price(payoff, model), rel=1e-9)


def test_equal_up_and_down_is_rejected_before_pricing():
    with pytest.raises(UndefinedRiskNeutralProbability):
        BinomialModel(spot=100.0, up=0.01, down=0.01, rate=0.0, steps=3)
    with pytest.raises(UndefinedRiskNeutralProbability):
        crr_price(lambda s: s, 100.0, 0.01, 0.01, 0.0, 3)


@pytest.mark.parametrize(
    "kwargs, error",
    [
        (dict(up=0.01, down=-0.01, rate=0.02), PreconditionViolated),
        (dict(up=0.01, down=-1.0, rate=0.0), InvalidModelParameter),
        (dict(up=math.inf, down=-0.01, rate=0.0), InvalidModelParameter),
    ],
)
def test_model_parameter_checks(kwargs, error):
    with pytest.raises(error):
        BinomialModel(spot=100.0, steps=3, **kwargs)


def test_path_tree_is_indexed_by_mask():
    model = BinomialModel(spot=100.0, up=0.1, down=-0.1, rate=0.0, steps=3)
    tree = build_path_tree(model)

    assert [len(level) for level in tree] == [1, 2, 4, 8]
    for step, level in enumerate(tree):
        assert [node.mask for node in level] == list(range(2**step))

    # mask 0b101: up, down, up
    node = tree[3][5]
    assert node.up_count == 2
    assert node.path == pytest.approx((100.0, 110.0, 99.0, 108.9))
    assert node.spot == pytest.approx(model.spot_at(3, 2))


def test_path_engine_reproduces_recombining_price_for_terminal_payoff():
    model = BinomialModel(spot=100.0, up=0.05, down=-0.04, rate=0.002, steps=10)
    payoff = vanilla_payoff("put", 101.0)
    full = path_lattice_price(lambda path: payoff(path[-1]), model)
    assert full == pytest.approx(lattice_price(payoff, model), rel=1e-10)


def test_asian_call_two_steps_by_hand():
    # paths: uu avg 331/3, ud avg 103, du/dd below strike; q = 1/2, no discounting
    model = BinomialModel(spot=100.0, up=0.1, down=-0.1, rate=0.0, steps=2)
    assert model.risk_neutral_probability == pytest.approx(0.5)
    assert path_lattice_price(asian_payoff("call", 100.0), model) == pytest.approx(10.0 / 3.0)


def test_path_dependent_steps_are_capped():
    model = BinomialModel(spot=100.0, up=0.01, down=-0.01, rate=0.0, steps=21)
    with pytest.raises(PreconditionViolated):
        path_lattice_price(asian_payoff("call", 100.0), model)


def test_american_is_never_below_european():
    model = BinomialModel.from_volatility(spot=100.0, rate=0.06, vol=0.25, time_to_expiry=1.0, steps=150)
    for option_type in ("call", "put"):
        payoff = vanilla_payoff(option_type, 105.0)
        assert lattice_price(payoff, model, american=True) >= lattice_price(payoff, model) - 1e-12

    # deep in-the-money put with positive rates carries an early-exercise premium
    put = vanilla_payoff("put", 130.0)
    assert lattice_price(put, model, american=True) > lattice_price(put, model) + 0.1

    small = BinomialModel(spot=100.0, up=0.05, down=-0.05, rate=0.01, steps=8)
    asian = asian_payoff("put", 102.0)
    assert path_lattice_price(asian, small, american=True) >= path_lattice_price(asian, small) - 1e-12


def test_binomial_converges_to_black_scholes():
    tree = binomial_option_price("call", spot=100.0, strike=100.0, rate=0.05, vol=0.2, time_to_expiry=1.0, steps=500)
    bs = bs_price("call", spot=100.0, strike=100.0, rate=0.05, vol=0.2, time_to_expiry=1.0)
    assert tree == pytest.approx(bs, abs=0.02)


def test_non_finite_payoff_is_numeric_overflow():
    model = BinomialModel(spot=100.0, up=0.1, down=-0.1, rate=0.0, steps=3)
    with pytest.raises(NumericOverflow):
        lattice_price(lambda s: math.inf, model)
    with pytest.raises(NumericOverflow):
        path_lattice_price(lambda path: math.nan, model)


def test_node_counts():
    model = BinomialModel(spot=100.0, up=0.1, down=-0.1, rate=0.0, steps=4)
    assert node_count(model, path_dependent=False) == 15
    assert node_count(model, path_dependent=True) == 31
    assert sum(len(level) for level in build_path_tree(model)) == 31
