from datetime import date, datetime

import pytest

from quantkit.services.cashflows import CashFlow, CashFlowSeries, irr, npv, npv_derivative
from quantkit.services.errors import (
    DerivativeNearZero,
    InvalidModelParameter,
    MaxIterationsExceeded,
    PreconditionViolated,
)


@pytest.fixture()
def series():
    return CashFlowSeries.from_pairs(
        [
            ("2020-01-01", -50000.0),
            ("2020-01-15", 500.0),
            ("2020-01-31", 50000.0),
        ]
    )


def test_from_pairs_sorts_and_merges_same_date():
    s = CashFlowSeries.from_pairs(
        [
            ("2020-01-31", 10.0),
            (date(2020, 1, 1), -5.0),
            (datetime(2020, 1, 31, 12, 30), 2.0),
        ]
    )
    assert len(s) == 2
    assert s.start == date(2020, 1, 1)
    assert [cf.amount for cf in s] == [-5.0, 12.0]
    assert s.year_fractions() == [0.0, 30 / 365]


def test_direct_construction_is_sorted_and_merged_too(series):
    direct = CashFlowSeries(
        (
            CashFlow(date(2020, 1, 31), 50000.0),
            CashFlow(date(2020, 1, 1), -50000.0),
            CashFlow(date(2020, 1, 15), 200.0),
            CashFlow(date(2020, 1, 15), 300.0),
        )
    )
    assert direct == series
    assert min(direct.year_fractions()) == 0.0
    assert npv(direct, 0.05) == pytest.approx(npv(series, 0.05), rel=1e-15)


def test_npv_known_value(series):
    assert npv(series, 0.05) == pytest.approx(298.96, abs=0.01)


def test_npv_of_empty_series_is_zero():
    assert npv(CashFlowSeries(), 0.05) == 0.0
    assert npv_derivative(CashFlowSeries(), 0.05) == 0.0


def test_npv_rejects_rate_at_or_below_minus_one(series):
    with pytest.raises(InvalidModelParameter):
        npv(series, -1.0)


def test_npv_derivative_matches_finite_difference(series):
    h = 1e-6
    fd = (npv(series, 0.05 + h) - npv(series, 0.05 - h)) / (2 * h)
    assert npv_derivative(series, 0.05) == pytest.approx(fd, rel=1e-5)


def test_irr_zeroes_npv(series):
    res = irr(series, seed=0.1)
    assert 0.12 < res.root < 0.14
    assert abs(npv(series, res.root)) < 1e-6


def test_irr_requires_sign_change():
    s = CashFlowSeries.from_pairs([("2020-01-01", 100.0), ("2021-01-01", 50.0)])
    with pytest.raises(PreconditionViolated):
        irr(s)


@pytest.fixture()
def two_root_series():
    # -100 + 230/x - 132/x**2 with x = 1 + r: roots at r = 10% and r = 20%.
    return CashFlowSeries.from_pairs(
        [
            ("2021-01-01", -100.0),
            ("2022-01-01", 230.0),
            ("2023-01-01", -132.0),
        ]
    )


def test_irr_finds_each_root_of_a_two_root_curve(two_root_series):
    assert irr(two_root_series, seed=0.0).root == pytest.approx(0.10, abs=1e-8)
    assert irr(two_root_series, seed=0.3).root == pytest.approx(0.20, abs=1e-8)


def test_irr_seeded_on_the_npv_maximum_is_reported_not_returned(two_root_series):
    extremum = 264.0 / 230.0 - 1.0
    with pytest.raises((DerivativeNearZero, MaxIterationsExceeded)):
        irr(two_root_series, seed=extremum)


@pytest.mark.parametrize("offset", [-1e-3, 1e-3, -1e-4, 1e-4, -1e-6, 1e-6])
def test_irr_seeded_near_the_npv_maximum_fails_as_convergence(two_root_series, offset):
    extremum = 264.0 / 230.0 - 1.0
    try:
        res = irr(two_root_series, seed=extremum + offset)
    except (DerivativeNearZero, MaxIterationsExceeded) as exc:
        if isinstance(exc, MaxIterationsExceeded):
            assert exc.last_estimate is not None
        return
    assert res.root == pytest.approx(0.10, abs=1e-8) or res.root == pytest.approx(0.20, abs=1e-8)


def test_irr_seed_must_be_above_minus_one(two_root_series):
    with pytest.raises(InvalidModelParameter):
        irr(two_root_series, seed=-1.0)
