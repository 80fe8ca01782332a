"""Binomial lattice engine.

Two addressing schemes, both stored as one numpy array per time step:

* recombining, path-independent: node (step, up_count), n + 1 states at step n;
* non-recombining, path-dependent: node (step, mask), 2**n states at step n.
  Bit i of the mask is set when move i + 1 went up. The down child of mask m
  keeps index m and the up child lands on m + 2**n, so the children of a whole
  level are the two halves of the next level's array.

Backward induction is V = (q·V_up + (1 - q)·V_down) / (1 + R) with
q = (R - D) / (U - D); American exercise takes max(payoff(node), V).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np

from quantkit.services.errors import (
    InvalidModelParameter,
    NumericOverflow,
    PreconditionViolated,
    UndefinedRiskNeutralProbability,
)
from quantkit.services.payoffs import PathPayoff, SpotPayoff, vanilla_payoff

logger = logging.getLogger(__name__)

DEFAULT_MAX_PATH_STEPS = 20


@dataclass(frozen=True)
class BinomialModel:
    """S0, per-step up/down returns U and D, per-step risk-free rate R, N steps."""

    spot: float
    up: float
    down: float
    rate: float
    steps: int

    def __post_init__(self) -> None:
        for name in ("spot", "up", "down", "rate"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidModelParameter(f"{name} must be finite")
        if self.up == self.down:
            raise UndefinedRiskNeutralProbability("up and down factors are equal; q = (R-D)/(U-D) is undefined")
        if self.spot <= 0:
            raise InvalidModelParameter("spot must be > 0")
        if self.down <= -1.0:
            raise InvalidModelParameter("down must be > -1")
        if not isinstance(self.steps, int) or isinstance(self.steps, bool) or self.steps < 1:
            raise InvalidModelParameter("steps must be an integer >= 1")
        if not (self.down < self.rate < self.up):
            raise PreconditionViolated(
                f"no-arbitrage requires down < rate < up (got D={self.down}, R={self.rate}, U={self.up})"
            )

    @classmethod
    def from_volatility(
        cls,
        *,
        spot: float,
        rate: float,
        vol: float,
        time_to_expiry: float,
        steps: int,
    ) -> "BinomialModel":
        """Cox–Ross–Rubinstein parametrization: 1 + U = e^{σ√dt}, 1 + D = 1 / (1 + U)."""
        if vol <= 0:
            raise InvalidModelParameter("vol must be > 0")
        if time_to_expiry <= 0:
            raise InvalidModelParameter("time_to_expiry must be > 0")
        if steps < 1:
            raise InvalidModelParameter("steps must be >= 1")

        dt = time_to_expiry / steps
        growth = math.exp(vol * math.sqrt(dt))
        return cls(
            spot=spot,
            up=growth - 1.0,
            down=1.0 / growth - 1.0,
            rate=math.exp(rate * dt) - 1.0,
            steps=int(steps),
        )

    @property
    def risk_neutral_probability(self) -> float:
        return (self.rate - self.down) / (self.up - self.down)

    @property
    def discount(self) -> float:
        return 1.0 / (1.0 + self.rate)

    def spot_at(self, step: int, up_count: int) -> float:
        return self.spot * (1.0 + self.up) ** up_count * (1.0 + self.down) ** (step - up_count)


@dataclass(frozen=True)
class PathNode:
    step: int
    mask: int
    path: tuple[float, ...]

    @property
    def spot(self) -> float:
        return self.path[-1]

    @property
    def up_count(self) -> int:
        return bin(self.mask).count("1")


def node_count(model: BinomialModel, *, path_dependent: bool) -> int:
    n = model.steps
    if path_dependent:
        return 2 ** (n + 1) - 1
    return (n + 1) * (n + 2) // 2


def _level_spots(model: BinomialModel, step: int) -> np.ndarray:
    k = np.arange(step + 1, dtype=float)
    return model.spot * (1.0 + model.up) ** k * (1.0 + model.down) ** (step - k)


def _ensure_finite(values: np.ndarray, step: int) -> None:
    if not np.all(np.isfinite(values)):
        raise NumericOverflow(f"non-finite lattice value at step {step}")


def lattice_price(payoff: SpotPayoff, model: BinomialModel, *, american: bool = False) -> float:
    """Recombining tree price of a payoff that depends on the node spot only."""

    q = model.risk_neutral_probability
    disc = model.discount

    with np.errstate(over="ignore", invalid="ignore"):
        values = np.array([float(payoff(float(s))) for s in _level_spots(model, model.steps)], dtype=float)
        _ensure_finite(values, model.steps)

        for step in range(model.steps - 1, -1, -1):
            values = disc * (q * values[1:] + (1.0 - q) * values[:-1])
            if american:
                intrinsic = np.array([float(payoff(float(s))) for s in _level_spots(model, step)], dtype=float)
                values = np.maximum(intrinsic, values)
            _ensure_finite(values, step)

    logger.debug("lattice_price: steps=%s q=%s american=%s value=%s", model.steps, q, american, values[0])
    return float(values[0])


def _check_path_steps(model: BinomialModel, max_steps: int) -> None:
    if model.steps > max_steps:
        raise PreconditionViolated(
            f"path-dependent tree with {model.steps} steps needs {2 ** (model.steps + 1) - 1} nodes; "
            f"max_steps is {max_steps}"
        )


def build_path_tree(model: BinomialModel, *, max_steps: int = DEFAULT_MAX_PATH_STEPS) -> list[list[PathNode]]:
    """Every node of the non-recombining tree, level by level, indexed by mask."""

    _check_path_steps(model, max_steps)
    up_factor = 1.0 + model.up
    down_factor = 1.0 + model.down

    levels: list[list[PathNode]] = [[PathNode(0, 0, (float(model.spot),))]]
    for step in range(model.steps):
        prev = levels[-1]
        width = len(prev)
        down_nodes = [PathNode(step + 1, node.mask, node.path + (node.spot * down_factor,)) for node in prev]
        up_nodes = [PathNode(step + 1, node.mask + width, node.path + (node.spot * up_factor,)) for node in prev]
        levels.append(down_nodes + up_nodes)
    return levels


def _path_values(payoff: PathPayoff, nodes: Sequence[PathNode]) -> np.ndarray:
    return np.array([float(payoff(node.path)) for node in nodes], dtype=float)


def path_lattice_price(
    payoff: PathPayoff,
    model: BinomialModel,
    *,
    american: bool = False,
    max_steps: int = DEFAULT_MAX_PATH_STEPS,
) -> float:
    """Full-tree price of a payoff that sees the whole spot path.

    Memory and time grow as 2**N; `max_steps` caps N.
    """

    tree = build_path_tree(model, max_steps=max_steps)
    q = model.risk_neutral_probability
    disc = model.discount
    logger.debug("path_lattice_price: steps=%s nodes=%s", model.steps, node_count(model, path_dependent=True))

    with np.errstate(over="ignore", invalid="ignore"):
        values = _path_values(payoff, tree[-1])
        _ensure_finite(values, model.steps)

        for step in range(model.steps - 1, -1, -1):
            half = len(tree[step])
            values = disc * (q * values[half:] + (1.0 - q) * values[:half])
            if american:
                values = np.maximum(_path_values(payoff, tree[step]), values)
            _ensure_finite(values, step)

    return float(values[0])


def binomial_option_price(
    option_type: Literal["call", "put"],
    *,
    spot: float,
    strike: float,
    rate: float,
    vol: float,
    time_to_expiry: float,
    steps: int = 200,
    american: bool = False,
) -> float:
    """Vanilla option on a CRR tree built from an annualized vol."""

    model = BinomialModel.from_volatility(spot=spot, rate=rate, vol=vol, time_to_expiry=time_to_expiry, steps=steps)
    return lattice_price(vanilla_payoff(option_type, strike), model, american=american)
