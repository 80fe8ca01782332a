from __future__ import annotations

import math

from quantkit.services.errors import NumericOverflow
from quantkit.services.lattice import BinomialModel
from quantkit.services.payoffs import SpotPayoff


def _log_weight(n: int, k: int, log_q: float, log_1mq: float) -> float:
    """log of C(N,k) q^k (1-q)^(N-k); C(N,k) itself stops fitting a float near N = 1030."""
    return math.lgamma(n + 1) - math.lgamma(k + 1) - math.lgamma(n - k + 1) + k * log_q + (n - k) * log_1mq


def crr_price(payoff: SpotPayoff, spot: float, up: float, down: float, rate: float, steps: int) -> float:
    """Cox–Ross–Rubinstein closed form.

    (1+R)^-N · Σ_k C(N,k) q^k (1-q)^(N-k) · payoff(S0 (1+U)^k (1+D)^(N-k))

    Only valid for payoffs of the terminal spot; gives the same number as
    `lattice_price` with american=False. Weights and discounting are summed in
    log space.
    """

    model = BinomialModel(spot=spot, up=up, down=down, rate=rate, steps=steps)
    q = model.risk_neutral_probability
    n = model.steps

    # D < R < U keeps q strictly inside (0, 1).
    log_q = math.log(q)
    log_1mq = math.log1p(-q)
    log_disc = -n * math.log1p(model.rate)

    total = 0.0
    try:
        for k in range(n + 1):
            value = float(payoff(model.spot_at(n, k)))
            if value == 0.0:
                continue
            total += math.exp(_log_weight(n, k, log_q, log_1mq) + log_disc) * value
    except OverflowError as e:
        raise NumericOverflow(f"CRR sum overflowed at N={n}") from e

    if not math.isfinite(total):
        raise NumericOverflow(f"CRR sum is not finite at N={n}")
    return float(total)
