from __future__ import annotations

import logging

from fastapi import HTTPException

from quantkit.services.errors import ConvergenceError, PreconditionViolated, QuantKitError

logger = logging.getLogger(__name__)


def http_error(exc: QuantKitError) -> HTTPException:
    """Map a library failure to an HTTP error.

    Bad inputs are the caller's fault (400); a solver or lattice that could not
    produce a finite, converged number is 422.
    """
    if isinstance(exc, PreconditionViolated):
        status = 400
    elif isinstance(exc, ConvergenceError):
        status = 422
    else:
        status = 400
    logger.warning("%s -> HTTP %s: %s", type(exc).__name__, status, exc)
    return HTTPException(status_code=status, detail=f"{type(exc).__name__}: {exc}")
