"""
IRR and NPV Calculations

Implements IRR using Newton-Raphson method, matching Excel's IRR function
for annual periodic cash flows. NPV for reporting is taken at a fixed 8%
reference rate.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from deal_analysis.calculations.errors import NumericDegeneracyError

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
TOLERANCE = 1e-5
DEFAULT_GUESS = 0.1
REFERENCE_DISCOUNT_RATE = 0.08

# Grid searched for a sign change when Newton-Raphson diverges
BRACKET_RATES = (
    -0.99, -0.9, -0.75, -0.5, -0.25, 0.0, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 100.0,
)


@dataclass(frozen=True)
class IRRResult:
    """Outcome of the IRR search. ``rate`` is in percent."""

    rate: float
    iterations: int
    converged: bool


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of cash flows.

    Args:
        cash_flows: Array of cash flows, period 0 first (negative = outflow)
        discount_rate: Annual discount rate (e.g., 0.10 for 10%)

    Returns:
        NPV value
    """
    npv = 0.0
    for period, cf in enumerate(cash_flows):
        npv += cf / ((1 + discount_rate) ** period)
    return npv


def calculate_reference_npv(cash_flows: Sequence[float]) -> float:
    """NPV at the fixed 8% reference rate used for all reported figures."""
    return calculate_npv(cash_flows, REFERENCE_DISCOUNT_RATE)


def _npv_derivative(cash_flows: Sequence[float], rate: float) -> float:
    """Calculate derivative of NPV with respect to rate (for Newton-Raphson)."""
    dnpv = 0.0
    for period, cf in enumerate(cash_flows):
        dnpv -= (period * cf) / ((1 + rate) ** (period + 1))
    return dnpv


def _newton_step(cash_flows: Sequence[float], rate: float) -> Optional[float]:
    """
    One Newton-Raphson update, or None once the rate drops to -100% or
    below or NPV overflows.
    """
    if rate <= -1:
        return None

    try:
        npv = calculate_npv(cash_flows, rate)
        dnpv = _npv_derivative(cash_flows, rate)
    except (OverflowError, ZeroDivisionError):
        return None

    if not (math.isfinite(npv) and math.isfinite(dnpv)):
        return None

    if dnpv == 0:
        raise NumericDegeneracyError("irr", f"NPV derivative is zero at rate {rate}")

    new_rate = rate - npv / dnpv

    if not math.isfinite(new_rate) or new_rate <= -1:
        return None

    return new_rate


def _safe_npv(cash_flows: Sequence[float], rate: float) -> Optional[float]:
    try:
        npv = calculate_npv(cash_flows, rate)
    except (OverflowError, ZeroDivisionError):
        return None
    return npv if math.isfinite(npv) else None


def _find_bracket(
    cash_flows: Sequence[float], guess: float
) -> Optional[Tuple[float, float, float]]:
    """
    Adjacent grid rates where NPV changes sign, closest to the guess.

    Returns:
        (low rate, NPV at low rate, high rate), or None if NPV never changes sign
    """
    points = [(rate, _safe_npv(cash_flows, rate)) for rate in BRACKET_RATES]
    points = [(rate, npv) for rate, npv in points if npv is not None]

    brackets = [
        (low, npv_low, high)
        for (low, npv_low), (high, npv_high) in zip(points, points[1:])
        if (npv_low < 0) != (npv_high < 0)
    ]
    if not brackets:
        return None

    def distance(bracket):
        low, _, high = bracket
        if low <= guess <= high:
            return 0.0
        return min(abs(low - guess), abs(high - guess))

    return min(brackets, key=distance)


def _bisect(
    cash_flows: Sequence[float], low: float, npv_low: float, high: float
) -> Tuple[float, int]:
    iterations = 0
    while high - low >= TOLERANCE and iterations < MAX_ITERATIONS:
        iterations += 1
        mid = (low + high) / 2
        npv_mid = calculate_npv(cash_flows, mid)
        if npv_mid == 0:
            return mid, iterations
        if (npv_mid < 0) == (npv_low < 0):
            low, npv_low = mid, npv_mid
        else:
            high = mid
    return (low + high) / 2, iterations


def _solve_by_bisection(
    cash_flows: Sequence[float], guess: float, last_rate: float, iterations: int
) -> IRRResult:
    bracket = _find_bracket(cash_flows, guess)

    if bracket is None:
        logger.warning(
            f"IRR did not converge: Newton-Raphson diverged and NPV never changes sign, "
            f"returning best effort {last_rate * 100:.4f}%"
        )
        return IRRResult(rate=last_rate * 100, iterations=iterations, converged=False)

    low, npv_low, high = bracket
    rate, steps = _bisect(cash_flows, low, npv_low, high)
    logger.debug(f"IRR found by bisection over [{low}, {high}] in {steps} steps")
    return IRRResult(rate=rate * 100, iterations=iterations + steps, converged=True)


def solve_irr(cash_flows: Sequence[float], guess: float = DEFAULT_GUESS) -> IRRResult:
    """
    Calculate IRR (Internal Rate of Return) using Newton-Raphson method.

    The search stops once a step moves the rate by less than TOLERANCE.
    If MAX_ITERATIONS is reached first, the last rate is still returned,
    flagged with ``converged=False``.

    If an iteration leaves the range where NPV is finite (overflow, or a
    rate at or below -100%), the root is bisected instead over a grid
    bracket where NPV changes sign. With no such bracket the last finite
    rate is returned with ``converged=False``.

    Args:
        cash_flows: Array of annual cash flows, period 0 first
        guess: Initial guess for rate (default 0.1 = 10%)

    Returns:
        IRRResult with the rate in percent

    Raises:
        NumericDegeneracyError: If there are fewer than two cash flows or
            the NPV derivative vanishes
    """
    if len(cash_flows) < 2:
        raise NumericDegeneracyError("irr", "at least 2 cash flows required")

    rate = guess

    for iteration in range(1, MAX_ITERATIONS + 1):
        new_rate = _newton_step(cash_flows, rate)

        if new_rate is None:
            logger.debug(f"Newton-Raphson left the finite range from rate {rate}")
            return _solve_by_bisection(cash_flows, guess, rate, iteration)

        if abs(new_rate - rate) < TOLERANCE:
            return IRRResult(rate=new_rate * 100, iterations=iteration, converged=True)

        rate = new_rate

    logger.warning(
        f"IRR did not converge after {MAX_ITERATIONS} iterations, "
        f"returning best effort {rate * 100:.4f}%"
    )
    return IRRResult(rate=rate * 100, iterations=MAX_ITERATIONS, converged=False)


def calculate_irr(cash_flows: Sequence[float], guess: float = DEFAULT_GUESS) -> float:
    """IRR in percent (best effort if the search did not converge)."""
    return solve_irr(cash_flows, guess).rate


def calculate_multiple(cash_flows: List[float]) -> float:
    """
    Calculate equity multiple.

    Args:
        cash_flows: Array of cash flows (investments are negative)

    Returns:
        Multiple (e.g., 2.0 = 2.0x return)
    """
    total_inflows = sum(cf for cf in cash_flows if cf > 0)
    total_outflows = abs(sum(cf for cf in cash_flows if cf < 0))

    if total_outflows == 0:
        raise NumericDegeneracyError("multiple", "no investment (outflows) found")

    return total_inflows / total_outflows
