from __future__ import annotations

import logging
from decimal import Decimal

from vnpit.config import SolverProfile, get_settings
from vnpit.core.calculator import compute_with_constants, regime_for
from vnpit.core.errors import ConvergenceError, InputValidationError
from vnpit.core.models import GrossSolution, TaxInput, TaxResult
from vnpit.core.regimes import RegimeSelector
from vnpit.core.validate import ensure_valid, validate_tax_input

D = Decimal
_ZERO = D("0")

logger = logging.getLogger("vnpit.solver")


def solve_for_gross(
    target_net: Decimal | int,
    base_input: TaxInput,
    selector: RegimeSelector | None = None,
    profile: SolverProfile | None = None,
) -> GrossSolution:
    """Recover the gross income whose forward calculation nets ``target_net``.

    Net income is non-decreasing in gross, so an integer bisection over
    ``[0, upper]`` finds the smallest gross reaching the target. ``upper``
    starts at ``bound_multiplier`` x target and doubles while it still nets
    less than the target. Raises :class:`ConvergenceError` when the iteration
    budget runs out before the net is within ``tolerance`` of the target.
    """
    target = D(target_net)
    if not target.is_finite() or target < 0:
        raise InputValidationError(["negative_target_net"])
    if target != target.to_integral_value():
        raise InputValidationError(["target_net_not_whole_vnd"])
    ensure_valid(validate_tax_input(base_input))
    profile = profile or get_settings().solver_profile()
    constants = regime_for(base_input, selector)

    def forward(gross: D) -> TaxResult:
        return compute_with_constants(base_input.model_copy(update={"gross_income": gross}), constants)

    if target == 0:
        result = forward(_ZERO)
        return GrossSolution(
            target_net=target,
            gross=_ZERO,
            net=result.net_income,
            iterations=0,
            converged=True,
            result=result,
        )

    lo = _ZERO
    hi = max(D(1), target * profile.bound_multiplier)
    hi_result = forward(hi)
    expansions = 0
    while hi_result.net_income < target:
        if expansions >= profile.max_expansions:
            raise ConvergenceError(target, hi, hi_result.net_income, 0)
        lo = hi
        hi = hi * 2
        hi_result = forward(hi)
        expansions += 1

    best = hi_result
    iterations = 0
    while lo < hi and iterations < profile.max_iterations:
        mid = (lo + hi) // 2
        mid_result = forward(mid)
        iterations += 1
        if abs(mid_result.net_income - target) < abs(best.net_income - target):
            best = mid_result
        if mid_result.net_income < target:
            lo = mid + 1
        else:
            hi = mid

    if lo == hi:
        final = forward(lo)
        if abs(final.net_income - target) <= abs(best.net_income - target):
            best = final
    if abs(best.net_income - target) > profile.tolerance:
        logger.warning(
            "Gross solver stopped after %s iterations: target=%s best_gross=%s best_net=%s",
            iterations,
            target,
            best.gross_income,
            best.net_income,
        )
        raise ConvergenceError(target, best.gross_income, best.net_income, iterations)

    logger.debug("Solved gross %s for net %s in %s iterations", best.gross_income, target, iterations)
    return GrossSolution(
        target_net=target,
        gross=best.gross_income,
        net=best.net_income,
        iterations=iterations,
        converged=True,
        result=best,
    )


__all__ = ["solve_for_gross"]
