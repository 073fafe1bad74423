from __future__ import annotations

from decimal import Decimal


class TaxEngineError(Exception):
    """Base class for every failure raised by the computation core."""


class InputValidationError(TaxEngineError, ValueError):
    def __init__(self, issues: list[str]):
        self.issues = list(issues)
        super().__init__(f"Invalid tax input: {', '.join(self.issues)}")


class ConfigurationError(TaxEngineError):
    """The regime table is incomplete or inconsistent. A build defect, not a user error."""


class ConvergenceError(TaxEngineError):
    def __init__(
        self,
        target_net: Decimal,
        best_gross: Decimal,
        best_net: Decimal,
        iterations: int,
    ):
        self.target_net = target_net
        self.best_gross = best_gross
        self.best_net = best_net
        self.iterations = iterations
        self.converged = False
        super().__init__(
            f"Gross solver did not converge after {iterations} iterations: "
            f"target net {target_net}, best gross {best_gross} gives net {best_net}"
        )


__all__ = [
    "TaxEngineError",
    "InputValidationError",
    "ConfigurationError",
    "ConvergenceError",
]
