from vnpit.core.aggregator import aggregate
from vnpit.core.calculator import compute_tax
from vnpit.core.errors import (
    ConfigurationError,
    ConvergenceError,
    InputValidationError,
    TaxEngineError,
)
from vnpit.core.models import (
    IncomeSource,
    PersonContext,
    TaxInput,
    TaxResult,
    create_income_source,
)
from vnpit.core.regimes import RegimeSelector, default_selector
from vnpit.core.solver import solve_for_gross

__all__ = [
    "aggregate",
    "compute_tax",
    "solve_for_gross",
    "RegimeSelector",
    "default_selector",
    "TaxInput",
    "TaxResult",
    "IncomeSource",
    "PersonContext",
    "create_income_source",
    "TaxEngineError",
    "InputValidationError",
    "ConfigurationError",
    "ConvergenceError",
]
