import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from vnpit import __version__
from vnpit.config import get_settings
from vnpit.core.aggregator import aggregate
from vnpit.core.calculator import compute_tax
from vnpit.core.errors import ConfigurationError, ConvergenceError, InputValidationError
from vnpit.core.models import (
    GrossSolution,
    IncomeSource,
    MultiSourceResult,
    PersonContext,
    TaxInput,
    TaxResult,
)
from vnpit.core.regimes import RegimeSelector, default_selector, describe
from vnpit.core.solver import solve_for_gross
from vnpit.lifespan import build_application_lifespan
from vnpit.tax.digital_assets import (
    DigitalAssetTaxResult,
    DigitalAssetTransaction,
    compute_digital_asset_tax,
)
from vnpit.tax.foreigner import ForeignerTaxInput, ForeignerTaxResult, compute_foreigner_tax
from vnpit.tax.household import (
    HouseholdBusinessInput,
    HouseholdBusinessResult,
    compute_household_business,
)
from vnpit.tax.inheritance import (
    InheritanceGiftInput,
    InheritanceGiftResult,
    compute_inheritance_gift_tax,
)
from vnpit.tax.severance import SeveranceInput, SeveranceResult, compute_severance

logger = logging.getLogger("vnpit.api")


async def _announce(app: FastAPI) -> None:
    settings = get_settings()
    logger.info(
        "Vietnam PIT engine ready; version=%s default_region=%s solver_tolerance=%s",
        settings.build_version,
        settings.default_region,
        settings.solver_tolerance,
    )


app = FastAPI(
    title="Vietnam PIT Engine",
    version=__version__,
    description="Personal income tax for Vietnam under every regime from the 2013 deductions to the 2026 law. "
    "Every request carries its own reference_date.",
    lifespan=build_application_lifespan("api", startup_hook=_announce),
)
router = APIRouter()


class ComputeRequest(TaxInput):
    pass


class GrossFromNetRequest(TaxInput):
    gross_income: Decimal = Decimal("0")
    target_net: Decimal


class MultiSourceRequest(BaseModel):
    person: PersonContext
    sources: list[IncomeSource]


class DigitalAssetRequest(BaseModel):
    transactions: list[DigitalAssetTransaction]


@app.exception_handler(InputValidationError)
async def _input_error(request: Request, exc: InputValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"ok": False, "issues": exc.issues})


@app.exception_handler(ConvergenceError)
async def _convergence_error(request: Request, exc: ConvergenceError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "ok": False,
            "converged": exc.converged,
            "target_net": int(exc.target_net),
            "best_gross": int(exc.best_gross),
            "best_net": int(exc.best_net),
            "iterations": exc.iterations,
        },
    )


@app.exception_handler(ConfigurationError)
async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Regime configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"ok": False, "error": str(exc)})


def _selector() -> RegimeSelector:
    return getattr(app.state, "selector", default_selector())


@app.get("/health")
def health():
    settings = getattr(app.state, "settings", get_settings())
    return {
        "ok": True,
        "build": {
            "version": settings.build_version,
            "sha": settings.build_sha,
        },
        "regimes": [regime.code for regime in _selector().regimes()],
    }


@router.get("/regimes")
def regimes(reference_date: date | None = None):
    selector = _selector()
    if reference_date is None:
        return {"regimes": [describe(regime) for regime in selector.regimes()]}
    active = {}
    for category in sorted(selector.table.categories()):
        active[category] = selector.resolve(reference_date, category).code
    salary = selector.resolve(reference_date, "salary")
    return {"reference_date": reference_date.isoformat(), "salary": describe(salary), "by_category": active}


@router.post("/tax/compute", response_model=TaxResult)
def compute(req: ComputeRequest):
    return compute_tax(req, _selector())


@router.post("/tax/gross-from-net", response_model=GrossSolution)
def gross_from_net(req: GrossFromNetRequest):
    base = TaxInput(**req.model_dump(exclude={"target_net"}))
    return solve_for_gross(req.target_net, base, _selector())


@router.post("/tax/multi-source", response_model=MultiSourceResult)
def multi_source(req: MultiSourceRequest):
    return aggregate(req.sources, req.person, _selector())


@router.post("/tax/severance", response_model=SeveranceResult)
def severance(req: SeveranceInput):
    return compute_severance(req)


@router.post("/tax/foreigner", response_model=ForeignerTaxResult)
def foreigner(req: ForeignerTaxInput):
    return compute_foreigner_tax(req, _selector())


@router.post("/tax/household-business", response_model=HouseholdBusinessResult)
def household_business(req: HouseholdBusinessInput):
    return compute_household_business(req, _selector())


@router.post("/tax/inheritance-gift", response_model=InheritanceGiftResult)
def inheritance_gift(req: InheritanceGiftInput):
    return compute_inheritance_gift_tax(req, _selector())


@router.post("/tax/digital-assets", response_model=DigitalAssetTaxResult)
def digital_assets(req: DigitalAssetRequest):
    return compute_digital_asset_tax(req.transactions, _selector())


app.include_router(router)
