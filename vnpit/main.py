import argparse
import logging
import os
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Literal

if __package__ in (None, ""):
    sys.path.append(str(Path(__file__).resolve().parent.parent))

from rich.console import Console
from rich.table import Table

from vnpit.config import get_settings
from vnpit.core.calculator import compute_tax
from vnpit.core.errors import ConvergenceError, TaxEngineError
from vnpit.core.models import (
    GrossSolution,
    TaxInput,
    TaxResult,
    default_insurance_options,
    no_insurance_options,
)
from vnpit.core.regimes import default_selector
from vnpit.core.solver import solve_for_gross

ColorPreference = Literal["auto", "always", "never"]


def _resolve_color_preference(pref: ColorPreference) -> ColorPreference:
    if pref == "auto" and os.getenv("NO_COLOR"):
        return "never"
    return pref


def _get_console(pref: ColorPreference) -> Console:
    resolved = _resolve_color_preference(pref)
    if resolved == "never":
        return Console(no_color=True, highlight=False)
    return Console(force_terminal=resolved == "always" or None)


def _vnd(value: Decimal) -> str:
    return f"{int(value):,}"


def _money(text: str) -> Decimal:
    try:
        value = Decimal(text.replace(",", "").replace("_", ""))
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not an amount: {text}") from exc
    return value


def _reference_date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {text}") from exc


def _build_input(args: argparse.Namespace, gross: Decimal) -> TaxInput:
    return TaxInput(
        gross_income=gross,
        reference_date=args.date,
        dependents=args.dependents,
        has_insurance=not args.no_insurance,
        insurance_options=no_insurance_options() if args.no_insurance else default_insurance_options(),
        insurance_salary=args.insurance_salary,
        region=args.region,
        other_deductions=args.other_deductions,
        pension_contribution=args.pension,
        charitable_contribution=args.charity,
        period=args.period,
    )


def _print_result(console: Console, result: TaxResult, title: str) -> None:
    summary = Table(title=title, expand=False)
    summary.add_column("Item")
    summary.add_column("VND", justify="right")
    summary.add_row("Regime", result.regime)
    summary.add_row("Gross income", _vnd(result.gross_income))
    summary.add_row("Insurance (BHXH/BHYT/BHTN)", _vnd(result.insurance_deduction))
    summary.add_row("Personal deduction", _vnd(result.personal_deduction))
    summary.add_row("Dependent deduction", _vnd(result.dependent_deduction))
    summary.add_row("Other deductions", _vnd(result.other_deductions))
    summary.add_row("Taxable income", _vnd(result.taxable_income))
    summary.add_row("Tax", _vnd(result.tax_amount))
    summary.add_row("Net income", _vnd(result.net_income))
    summary.add_row("Effective rate", f"{result.effective_rate * 100:.2f}%")
    console.print(summary)

    if result.tax_breakdown:
        brackets = Table(title="Tax by bracket", expand=False)
        for column in ("#", "From", "To", "Rate", "Taxable", "Tax"):
            brackets.add_column(column, justify="right")
        for row in result.tax_breakdown:
            brackets.add_row(
                str(row.bracket),
                _vnd(row.lower),
                _vnd(row.upper) if row.upper is not None else "-",
                f"{row.rate * 100:g}%",
                _vnd(row.taxable_amount),
                _vnd(row.tax_amount),
            )
        console.print(brackets)


def _cmd_compute(args: argparse.Namespace, console: Console) -> int:
    result = compute_tax(_build_input(args, args.amount), default_selector())
    _print_result(console, result, f"PIT for {args.date.isoformat()} ({args.period})")
    return 0


def _cmd_gross(args: argparse.Namespace, console: Console) -> int:
    try:
        solution: GrossSolution = solve_for_gross(args.amount, _build_input(args, Decimal("0")))
    except ConvergenceError as exc:
        console.print(
            f"[red]Did not converge[/red]: best gross {_vnd(exc.best_gross)} gives net {_vnd(exc.best_net)}"
        )
        return 2
    console.print(
        f"Gross {_vnd(solution.gross)} nets {_vnd(solution.net)} "
        f"(target {_vnd(solution.target_net)}, {solution.iterations} iterations)"
    )
    _print_result(console, solution.result, f"Gross-up for {args.date.isoformat()} ({args.period})")
    return 0


def _cmd_serve(args: argparse.Namespace, console: Console) -> int:
    import uvicorn

    uvicorn.run("vnpit.api.http:app", host=args.host, port=args.port, reload=False)
    return 0


def _add_tax_arguments(parser: argparse.ArgumentParser) -> None:
    settings = get_settings()
    parser.add_argument("amount", type=_money, help="Gross income (compute) or target net income (gross).")
    parser.add_argument("--date", type=_reference_date, required=True, help="Reference date, YYYY-MM-DD.")
    parser.add_argument("--dependents", type=int, default=0)
    parser.add_argument("--region", type=int, choices=[1, 2, 3, 4], default=settings.default_region)
    parser.add_argument("--period", choices=["monthly", "yearly"], default="monthly")
    parser.add_argument("--no-insurance", action="store_true", help="Skip mandatory insurance.")
    parser.add_argument("--insurance-salary", type=_money, default=None, help="Salary declared for insurance.")
    parser.add_argument("--other-deductions", type=_money, default=Decimal("0"))
    parser.add_argument("--pension", type=_money, default=Decimal("0"), help="Voluntary pension contribution.")
    parser.add_argument("--charity", type=_money, default=Decimal("0"), help="Charitable contribution.")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vnpit",
        description="Vietnamese personal income tax calculator.",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output preference (default: auto).",
    )
    parser.add_argument(
        "--no-color",
        dest="color",
        action="store_const",
        const="never",
        help="Alias for --color never.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine decisions to stderr.")
    commands = parser.add_subparsers(dest="command", required=True)

    compute = commands.add_parser("compute", help="Tax, insurance and net income from gross income.")
    _add_tax_arguments(compute)
    compute.set_defaults(handler=_cmd_compute)

    gross = commands.add_parser("gross", help="Gross income needed to reach a net income.")
    _add_tax_arguments(gross)
    gross.set_defaults(handler=_cmd_gross)

    serve = commands.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(handler=_cmd_serve)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s - %(message)s",
    )
    console = _get_console(args.color)
    try:
        return args.handler(args, console)
    except TaxEngineError as exc:
        console.print(f"[red]ERROR:[/red] {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
