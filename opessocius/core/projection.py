from __future__ import annotations

import math
from typing import Any, Dict, Iterator, List, Tuple

from pydantic import BaseModel, field_validator


# -----------------------------
# Inputs
# -----------------------------

CONTRIBUTION_INTERVALS = (1, 3, 12)

# longest horizon the calculator projects
MAX_YEARS = 50

# balances and amounts saturate here so results stay finite
MAX_AMOUNT = 1e18

# contributions per year -> months between contributions
FREQUENCY_TO_INTERVAL = {12: 1, 4: 3, 1: 12}

FREQUENCY_NAMES = {1: "Monthly", 3: "Quarterly", 12: "Yearly"}


def _non_negative(value: Any) -> float:
    """Coerce user input to a finite float >= 0; anything else becomes 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _capped(amount: float) -> float:
    return min(amount, MAX_AMOUNT)


def interval_from_frequency(per_year: Any) -> int:
    """Map contributions per year (12, 4, 1) to months between contributions."""
    count = int(_non_negative(per_year))
    if count == 0:
        # nothing selected on the form -> monthly
        return 1
    return FREQUENCY_TO_INTERVAL.get(count, 12)


class ProjectionInput(BaseModel):
    """Calculator form values. Bad numbers are zeroed instead of rejected."""

    initialAmount: float = 0.0
    years: int = 0
    monthlyRate: float = 0.0
    recurringAmount: float = 0.0
    contributionIntervalMonths: int = 1

    @field_validator("initialAmount", "monthlyRate", "recurringAmount", mode="before")
    @classmethod
    def _sanitize_amount(cls, value: Any) -> float:
        return _capped(_non_negative(value))

    @field_validator("years", mode="before")
    @classmethod
    def _sanitize_years(cls, value: Any) -> int:
        return int(min(_non_negative(value), MAX_YEARS))

    @field_validator("contributionIntervalMonths", mode="before")
    @classmethod
    def _sanitize_interval(cls, value: Any) -> int:
        if value is None or value == "":
            return 1
        months = int(_non_negative(value))
        return months if months in CONTRIBUTION_INTERVALS else 12

    @property
    def total_months(self) -> int:
        return self.years * 12

    @property
    def frequency_name(self) -> str:
        return FREQUENCY_NAMES[self.contributionIntervalMonths]


# -----------------------------
# Outputs
# -----------------------------


class ProjectionPoint(BaseModel):
    month: int
    year: int
    balance: float
    contributions: float


class ProjectionResult(BaseModel):
    # compound is the real account; simple is the "no interest on interest" reference line
    compound: List[ProjectionPoint]
    simple: List[ProjectionPoint]
    finalBalance: float
    totalContributions: float
    interestEarned: float


class PreviewPoint(BaseModel):
    month: int
    value: float


def monthly_points(inputs: ProjectionInput) -> Iterator[Tuple[ProjectionPoint, ProjectionPoint]]:
    """
    Yield (compound, simple) points for month 0 and every month after it.

    Order of operations (per month):
      1) Apply the monthly rate to the compound balance.
      2) Add simple interest on the principal-to-date to the reference balance.
      3) On contribution months, add the recurring amount to both series.
    """
    rate = inputs.monthlyRate
    recurring = inputs.recurringAmount
    interval = inputs.contributionIntervalMonths

    balance = inputs.initialAmount
    contributions = inputs.initialAmount
    simple_principal = inputs.initialAmount
    simple_balance = inputs.initialAmount

    for month in range(inputs.total_months + 1):
        if month > 0:
            balance = _capped(balance * (1 + rate))
            simple_balance = _capped(simple_balance + simple_principal * rate)

            if recurring > 0 and month % interval == 0:
                balance = _capped(balance + recurring)
                contributions = _capped(contributions + recurring)
                simple_principal = _capped(simple_principal + recurring)
                simple_balance = _capped(simple_balance + recurring)

        year = month // 12
        yield (
            ProjectionPoint(month=month, year=year, balance=balance, contributions=contributions),
            ProjectionPoint(month=month, year=year, balance=simple_balance, contributions=simple_principal),
        )


def project_investment(inputs: ProjectionInput) -> ProjectionResult:
    """Month-by-month projection, snapshotted at every 12th month and at the final month."""
    total_months = inputs.total_months
    compound: List[ProjectionPoint] = []
    simple: List[ProjectionPoint] = []

    for compound_point, simple_point in monthly_points(inputs):
        if compound_point.month % 12 == 0 or compound_point.month == total_months:
            compound.append(compound_point)
            simple.append(simple_point)

    final = compound[-1]
    return ProjectionResult(
        compound=compound,
        simple=simple,
        finalBalance=final.balance,
        totalContributions=final.contributions,
        interestEarned=final.balance - final.contributions,
    )


def growth_preview(initial: Any, monthly_growth_percent: Any, months: int = 60) -> List[PreviewPoint]:
    """Pure compounding curve for the landing-page chart (no contributions)."""
    value = _capped(_non_negative(initial))
    rate = _non_negative(monthly_growth_percent) / 100
    months = max(0, int(months))

    points: List[PreviewPoint] = []
    for month in range(months + 1):
        points.append(PreviewPoint(month=month, value=value))
        value = _capped(value * (1 + rate))
    return points


def format_currency(amount: float) -> str:
    """Whole euros with thousands separators, e.g. -> '€12,682'."""
    if math.isnan(amount):
        return "€0"
    if math.isinf(amount):
        return "-€∞" if amount < 0 else "€∞"
    rounded = round(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}€{abs(rounded):,}"


def year_label(point: ProjectionPoint) -> str:
    return "Now" if point.month == 0 else f"Year {round(point.month / 12)}"


def yearly_breakdown(result: ProjectionResult) -> List[Dict[str, Any]]:
    return [{"label": year_label(point), "balance": point.balance} for point in result.compound]


def rate_label(monthly_rate: float) -> str:
    # 2% a month is the conservative option on the calculator form
    percent = monthly_rate * 100
    risk = "(Without Risk)" if math.isclose(percent, 2.0) else "(With Risk)"
    return f"{percent:g}% {risk}"


__all__ = [
    "CONTRIBUTION_INTERVALS",
    "MAX_AMOUNT",
    "MAX_YEARS",
    "ProjectionInput",
    "ProjectionPoint",
    "ProjectionResult",
    "PreviewPoint",
    "interval_from_frequency",
    "monthly_points",
    "project_investment",
    "growth_preview",
    "format_currency",
    "year_label",
    "yearly_breakdown",
    "rate_label",
]
