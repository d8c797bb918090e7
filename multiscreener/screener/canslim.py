"""
CANSLIM growth screen.

Only the first three letters are evaluated:

- C: current quarterly EPS up more than 25% on the same quarter a year ago
- A: annual EPS up more than 25% in each of the last three years
- N: price within 15% of its 52-week high

A stock qualifies only when all three pass.
"""

import logging
from typing import Any, Iterable, List, Mapping, Sequence

from ..utils.fields import growth, number_or, period
from .models import CanslimCandidate, CanslimStock

logger = logging.getLogger(__name__)

QUARTERS_NEEDED = 5
# Periods requested per income statement
STATEMENT_LIMIT = 5
YEARS_NEEDED = 4
GROWTH_YEARS = 3
DEFAULT_GROWTH_MIN = 0.25
DEFAULT_HIGH_PROXIMITY = 0.85
REQUIRED_SCORE = 3


def build_record(
    symbol: str,
    name: str,
    annual_income: Sequence[Mapping[str, Any]],
    quarterly_income: Sequence[Mapping[str, Any]],
    historical_price: Sequence[Mapping[str, Any]],
) -> CanslimCandidate:
    """Bundle the three series the screen needs. Short series fail their check."""
    return CanslimCandidate(
        symbol=symbol,
        name=name,
        annual_income=list(annual_income or []),
        quarterly_income=list(quarterly_income or []),
        historical_price=list(historical_price or []),
    )


def check_quarterly_eps_growth(quarterly_income: Sequence[Mapping[str, Any]],
                               growth_min: float = DEFAULT_GROWTH_MIN) -> bool:
    """Latest quarter EPS vs the same quarter one year earlier (index 4)."""
    if len(quarterly_income) < QUARTERS_NEEDED:
        return False

    latest_eps = number_or(period(quarterly_income, 0), 'eps', 0.0)
    year_ago_eps = number_or(period(quarterly_income, 4), 'eps', 0.0)

    # Growth off a loss or zero base is meaningless
    change = growth(latest_eps, year_ago_eps)
    return change is not None and change > growth_min


def check_annual_eps_growth(annual_income: Sequence[Mapping[str, Any]],
                            growth_min: float = DEFAULT_GROWTH_MIN) -> bool:
    """Every one of the last three year-over-year EPS changes must beat ``growth_min``."""
    if len(annual_income) < YEARS_NEEDED:
        return False

    for i in range(GROWTH_YEARS):
        current_eps = number_or(period(annual_income, i), 'eps', 0.0)
        previous_eps = number_or(period(annual_income, i + 1), 'eps', 0.0)
        change = growth(current_eps, previous_eps)
        if change is None or change <= growth_min:
            return False
    return True


def check_new_highs(historical_price: Sequence[Mapping[str, Any]],
                    proximity: float = DEFAULT_HIGH_PROXIMITY) -> bool:
    """Latest close at or above ``proximity`` times the highest high in the series."""
    if not historical_price:
        return False

    current_price = number_or(period(historical_price, 0), 'close', 0.0)
    high_52_week = max(number_or(day, 'high', 0.0) for day in historical_price)
    if high_52_week == 0:
        return False

    return current_price / high_52_week >= proximity


def screen(
    candidates: Iterable[CanslimCandidate],
    quarterly_growth_min: float = DEFAULT_GROWTH_MIN,
    annual_growth_min: float = DEFAULT_GROWTH_MIN,
    new_high_proximity: float = DEFAULT_HIGH_PROXIMITY,
) -> List[CanslimStock]:
    """
    Run the C, A and N checks on each candidate.

    Args:
        candidates: Stocks with annual/quarterly income and daily prices
        quarterly_growth_min: Minimum quarterly EPS growth (fraction)
        annual_growth_min: Minimum annual EPS growth per year (fraction)
        new_high_proximity: Minimum ratio of price to 52-week high

    Returns:
        Qualifying stocks in input order
    """
    qualifying = []
    for candidate in candidates:
        # Letter order drives the criteria label
        checks = {
            'C': check_quarterly_eps_growth(candidate.quarterly_income, quarterly_growth_min),
            'A': check_annual_eps_growth(candidate.annual_income, annual_growth_min),
            'N': check_new_highs(candidate.historical_price, new_high_proximity),
        }
        score = sum(checks.values())
        if score < REQUIRED_SCORE:
            logger.debug(f"{candidate.symbol} scored {score}/{REQUIRED_SCORE}")
            continue

        qualifying.append(CanslimStock(
            symbol=candidate.symbol,
            name=candidate.name,
            score=score,
            price=number_or(period(candidate.historical_price, 0), 'close', 0.0),
            criteria=', '.join(letter for letter, met in checks.items() if met),
        ))

    logger.info(f"CANSLIM found {len(qualifying)} qualifying stocks")
    return qualifying
