"""
Graham-style Value Scan.

Keeps stocks whose latest ratio snapshot passes every value criterion and
orders them cheapest P/E first.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..exceptions import InsufficientDataError
from ..utils.fields import get_number, period
from .criteria import Criterion, build_criteria_functions, evaluate_all
from .models import ValueCandidate, ValueStock

logger = logging.getLogger(__name__)


def build_record(symbol: str, name: str, ratios: Sequence[Mapping[str, Any]]) -> ValueCandidate:
    """
    Wrap the most recent ratio snapshot for the scan.

    Raises:
        InsufficientDataError: If the provider returned no ratio periods
    """
    if not ratios:
        raise InsufficientDataError(f"No ratio data for {symbol}")
    return ValueCandidate(symbol=symbol, name=name, ratios=period(ratios, 0))


def filter_stocks(
    candidates: Iterable[ValueCandidate],
    criteria: Optional[List[Tuple[str, Criterion]]] = None,
) -> List[ValueStock]:
    """
    Apply the value criteria.

    Args:
        candidates: Stocks with one ratio snapshot each
        criteria: Criterion functions; defaults to the standard Graham thresholds

    Returns:
        Passing stocks sorted ascending by P/E ratio
    """
    if criteria is None:
        criteria = build_criteria_functions()

    passing = []
    for candidate in candidates:
        failures = evaluate_all(candidate.ratios, criteria)
        if failures:
            logger.debug(f"{candidate.symbol} excluded: {', '.join(failures.values())}")
            continue

        ratios = candidate.ratios
        passing.append(ValueStock(
            symbol=candidate.symbol,
            name=candidate.name,
            pe_ratio=get_number(ratios, 'priceEarningsRatio'),
            pb_ratio=get_number(ratios, 'priceToBookRatio'),
            current_ratio=get_number(ratios, 'currentRatio'),
            debt_equity_ratio=get_number(ratios, 'debtEquityRatio'),
            net_profit_margin=get_number(ratios, 'netProfitMargin'),
        ))

    # P/E is only guaranteed present while pe_max is configured
    passing.sort(key=lambda s: (s.pe_ratio is None, s.pe_ratio or 0.0))
    logger.info(f"Value Scan kept {len(passing)} stocks")
    return passing
