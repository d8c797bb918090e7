"""
Magic Formula ranking.

Ranks stocks by earnings yield (EBIT / enterprise value) and by return on
capital (EBIT / (net fixed assets + working capital)), then orders them by
the sum of both ranks. Lower combined rank is better.
"""

import logging
from typing import Any, Iterable, List, Mapping, Sequence

from ..exceptions import InsufficientDataError, ValidationError
from ..utils.fields import number_or, period
from .models import MISSING_RANK, MagicFormulaStock, RankedStock

logger = logging.getLogger(__name__)


def build_record(
    symbol: str,
    name: str,
    key_metrics: Sequence[Mapping[str, Any]],
    income_statement: Sequence[Mapping[str, Any]],
    balance_sheet: Sequence[Mapping[str, Any]],
) -> MagicFormulaStock:
    """
    Assemble Magic Formula inputs from the latest key metrics and statements.

    EBIT is derived as EBITDA less depreciation and amortization. Missing
    statement fields count as 0; the engine discards stocks whose derived
    values make the ratios undefined.

    Raises:
        InsufficientDataError: If any of the three payloads is empty
    """
    if not key_metrics or not income_statement or not balance_sheet:
        raise InsufficientDataError(f"Incomplete financial statements for {symbol}")

    metrics = period(key_metrics, 0)
    income = period(income_statement, 0)
    balance = period(balance_sheet, 0)

    return MagicFormulaStock(
        symbol=symbol,
        name=name,
        enterprise_value=number_or(metrics, 'enterpriseValue', 0.0),
        ebit=number_or(income, 'ebitda', 0.0) - number_or(income, 'depreciationAndAmortization', 0.0),
        net_fixed_assets=number_or(balance, 'propertyPlantEquipmentNet', 0.0),
        working_capital=(
            number_or(balance, 'totalCurrentAssets', 0.0)
            - number_or(balance, 'totalCurrentLiabilities', 0.0)
        ),
    )


def _capital(stock: MagicFormulaStock) -> float:
    """Invested capital, or ValidationError when return on capital is undefined."""
    if not stock.enterprise_value:
        raise ValidationError(f"{stock.symbol}: enterprise value missing or zero")
    if not stock.ebit:
        raise ValidationError(f"{stock.symbol}: EBIT missing or zero")

    capital = (stock.net_fixed_assets or 0.0) + (stock.working_capital or 0.0)
    if capital <= 0:
        raise ValidationError(f"{stock.symbol}: non-positive capital ({capital:,.0f})")
    return capital


def rank(stocks: Iterable[MagicFormulaStock]) -> List[RankedStock]:
    """
    Rank stocks by the Magic Formula.

    Args:
        stocks: Candidate stocks in universe order

    Returns:
        Ranked stocks sorted ascending by combined rank. Every sort is
        stable: equal ratios keep input order, equal combined ranks keep
        earnings-yield order.
    """
    scored = []
    for stock in stocks:
        try:
            capital = _capital(stock)
        except ValidationError as e:
            logger.debug(f"Discarding {e}")
            continue
        scored.append({
            'stock': stock,
            'earnings_yield': stock.ebit / stock.enterprise_value,
            'return_on_capital': stock.ebit / capital,
        })

    if not scored:
        return []

    by_yield = sorted(scored, key=lambda s: s['earnings_yield'], reverse=True)
    for position, entry in enumerate(by_yield, start=1):
        entry['ey_rank'] = position

    by_roc = sorted(scored, key=lambda s: s['return_on_capital'], reverse=True)
    for position, entry in enumerate(by_roc, start=1):
        entry['roc_rank'] = position

    ranked = []
    for entry in by_yield:
        stock = entry['stock']
        ey_rank = entry.get('ey_rank', MISSING_RANK)
        roc_rank = entry.get('roc_rank', MISSING_RANK)
        ranked.append(RankedStock(
            symbol=stock.symbol,
            name=stock.name,
            enterprise_value=stock.enterprise_value,
            ebit=stock.ebit,
            net_fixed_assets=stock.net_fixed_assets,
            working_capital=stock.working_capital,
            earnings_yield=entry['earnings_yield'],
            return_on_capital=entry['return_on_capital'],
            ey_rank=ey_rank,
            roc_rank=roc_rank,
            combined_rank=ey_rank + roc_rank,
        ))

    ranked.sort(key=lambda r: r.combined_rank)
    logger.info(f"Magic Formula ranked {len(ranked)} stocks")
    return ranked
