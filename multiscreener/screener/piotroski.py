"""
Piotroski F-Score.

Nine binary tests on profitability, leverage/liquidity and operating
efficiency, comparing the most recent statement period with the one before.
"""

import logging
from typing import Dict, Iterable, List

from ..data.result import Err, Ok, Result
from ..exceptions import InsufficientDataError
from ..utils.fields import number_or, period
from .models import FinancialData, PiotroskiCandidate, PiotroskiStock, Period

logger = logging.getLogger(__name__)

MIN_PERIODS = 2
DEFAULT_MIN_SCORE = 7

# Neutral value used when a statement omits a field
FIELD_DEFAULTS = {
    'netIncome': 0.0,
    'operatingCashFlow': 0.0,
    'returnOnAssets': 0.0,
    'longTermDebt': 0.0,
    'totalAssets': 1.0,
    'currentRatio': 0.0,
    'commonStock': 0.0,
    'grossProfitMargin': 0.0,
    'assetTurnover': 0.0,
}


def _value(record: Period, key: str) -> float:
    return number_or(record, key, FIELD_DEFAULTS[key])


def _debt_ratio(balance: Period) -> float:
    total_assets = _value(balance, 'totalAssets') or FIELD_DEFAULTS['totalAssets']
    return _value(balance, 'longTermDebt') / total_assets


def f_score_checks(data: FinancialData) -> Dict[str, bool]:
    """
    Evaluate the nine F-Score tests.

    Args:
        data: Statement series with at least two periods each

    Returns:
        Mapping of test name to pass/fail, in scoring order
    """
    income, prior_income = period(data.income, 0), period(data.income, 1)
    balance, prior_balance = period(data.balance, 0), period(data.balance, 1)
    cashflow = period(data.cashflow, 0)
    ratios, prior_ratios = period(data.ratios, 0), period(data.ratios, 1)

    net_income = _value(income, 'netIncome')
    operating_cash_flow = _value(cashflow, 'operatingCashFlow')

    return {
        # Profitability
        'positive_net_income': net_income > 0,
        'positive_operating_cash_flow': operating_cash_flow > 0,
        'improving_roa': _value(ratios, 'returnOnAssets') > _value(prior_ratios, 'returnOnAssets'),
        'cash_flow_exceeds_income': operating_cash_flow > net_income,
        # Leverage & liquidity
        'decreasing_leverage': _debt_ratio(balance) < _debt_ratio(prior_balance),
        'improving_current_ratio': _value(ratios, 'currentRatio') > _value(prior_ratios, 'currentRatio'),
        'no_dilution': _value(balance, 'commonStock') <= _value(prior_balance, 'commonStock'),
        # Efficiency
        'improving_gross_margin': (
            _value(ratios, 'grossProfitMargin') > _value(prior_ratios, 'grossProfitMargin')
        ),
        'improving_asset_turnover': (
            _value(ratios, 'assetTurnover') > _value(prior_ratios, 'assetTurnover')
        ),
    }


def score(data: FinancialData) -> Result:
    """
    Compute the F-Score.

    Returns:
        Ok(score) with an integer in [0, 9], or Err(InsufficientDataError)
        when any series has fewer than two periods
    """
    if data.shortest() < MIN_PERIODS:
        return Err(InsufficientDataError('Insufficient multi-year data provided.'))
    return Ok(sum(f_score_checks(data).values()))


def rank(candidates: Iterable[PiotroskiCandidate], min_score: int = DEFAULT_MIN_SCORE) -> List[PiotroskiStock]:
    """
    Score candidates, keep those at or above ``min_score`` and sort them
    descending by score. Candidates without enough history are skipped.
    """
    retained = []
    for candidate in candidates:
        match score(candidate.data):
            case Ok(f_score):
                if f_score >= min_score:
                    retained.append(PiotroskiStock(candidate.symbol, candidate.name, f_score))
            case Err() as failure:
                logger.debug(f"Skipping {candidate.symbol}: {failure.reason}")

    retained.sort(key=lambda s: s.f_score, reverse=True)
    logger.info(f"Piotroski retained {len(retained)} stocks scoring >= {min_score}")
    return retained
