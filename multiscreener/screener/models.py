"""
Stock records flowing into and out of the screening engines.

All records are frozen: engines derive new records rather than mutating
their inputs. A record lives for one batch run.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping

# One statement period or ratio snapshot, as returned by the API
Period = Mapping[str, Any]
# Most-recent-first sequence of periods
Series = List[Period]

MISSING_RANK = 9999


@dataclass(frozen=True)
class MagicFormulaStock:
    symbol: str
    name: str
    enterprise_value: float
    ebit: float
    net_fixed_assets: float
    working_capital: float


@dataclass(frozen=True)
class RankedStock:
    symbol: str
    name: str
    enterprise_value: float
    ebit: float
    net_fixed_assets: float
    working_capital: float
    earnings_yield: float
    return_on_capital: float
    ey_rank: int = MISSING_RANK
    roc_rank: int = MISSING_RANK
    combined_rank: int = MISSING_RANK * 2


@dataclass(frozen=True)
class FinancialData:
    """Statement series needed for an F-Score, most recent period first."""

    income: Series = field(default_factory=list)
    balance: Series = field(default_factory=list)
    cashflow: Series = field(default_factory=list)
    ratios: Series = field(default_factory=list)

    def shortest(self) -> int:
        return min(len(self.income), len(self.balance), len(self.cashflow), len(self.ratios))


@dataclass(frozen=True)
class PiotroskiCandidate:
    symbol: str
    name: str
    data: FinancialData


@dataclass(frozen=True)
class PiotroskiStock:
    symbol: str
    name: str
    f_score: int


@dataclass(frozen=True)
class ValueCandidate:
    symbol: str
    name: str
    ratios: Period


@dataclass(frozen=True)
class ValueStock:
    symbol: str
    name: str
    pe_ratio: float
    pb_ratio: float
    current_ratio: float
    debt_equity_ratio: float
    net_profit_margin: float


@dataclass(frozen=True)
class CanslimCandidate:
    symbol: str
    name: str
    annual_income: Series
    quarterly_income: Series
    historical_price: Series


@dataclass(frozen=True)
class CanslimStock:
    symbol: str
    name: str
    score: int
    price: float
    criteria: str
