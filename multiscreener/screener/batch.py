"""
Batch orchestration.

Walks a prefix of the symbol universe one symbol at a time, fetches the
statements a screener needs, pools the complete ones and hands the pool to
the screener's engine. A symbol whose fetch fails is dropped without retry.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..data.client import FMPClient
from ..data.result import Err, Ok, Result
from ..exceptions import InsufficientDataError, UniverseUnavailableError
from ..utils.config import DEFAULT_SETTINGS, screener_settings
from . import canslim, magic_formula, piotroski, value_scan
from .criteria import build_criteria_functions
from .models import FinancialData, PiotroskiCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Listing:
    """One entry of the symbol universe."""

    symbol: str
    name: str


@dataclass(frozen=True)
class BatchOutcome:
    screener_id: str
    results: List[Any]
    processed: int
    pooled: int
    truncated: bool = False

    @property
    def is_empty(self) -> bool:
        """True when the batch ran but no stock survived."""
        return not self.results


def parse_universe(rows: Iterable[Mapping[str, Any]]) -> List[Listing]:
    """Turn stock-screener rows into listings, skipping rows without a symbol."""
    listings = []
    for row in rows:
        symbol = row.get('symbol') if isinstance(row, Mapping) else None
        if not symbol:
            continue
        name = row.get('companyName') or row.get('name') or 'N/A'
        listings.append(Listing(symbol=symbol, name=name))
    return listings


def _first_error(*calls: Callable[[], Result]) -> Result:
    """
    Run fetches in order, stopping at the first Err.

    Every payload must be a list of periods; any other shape is an Err.

    Returns:
        Ok(list of payloads) or the first Err
    """
    payloads = []
    for call in calls:
        match call():
            case Ok(list() as payload):
                payloads.append(payload)
            case Ok(payload):
                return Err(InsufficientDataError(f"Unexpected {type(payload).__name__} payload"))
            case failure:
                return failure
    return Ok(payloads)


def fetch_live_quotes(client: FMPClient, symbols: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """
    Live quotes keyed by symbol.

    Quotes only decorate results, so a failed lookup yields an empty dict.
    """
    unique = list(dict.fromkeys(symbols))
    if not unique:
        return {}

    match client.get_live_quotes(unique):
        case Ok(quotes):
            return {
                quote['symbol']: {
                    'symbol': quote['symbol'],
                    'price': quote.get('price'),
                    'change': quote.get('change'),
                    'changesPercentage': quote.get('changesPercentage'),
                }
                for quote in quotes or []
                if isinstance(quote, Mapping) and quote.get('symbol')
            }
        case Err() as failure:
            logger.warning(f"Live quotes unavailable: {failure.reason}")
            return {}


class BatchOrchestrator:
    """
    Runs one screener over a batch of symbols.

    Stateless apart from its client and settings; build one per run or
    share one across runs.
    """

    def __init__(self, client: FMPClient, settings: Optional[Mapping[str, Any]] = None):
        self.client = client
        self.settings = settings or DEFAULT_SETTINGS
        self._collectors: Dict[str, Callable[[Listing, Mapping[str, Any]], Result]] = {
            'magic_formula': self._collect_magic_formula,
            'piotroski': self._collect_piotroski,
            'value_scan': self._collect_value_scan,
            'canslim': self._collect_canslim,
        }

    def load_universe(self) -> List[Listing]:
        """
        Fetch the symbol universe.

        Raises:
            UniverseUnavailableError: If the listing fails or comes back empty
        """
        universe_config = self.settings.get('universe', {})
        match self.client.get_symbol_universe(
            exchange=universe_config.get('exchange', 'NSE'),
            limit=universe_config.get('limit', 2000),
        ):
            case Ok(rows):
                listings = parse_universe(rows or [])
            case Err() as failure:
                logger.error(f"Could not fetch symbol list: {failure.reason}")
                raise UniverseUnavailableError(failure.reason) from failure.error

        if not listings:
            logger.error("Symbol list came back empty")
            raise UniverseUnavailableError('Empty symbol list')

        logger.info(f"Found {len(listings)} symbols")
        return listings

    def run(
        self,
        screener_id: str,
        universe: Optional[List[Listing]] = None,
        batch_size: Optional[int] = None,
        max_runtime: Optional[float] = None,
    ) -> BatchOutcome:
        """
        Run a screener over the first ``batch_size`` symbols.

        Args:
            screener_id: One of magic_formula, piotroski, value_scan, canslim
            universe: Pre-fetched universe; fetched when None
            batch_size: Overrides the screener's configured batch size
            max_runtime: Seconds after which no new symbol is started; the
                partial pool is still ranked

        Returns:
            BatchOutcome with the engine's ordered results

        Raises:
            ValidationError: On an unknown screener id
            UniverseUnavailableError: If the universe must be fetched and cannot be
        """
        config = screener_settings(self.settings, screener_id)
        collect = self._collectors[screener_id]
        if universe is None:
            universe = self.load_universe()
        if batch_size is None:
            batch_size = int(config.get('batch_size', len(universe)))
        if max_runtime is None:
            max_runtime = self.settings.get('run', {}).get('max_runtime')
        delay = float(config.get('delay', 0.0))

        batch = universe[:batch_size]
        logger.info(f"Running {screener_id} over {len(batch)} of {len(universe)} symbols")

        started = time.monotonic()
        pool = []
        processed = 0
        truncated = False
        for index, listing in enumerate(batch):
            if max_runtime is not None and time.monotonic() - started > max_runtime:
                logger.warning(f"{screener_id} stopped after {processed} symbols: {max_runtime}s budget spent")
                truncated = True
                break
            if index > 0 and delay > 0:
                time.sleep(delay)

            logger.debug(f"Processing ({index + 1}/{len(batch)}): {listing.symbol}")
            processed += 1
            match collect(listing, config):
                case Ok(record):
                    pool.append(record)
                case Err() as failure:
                    logger.debug(f"Dropping {listing.symbol}: {failure.reason}")

        results = self._rank(screener_id, pool, config)
        if not results:
            logger.info(f"{screener_id}: no stocks found in {processed} processed symbols")
        else:
            logger.info(f"{screener_id}: {len(results)} results from {len(pool)} pooled symbols")

        return BatchOutcome(
            screener_id=screener_id,
            results=results,
            processed=processed,
            pooled=len(pool),
            truncated=truncated,
        )

    def _rank(self, screener_id: str, pool: List[Any], config: Mapping[str, Any]) -> List[Any]:
        match screener_id:
            case 'magic_formula':
                return magic_formula.rank(pool)
            case 'piotroski':
                return piotroski.rank(pool, min_score=int(config.get('min_score', piotroski.DEFAULT_MIN_SCORE)))
            case 'value_scan':
                return value_scan.filter_stocks(pool, build_criteria_functions(config.get('criteria')))
            case 'canslim':
                return canslim.screen(
                    pool,
                    quarterly_growth_min=float(config.get('quarterly_growth_min', canslim.DEFAULT_GROWTH_MIN)),
                    annual_growth_min=float(config.get('annual_growth_min', canslim.DEFAULT_GROWTH_MIN)),
                    new_high_proximity=float(config.get('new_high_proximity', canslim.DEFAULT_HIGH_PROXIMITY)),
                )
            case _:
                raise ValueError(f"No engine for {screener_id}")

    def _collect_magic_formula(self, listing: Listing, config: Mapping[str, Any]) -> Result:
        symbol = listing.symbol
        match _first_error(
            lambda: self.client.get_key_metrics(symbol, limit=1),
            lambda: self.client.get_income_statement(symbol, limit=1),
            lambda: self.client.get_balance_sheet(symbol, limit=1),
        ):
            case Ok([key_metrics, income, balance]):
                try:
                    return Ok(magic_formula.build_record(symbol, listing.name, key_metrics, income, balance))
                except InsufficientDataError as e:
                    return Err(e)
            case failure:
                return failure

    def _collect_piotroski(self, listing: Listing, config: Mapping[str, Any]) -> Result:
        symbol = listing.symbol
        periods = piotroski.MIN_PERIODS
        match _first_error(
            lambda: self.client.get_income_statement(symbol, limit=periods),
            lambda: self.client.get_balance_sheet(symbol, limit=periods),
            lambda: self.client.get_cash_flow(symbol, limit=periods),
            lambda: self.client.get_financial_ratios(symbol, limit=periods),
        ):
            case Ok([income, balance, cashflow, ratios]):
                data = FinancialData(
                    income=list(income or []),
                    balance=list(balance or []),
                    cashflow=list(cashflow or []),
                    ratios=list(ratios or []),
                )
                return Ok(PiotroskiCandidate(symbol=symbol, name=listing.name, data=data))
            case failure:
                return failure

    def _collect_value_scan(self, listing: Listing, config: Mapping[str, Any]) -> Result:
        match _first_error(lambda: self.client.get_financial_ratios(listing.symbol, limit=1)):
            case Ok([ratios]):
                try:
                    return Ok(value_scan.build_record(listing.symbol, listing.name, ratios))
                except InsufficientDataError as e:
                    return Err(e)
            case failure:
                return failure

    def _collect_canslim(self, listing: Listing, config: Mapping[str, Any]) -> Result:
        symbol = listing.symbol
        days = int(config.get('price_history_days', 365))
        match _first_error(
            lambda: self.client.get_income_statement(symbol, limit=canslim.STATEMENT_LIMIT, period='annual'),
            lambda: self.client.get_income_statement(symbol, limit=canslim.STATEMENT_LIMIT, period='quarter'),
            lambda: self.client.get_historical_prices(symbol, timeseries=days),
        ):
            case Ok([annual, quarterly, prices]):
                return Ok(canslim.build_record(symbol, listing.name, annual, quarterly, prices))
            case failure:
                return failure
