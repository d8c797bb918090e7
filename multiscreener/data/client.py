"""
Financial Modeling Prep API client.

Every request returns an explicit ``Ok(payload)`` or ``Err(DataSourceError)``.
Transport failures, timeouts, non-200 responses and provider error payloads
all become ``Err``; nothing is retried here.
"""

import logging
import os
from typing import Any, Dict, Iterable, Mapping, Optional

import requests

from ..exceptions import DataSourceError
from .result import Err, Ok, Result

logger = logging.getLogger(__name__)

API_BASE_URL = 'https://financialmodelingprep.com/api/v3/'
DEFAULT_API_KEY_ENV = 'FMP_API_KEY'
DEFAULT_TIMEOUT = 30.0


def _provider_error(data: Any) -> Optional[str]:
    """Error message embedded in a 200 response, if any."""
    if isinstance(data, Mapping) and 'Error Message' in data:
        return str(data['Error Message'])
    if isinstance(data, list) and data and isinstance(data[0], Mapping) and 'Error Message' in data[0]:
        return str(data[0]['Error Message'])
    return None


class FMPClient:
    """
    Thin wrapper over the FMP v3 REST API.

    Handles authentication, timeouts and error normalization. Pacing between
    symbols is left to the batch orchestrator.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        api_key_env: str = DEFAULT_API_KEY_ENV,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: FMP API key. If None, read from ``api_key_env``.
            base_url: API root, ending with a slash
            timeout: Seconds to wait for each response
            api_key_env: Environment variable holding the key
            session: Optional shared requests session
        """
        self.api_key = api_key or os.environ.get(api_key_env)
        self.api_key_env = api_key_env
        self.base_url = base_url if base_url.endswith('/') else base_url + '/'
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, api_config: Mapping[str, Any]) -> 'FMPClient':
        """Build a client from the ``api`` section of the settings."""
        return cls(
            base_url=api_config.get('base_url', API_BASE_URL),
            timeout=float(api_config.get('timeout', DEFAULT_TIMEOUT)),
            api_key_env=api_config.get('api_key_env', DEFAULT_API_KEY_ENV),
        )

    def fetch(self, path: str, params: Optional[Dict[str, Any]] = None) -> Result:
        """
        Perform one GET request.

        Args:
            path: Endpoint path relative to the API root (e.g. 'ratios/AAPL')
            params: Query parameters; the API key is appended

        Returns:
            Ok(decoded JSON) or Err(DataSourceError)
        """
        if not self.api_key:
            return Err(DataSourceError(f"API key environment variable {self.api_key_env} is not set."))

        query = {k: v for k, v in (params or {}).items() if v is not None}
        query['apikey'] = self.api_key

        try:
            response = self.session.get(self.base_url + path, params=query, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.warning(f"Request to {path} timed out after {self.timeout:.0f}s")
            return Err(DataSourceError(f"Timeout after {self.timeout:.0f}s"))
        except requests.exceptions.RequestException as e:
            logger.warning(f"Request to {path} failed: {str(e)}")
            return Err(DataSourceError(f"Request error: {str(e)}"))

        if response.status_code != 200:
            logger.warning(f"{path} returned HTTP {response.status_code}")
            return Err(DataSourceError(f"The API returned a non-200 response. Code: {response.status_code}"))

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"{path} returned a body that is not JSON")
            return Err(DataSourceError("Response body is not valid JSON"))

        message = _provider_error(data)
        if message is not None:
            logger.warning(f"{path} reported an error: {message}")
            return Err(DataSourceError(message))

        return Ok(data)

    def get_symbol_universe(self, exchange: str = 'NSE', limit: int = 2000) -> Result:
        """Actively trading symbols on ``exchange`` (fields: symbol, companyName)."""
        return self.fetch('stock-screener', {
            'exchange': exchange,
            'isActivelyTrading': 'true',
            'limit': limit,
        })

    def get_key_metrics(self, symbol: str, limit: int = 1) -> Result:
        return self.fetch(f'key-metrics/{symbol}', {'limit': limit})

    def get_income_statement(self, symbol: str, limit: int = 1, period: Optional[str] = None) -> Result:
        """Income statements, most recent first. ``period`` is 'annual' or 'quarter'."""
        return self.fetch(f'income-statement/{symbol}', {'limit': limit, 'period': period})

    def get_balance_sheet(self, symbol: str, limit: int = 1, period: Optional[str] = None) -> Result:
        return self.fetch(f'balance-sheet-statement/{symbol}', {'limit': limit, 'period': period})

    def get_cash_flow(self, symbol: str, limit: int = 1, period: Optional[str] = None) -> Result:
        return self.fetch(f'cash-flow-statement/{symbol}', {'limit': limit, 'period': period})

    def get_financial_ratios(self, symbol: str, limit: int = 1, period: Optional[str] = None) -> Result:
        return self.fetch(f'ratios/{symbol}', {'limit': limit, 'period': period})

    def get_historical_prices(self, symbol: str, timeseries: int = 365) -> Result:
        """
        Daily prices for the last ``timeseries`` trading days, most recent first.

        The provider wraps the list in ``{"symbol": ..., "historical": [...]}``;
        only the list is returned.
        """
        match self.fetch(f'historical-price-full/{symbol}', {'timeseries': timeseries}):
            case Ok(payload):
                if isinstance(payload, Mapping):
                    return Ok(payload.get('historical') or [])
                return Ok([])
            case failure:
                return failure

    def get_live_quotes(self, symbols: Iterable[str]) -> Result:
        """Quotes (symbol, price, change, changesPercentage) for several symbols at once."""
        symbol_list = ','.join(symbols)
        if not symbol_list:
            return Ok([])
        return self.fetch(f'quote/{symbol_list}')
