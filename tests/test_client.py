"""
Unit tests for the Financial Modeling Prep client.
"""

import unittest
from unittest.mock import Mock, patch

import requests

from multiscreener.data.client import FMPClient
from multiscreener.data.result import Err, Ok
from multiscreener.exceptions import DataSourceError


def make_response(status_code=200, payload=None, json_error=None):
    response = Mock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


class TestFetch(unittest.TestCase):
    """Test request handling and error normalization."""

    def setUp(self):
        self.session = Mock()
        self.client = FMPClient(api_key='secret', base_url='https://api.test/v3/', session=self.session)

    def test_success(self):
        """A 200 JSON response comes back as Ok."""
        self.session.get.return_value = make_response(payload=[{'symbol': 'TCS'}])

        result = self.client.fetch('quote/TCS')

        self.assertEqual(result, Ok([{'symbol': 'TCS'}]))
        self.session.get.assert_called_once_with(
            'https://api.test/v3/quote/TCS', params={'apikey': 'secret'}, timeout=30.0,
        )

    def test_none_params_dropped(self):
        """Optional parameters left as None are not sent."""
        self.session.get.return_value = make_response(payload=[])

        self.client.get_income_statement('TCS', limit=2)

        _, kwargs = self.session.get.call_args
        self.assertEqual(kwargs['params'], {'limit': 2, 'apikey': 'secret'})

    def test_period_sent(self):
        """Quarterly statements pass the period parameter."""
        self.session.get.return_value = make_response(payload=[])

        self.client.get_income_statement('TCS', limit=5, period='quarter')

        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], 'https://api.test/v3/income-statement/TCS')
        self.assertEqual(kwargs['params']['period'], 'quarter')

    def test_missing_api_key(self):
        """No key means no request and an Err."""
        with patch.dict('os.environ', {}, clear=True):
            client = FMPClient(session=self.session)
        result = client.fetch('quote/TCS')

        self.assertIsInstance(result, Err)
        self.assertIn('FMP_API_KEY', result.reason)
        self.session.get.assert_not_called()

    def test_api_key_from_environment(self):
        """The key is read from the configured environment variable."""
        with patch.dict('os.environ', {'MY_KEY': 'from-env'}):
            client = FMPClient(api_key_env='MY_KEY', session=self.session)
        self.assertEqual(client.api_key, 'from-env')

    def test_timeout(self):
        """A timeout is an Err, not an exception."""
        self.session.get.side_effect = requests.exceptions.Timeout()

        result = self.client.fetch('ratios/TCS')

        self.assertIsInstance(result, Err)
        self.assertIsInstance(result.error, DataSourceError)

    def test_connection_error(self):
        """Transport failures are an Err."""
        self.session.get.side_effect = requests.exceptions.ConnectionError('refused')
        self.assertIsInstance(self.client.fetch('ratios/TCS'), Err)

    def test_non_200(self):
        """Non-200 status codes are an Err carrying the code."""
        self.session.get.return_value = make_response(status_code=429)

        result = self.client.fetch('ratios/TCS')

        self.assertIsInstance(result, Err)
        self.assertIn('429', result.reason)

    def test_invalid_json(self):
        """Undecodable bodies are an Err."""
        self.session.get.return_value = make_response(json_error=ValueError('bad json'))
        self.assertIsInstance(self.client.fetch('ratios/TCS'), Err)

    def test_provider_error_object(self):
        """{'Error Message': ...} in a 200 response is an Err."""
        self.session.get.return_value = make_response(payload={'Error Message': 'Invalid API KEY.'})

        result = self.client.fetch('ratios/TCS')

        self.assertIsInstance(result, Err)
        self.assertEqual(result.reason, 'Invalid API KEY.')

    def test_provider_error_list(self):
        """[{'Error Message': ...}] in a 200 response is an Err."""
        self.session.get.return_value = make_response(payload=[{'Error Message': 'Limit reached'}])
        self.assertEqual(self.client.fetch('ratios/TCS').reason, 'Limit reached')


class TestEndpoints(unittest.TestCase):
    """Test endpoint helpers."""

    def setUp(self):
        self.session = Mock()
        self.client = FMPClient(api_key='secret', session=self.session)

    def test_symbol_universe(self):
        """The universe comes from the stock screener endpoint."""
        self.session.get.return_value = make_response(payload=[{'symbol': 'TCS', 'companyName': 'Tata'}])

        result = self.client.get_symbol_universe(exchange='NSE', limit=10)

        self.assertIsInstance(result, Ok)
        args, kwargs = self.session.get.call_args
        self.assertTrue(args[0].endswith('stock-screener'))
        self.assertEqual(kwargs['params']['exchange'], 'NSE')
        self.assertEqual(kwargs['params']['limit'], 10)

    def test_historical_prices_unwrapped(self):
        """The 'historical' list is returned without its wrapper."""
        bars = [{'close': 10, 'high': 11}]
        self.session.get.return_value = make_response(payload={'symbol': 'TCS', 'historical': bars})

        self.assertEqual(self.client.get_historical_prices('TCS', timeseries=365), Ok(bars))
        _, kwargs = self.session.get.call_args
        self.assertEqual(kwargs['params']['timeseries'], 365)

    def test_historical_prices_missing(self):
        """A payload without history is an empty series."""
        self.session.get.return_value = make_response(payload={})
        self.assertEqual(self.client.get_historical_prices('TCS'), Ok([]))

    def test_historical_prices_error_passthrough(self):
        """Errors are returned unchanged."""
        self.session.get.return_value = make_response(status_code=500)
        self.assertIsInstance(self.client.get_historical_prices('TCS'), Err)

    def test_live_quotes_joins_symbols(self):
        """Quotes for several symbols go in one request."""
        self.session.get.return_value = make_response(payload=[])

        self.client.get_live_quotes(['TCS', 'INFY'])

        args, _ = self.session.get.call_args
        self.assertTrue(args[0].endswith('quote/TCS,INFY'))

    def test_live_quotes_empty(self):
        """No symbols, no request."""
        self.assertEqual(self.client.get_live_quotes([]), Ok([]))
        self.session.get.assert_not_called()

    def test_from_config(self):
        """Settings provide base URL, timeout and key variable."""
        with patch.dict('os.environ', {'ALT_KEY': 'k'}):
            client = FMPClient.from_config({'base_url': 'https://x.test/api', 'timeout': 5, 'api_key_env': 'ALT_KEY'})
        self.assertEqual(client.base_url, 'https://x.test/api/')
        self.assertEqual(client.timeout, 5.0)
        self.assertEqual(client.api_key, 'k')


if __name__ == '__main__':
    unittest.main()
