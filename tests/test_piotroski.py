"""
Unit tests for the Piotroski F-Score engine.
"""

import unittest

from multiscreener.data.result import Err, Ok
from multiscreener.exceptions import InsufficientDataError
from multiscreener.screener import piotroski
from multiscreener.screener.models import FinancialData, PiotroskiCandidate


def make_data(**overrides):
    """
    Build two-period statements where every F-Score test fails.

    Keyword overrides use '<statement>_<field>' for the current period and
    'prior_<statement>_<field>' for the prior period.
    """
    values = {
        'income_netIncome': -10,
        'prior_income_netIncome': 5,
        'cashflow_operatingCashFlow': -20,
        'prior_cashflow_operatingCashFlow': 5,
        'balance_longTermDebt': 500,
        'balance_totalAssets': 1000,
        'prior_balance_longTermDebt': 400,
        'prior_balance_totalAssets': 1000,
        'balance_commonStock': 1100,
        'prior_balance_commonStock': 1000,
        'ratios_returnOnAssets': 0.01,
        'prior_ratios_returnOnAssets': 0.02,
        'ratios_currentRatio': 1.0,
        'prior_ratios_currentRatio': 2.0,
        'ratios_grossProfitMargin': 0.30,
        'prior_ratios_grossProfitMargin': 0.40,
        'ratios_assetTurnover': 0.5,
        'prior_ratios_assetTurnover': 0.6,
    }
    values.update(overrides)

    series = {name: [{}, {}] for name in ('income', 'balance', 'cashflow', 'ratios')}
    for key, value in values.items():
        index = 1 if key.startswith('prior_') else 0
        statement, field = key.replace('prior_', '', 1).split('_', 1)
        series[statement][index][field] = value
    return FinancialData(**series)


class TestPiotroskiScore(unittest.TestCase):
    """Test the nine-point score."""

    def test_all_tests_fail(self):
        """Baseline fixture scores zero."""
        self.assertEqual(piotroski.score(make_data()), Ok(0))

    def test_worked_example_scores_three(self):
        """Positive income and cash flow plus no dilution gives 3."""
        data = make_data(
            income_netIncome=100,
            cashflow_operatingCashFlow=80,
            ratios_returnOnAssets=0.04, prior_ratios_returnOnAssets=0.05,
            balance_longTermDebt=400, prior_balance_longTermDebt=300,
            ratios_currentRatio=1.2, prior_ratios_currentRatio=1.5,
            balance_commonStock=1000, prior_balance_commonStock=1000,
            ratios_grossProfitMargin=0.35, prior_ratios_grossProfitMargin=0.40,
            ratios_assetTurnover=0.8, prior_ratios_assetTurnover=0.9,
        )
        self.assertEqual(piotroski.score(data), Ok(3))

    def test_perfect_score(self):
        """Every test passing gives 9."""
        data = make_data(
            income_netIncome=100,
            cashflow_operatingCashFlow=150,
            ratios_returnOnAssets=0.05,
            balance_longTermDebt=100,
            ratios_currentRatio=2.5,
            balance_commonStock=1000,
            ratios_grossProfitMargin=0.45,
            ratios_assetTurnover=0.9,
        )
        self.assertEqual(piotroski.score(data), Ok(9))

    def test_insufficient_periods(self):
        """Any series with fewer than two periods is an error, not a zero."""
        data = make_data()
        short = FinancialData(income=data.income, balance=data.balance,
                              cashflow=data.cashflow[:1], ratios=data.ratios)
        result = piotroski.score(short)
        self.assertIsInstance(result, Err)
        self.assertIsInstance(result.error, InsufficientDataError)

    def test_empty_data(self):
        """No statements at all is insufficient data."""
        self.assertIsInstance(piotroski.score(FinancialData()), Err)

    def test_missing_total_assets_defaults_to_one(self):
        """Leverage falls back to dividing by 1 instead of raising."""
        data = make_data(balance_totalAssets=0, prior_balance_totalAssets=None,
                         balance_longTermDebt=1, prior_balance_longTermDebt=2)
        checks = piotroski.f_score_checks(data)
        self.assertTrue(checks['decreasing_leverage'])

    def test_missing_fields_default_to_zero(self):
        """Two empty periods score only the no-dilution test (0 <= 0)."""
        data = FinancialData(income=[{}, {}], balance=[{}, {}], cashflow=[{}, {}], ratios=[{}, {}])
        self.assertEqual(piotroski.score(data), Ok(1))

    def test_score_in_range(self):
        """Scores stay within [0, 9]."""
        for overrides in ({}, {'income_netIncome': 1}, {'ratios_currentRatio': 3}):
            match piotroski.score(make_data(**overrides)):
                case Ok(value):
                    self.assertGreaterEqual(value, 0)
                    self.assertLessEqual(value, 9)
                case _:
                    self.fail("expected a score")

    def test_flipping_one_test_never_decreases_score(self):
        """Each single improvement adds to the score."""
        base = piotroski.score(make_data()).value
        flips = [
            {'income_netIncome': 10},
            {'ratios_returnOnAssets': 0.03},
            {'balance_longTermDebt': 300},
            {'ratios_currentRatio': 3.0},
            {'balance_commonStock': 900},
            {'ratios_grossProfitMargin': 0.5},
            {'ratios_assetTurnover': 0.7},
            {'cashflow_operatingCashFlow': 5},
        ]
        for overrides in flips:
            with self.subTest(overrides=overrides):
                self.assertGreater(piotroski.score(make_data(**overrides)).value, base)


class TestPiotroskiRank(unittest.TestCase):
    """Test the caller policy: keep >= 7 and sort descending."""

    def _candidate(self, symbol, data):
        return PiotroskiCandidate(symbol=symbol, name=symbol, data=data)

    def test_rank_filters_and_sorts(self):
        """Low scores and short histories are dropped; the rest sort by score."""
        nine = make_data(
            income_netIncome=100, cashflow_operatingCashFlow=150, ratios_returnOnAssets=0.05,
            balance_longTermDebt=100, ratios_currentRatio=2.5, balance_commonStock=1000,
            ratios_grossProfitMargin=0.45, ratios_assetTurnover=0.9,
        )
        seven = make_data(
            income_netIncome=100, cashflow_operatingCashFlow=150, ratios_returnOnAssets=0.05,
            balance_longTermDebt=100, ratios_currentRatio=2.5, balance_commonStock=1000,
        )
        three = make_data(income_netIncome=100, cashflow_operatingCashFlow=80, balance_commonStock=1000)
        candidates = [
            self._candidate('SEVEN', seven),
            self._candidate('THREE', three),
            self._candidate('SHORT', FinancialData(income=[{}])),
            self._candidate('NINE', nine),
        ]

        ranked = piotroski.rank(candidates)

        self.assertEqual([(s.symbol, s.f_score) for s in ranked], [('NINE', 9), ('SEVEN', 7)])

    def test_rank_custom_threshold(self):
        """The retention threshold is configurable."""
        three = make_data(income_netIncome=100, cashflow_operatingCashFlow=80, balance_commonStock=1000)
        ranked = piotroski.rank([self._candidate('THREE', three)], min_score=3)
        self.assertEqual(len(ranked), 1)


if __name__ == '__main__':
    unittest.main()
