"""
Value Scan criteria definitions and validation.

Each builder returns a function that evaluates one ratio snapshot and
returns ``(passed, failure_reason)``. A missing ratio always fails.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..exceptions import ValidationError
from ..utils.fields import get_number

logger = logging.getLogger(__name__)

Criterion = Callable[[Mapping[str, Any]], Tuple[bool, str]]

DEFAULT_VALUE_CRITERIA = {
    'pe_max': 15,
    'pb_max': 1.5,
    'current_ratio_min': 2,
    'debt_to_equity_max': 0.5,
    'positive_net_margin': True,
}


def max_pe_ratio(value: float) -> Criterion:
    """
    Create a criterion for a positive P/E ratio strictly below ``value``.

    A non-positive P/E means losses, which a value screen does not treat as
    cheap.

    Args:
        value: Exclusive upper bound for P/E

    Returns:
        Function that evaluates ``priceEarningsRatio``
    """
    def evaluate(ratios: Mapping[str, Any]) -> Tuple[bool, str]:
        pe_ratio = get_number(ratios, 'priceEarningsRatio')
        if pe_ratio is None:
            return False, "pe_ratio_missing"
        if pe_ratio <= 0:
            return False, f"pe_ratio_not_positive ({pe_ratio:.2f})"
        if pe_ratio < value:
            return True, ""
        return False, f"pe_ratio_above_max ({pe_ratio:.2f} >= {value:.2f})"

    return evaluate


def max_pb_ratio(value: float) -> Criterion:
    """
    Create a criterion for a positive price-to-book ratio below ``value``.

    Args:
        value: Exclusive upper bound for P/B

    Returns:
        Function that evaluates ``priceToBookRatio``
    """
    def evaluate(ratios: Mapping[str, Any]) -> Tuple[bool, str]:
        pb_ratio = get_number(ratios, 'priceToBookRatio')
        if pb_ratio is None:
            return False, "pb_ratio_missing"
        if pb_ratio <= 0:
            return False, f"pb_ratio_not_positive ({pb_ratio:.2f})"
        if pb_ratio < value:
            return True, ""
        return False, f"pb_ratio_above_max ({pb_ratio:.2f} >= {value:.2f})"

    return evaluate


def min_current_ratio(value: float) -> Criterion:
    """
    Create a criterion for a current ratio strictly above ``value``.

    Graham asked for current assets of at least twice current liabilities.
    """
    def evaluate(ratios: Mapping[str, Any]) -> Tuple[bool, str]:
        current_ratio = get_number(ratios, 'currentRatio')
        if current_ratio is None:
            return False, "current_ratio_missing"
        if current_ratio > value:
            return True, ""
        return False, f"current_ratio_below_min ({current_ratio:.2f} <= {value:.2f})"

    return evaluate


def max_debt_to_equity(value: float) -> Criterion:
    """Create a criterion for a debt-to-equity ratio strictly below ``value``."""
    def evaluate(ratios: Mapping[str, Any]) -> Tuple[bool, str]:
        debt_to_equity = get_number(ratios, 'debtEquityRatio')
        if debt_to_equity is None:
            return False, "debt_to_equity_missing"
        if debt_to_equity < value:
            return True, ""
        return False, f"debt_to_equity_above_max ({debt_to_equity:.2f} >= {value:.2f})"

    return evaluate


def positive_net_margin() -> Criterion:
    """Create a criterion requiring a positive net profit margin."""
    def evaluate(ratios: Mapping[str, Any]) -> Tuple[bool, str]:
        margin = get_number(ratios, 'netProfitMargin')
        if margin is None:
            return False, "net_profit_margin_missing"
        if margin > 0:
            return True, ""
        return False, f"net_profit_margin_not_positive ({margin:.2%})"

    return evaluate


CRITERION_BUILDERS = {
    'pe_max': max_pe_ratio,
    'pb_max': max_pb_ratio,
    'current_ratio_min': min_current_ratio,
    'debt_to_equity_max': max_debt_to_equity,
    'positive_net_margin': positive_net_margin,
}


def validate_criteria(criteria_config: Mapping[str, Any]) -> None:
    """
    Check that every key names a known criterion with a usable value.

    Raises:
        ValidationError: On an unknown key or a non-numeric threshold
    """
    for key, value in criteria_config.items():
        if key not in CRITERION_BUILDERS:
            raise ValidationError(f"Unknown criterion: {key}")
        if key == 'positive_net_margin':
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"Criterion {key} needs a numeric threshold, got {value!r}")


def build_criteria_functions(criteria_config: Optional[Mapping[str, Any]] = None) -> List[Tuple[str, Criterion]]:
    """
    Build criterion functions from configuration.

    Args:
        criteria_config: Threshold values keyed by criterion name. Defaults
            to DEFAULT_VALUE_CRITERIA.

    Returns:
        List of tuples (criterion_name, evaluation_function)
    """
    if criteria_config is None:
        criteria_config = DEFAULT_VALUE_CRITERIA
    validate_criteria(criteria_config)

    functions = []
    for key, value in criteria_config.items():
        if key == 'positive_net_margin':
            # Boolean flag
            if value:
                functions.append((key, positive_net_margin()))
        else:
            functions.append((key, CRITERION_BUILDERS[key](float(value))))

    logger.debug(f"Built {len(functions)} value criteria")
    return functions


def evaluate_all(ratios: Mapping[str, Any], criteria: List[Tuple[str, Criterion]]) -> Dict[str, str]:
    """
    Evaluate every criterion against one snapshot.

    Returns:
        Failure reasons keyed by criterion name; empty when all pass
    """
    failures = {}
    for criterion_name, criterion_func in criteria:
        passed, reason = criterion_func(ratios)
        if not passed:
            failures[criterion_name] = reason
    return failures
