"""
Result export: plain records, pandas DataFrames and HTML tables.
"""

import html
import math
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

NO_RESULTS_MESSAGE = (
    "No stocks were found for this screener in the processed batch. "
    "Try again later or consider a larger batch size."
)

QUOTE_COLUMNS = ['price', 'change', 'changesPercentage']

COLUMN_ORDER = {
    'magic_formula': [
        'symbol', 'name', 'combined_rank', 'ey_rank', 'roc_rank',
        'earnings_yield', 'return_on_capital', 'ebit', 'enterprise_value',
        'net_fixed_assets', 'working_capital',
    ],
    'piotroski': ['symbol', 'name', 'f_score'],
    'value_scan': [
        'symbol', 'name', 'pe_ratio', 'pb_ratio', 'current_ratio',
        'debt_equity_ratio', 'net_profit_margin',
    ],
    'canslim': ['symbol', 'name', 'score', 'criteria'],
}


def to_records(results: Iterable[Any]) -> List[Dict[str, Any]]:
    """Convert engine results (dataclasses or mappings) to plain dicts."""
    records = []
    for result in results:
        if is_dataclass(result):
            records.append(asdict(result))
        else:
            records.append(dict(result))
    return records


def sanitize_records(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace NaN/inf values with None for safe JSON encoding."""
    sanitized: List[Dict[str, Any]] = []
    for record in records:
        clean: Dict[str, Any] = {}
        for key, value in record.items():
            if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
                clean[key] = None
            else:
                clean[key] = value
        sanitized.append(clean)
    return sanitized


def to_frame(
    screener_id: str,
    results: Iterable[Any],
    quotes: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> pd.DataFrame:
    """
    Build a DataFrame of results, optionally decorated with live quotes.

    Args:
        screener_id: Screener key, used for column order
        results: Engine results in ranked order
        quotes: Live quotes keyed by symbol

    Returns:
        DataFrame preserving the result order
    """
    df = pd.DataFrame(to_records(results))
    column_order = list(COLUMN_ORDER.get(screener_id, ['symbol', 'name']))

    if quotes is not None:
        # CANSLIM already carries the last close as 'price'
        if 'price' in df.columns:
            df = df.rename(columns={'price': 'last_close'})
            column_order.append('last_close')
        for col in QUOTE_COLUMNS:
            df[col] = [
                (quotes.get(symbol) or {}).get(col) for symbol in df.get('symbol', pd.Series(dtype=object))
            ]
        column_order.extend(QUOTE_COLUMNS)
    elif screener_id == 'canslim':
        column_order.append('price')

    # Add any missing columns
    for col in column_order:
        if col not in df.columns:
            df[col] = None

    # Reorder columns
    existing_cols = [col for col in column_order if col in df.columns]
    other_cols = [col for col in df.columns if col not in column_order]
    return df[existing_cols + other_cols]


def render_table(df: pd.DataFrame) -> str:
    """Render a results DataFrame as an HTML table, or the no-results message."""
    if df.empty:
        return f'<p class="no-data-message">{NO_RESULTS_MESSAGE}</p>'

    header_html = "".join([f"<th>{html.escape(str(col))}</th>" for col in df.columns])
    rows_html = "\n".join(
        [
            "<tr>" + "".join([f"<td>{html.escape(_format_cell(value))}</td>" for value in row]) + "</tr>"
            for row in df.astype(object).where(df.notna(), None).values.tolist()
        ]
    )
    return (
        '<table class="screener-results">'
        f"<thead><tr>{header_html}</tr></thead>"
        f"<tbody>{rows_html}</tbody>"
        "</table>"
    )


def _format_cell(value: Any) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, float):
        return f"{value:,.4f}" if abs(value) < 10 else f"{value:,.2f}"
    return str(value)
