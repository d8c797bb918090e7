"""
Multi-strategy equity screener.

Runs Magic Formula, Piotroski F-Score, Value Scan and CANSLIM screens over
a symbol universe fetched from Financial Modeling Prep.
"""

__version__ = "1.2.0"
