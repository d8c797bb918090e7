"""
Data access: the Financial Modeling Prep client and the result snapshot store.
"""

from .client import FMPClient
from .result import Ok, Err, Result
from .store import ResultStore

__all__ = ['FMPClient', 'Ok', 'Err', 'Result', 'ResultStore']
