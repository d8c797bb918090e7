"""
Screening engines and the batch orchestrator that feeds them.
"""

from .batch import BatchOrchestrator, BatchOutcome, Listing, fetch_live_quotes
from .criteria import build_criteria_functions, validate_criteria

__all__ = [
    'BatchOrchestrator',
    'BatchOutcome',
    'Listing',
    'fetch_live_quotes',
    'build_criteria_functions',
    'validate_criteria',
]
