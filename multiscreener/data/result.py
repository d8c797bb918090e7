"""
Two-case result variant returned by the data source and the scoring engines.

Callers branch on it with ``match``:

    match client.fetch('quote/AAPL'):
        case Ok(payload):
            ...
        case Err(error):
            ...
"""

from dataclasses import dataclass
from typing import Any, Union

from ..exceptions import ScreenerError


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    error: ScreenerError

    @property
    def reason(self) -> str:
        return str(self.error)


Result = Union[Ok, Err]
