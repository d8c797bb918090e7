"""
JSON snapshot store for screener results and live quotes.

One file per screener under the cache directory, written once at the end of
a batch and capped at ``top_n`` records.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 50
QUOTES_KEY = 'live_quotes'


class ResultStore:
    """Key-value store of result snapshots, keyed by screener id."""

    def __init__(self, cache_dir: Path, top_n: int = DEFAULT_TOP_N):
        self.cache_dir = Path(cache_dir)
        self.top_n = top_n
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe_key = key.replace('/', '_')
        return self.cache_dir / f"{safe_key}.json"

    def save(self, screener_id: str, records: Sequence[Mapping[str, Any]]) -> Path:
        """
        Persist the first ``top_n`` records of a screener run.

        Args:
            screener_id: Screener key (e.g. 'magic_formula')
            records: Result records, already ordered

        Returns:
            Path of the written snapshot
        """
        snapshot = {
            'screener': screener_id,
            'generated_at': datetime.now(timezone.utc).isoformat(),
            'total': len(records),
            'results': [dict(r) for r in records[:self.top_n]],
        }
        path = self._path(screener_id)
        path.write_text(json.dumps(snapshot, indent=2))
        logger.info(f"Cached top {len(snapshot['results'])} of {len(records)} {screener_id} results to {path}")
        return path

    def load(self, screener_id: str) -> Optional[Dict[str, Any]]:
        """Return the snapshot for ``screener_id``, or None if absent or unreadable."""
        path = self._path(screener_id)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read snapshot {path}: {str(e)}")
            return None

    def save_quotes(self, quotes: Mapping[str, Mapping[str, Any]]) -> Path:
        """Persist live quotes keyed by symbol."""
        path = self._path(QUOTES_KEY)
        path.write_text(json.dumps(dict(quotes), indent=2))
        logger.info(f"Cached live quotes for {len(quotes)} symbols")
        return path

    def load_quotes(self) -> Dict[str, Dict[str, Any]]:
        path = self._path(QUOTES_KEY)
        if not path.exists():
            return {}
        try:
            return json.loads(path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read live quotes {path}: {str(e)}")
            return {}

    def list_snapshots(self) -> List[str]:
        return sorted(p.stem for p in self.cache_dir.glob('*.json') if p.stem != QUOTES_KEY)
