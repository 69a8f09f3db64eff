"""
Local durable cache for the month set.

A small JSON file used as a key/value blob store. The ledger keeps one
entry under CACHE_KEY holding the active family id and every MonthData
container. An absent, unreadable or malformed file is treated as "no
cache" and never raises.
"""

import json
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError

from family_budget.models.finance import LedgerModel, MonthData


logger = structlog.get_logger(__name__)

CACHE_KEY = "family_budget.months"


class CachedLedger(LedgerModel):
    """What the ledger writes under CACHE_KEY."""

    family_id: str
    months: list[MonthData]


class LocalLedgerCache:
    """JSON file holding the last known month set of one family."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("ledger_cache_unreadable", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("ledger_cache_unreadable", path=str(self._path), error="not an object")
            return {}
        return data

    def load(self) -> Optional[CachedLedger]:
        """The cached month set, or None when absent or corrupt."""
        raw = self._read_all().get(CACHE_KEY)
        if raw is None:
            return None
        try:
            return CachedLedger.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "ledger_cache_invalid",
                path=str(self._path),
                errors=e.error_count(),
            )
            return None

    def save(self, family_id: str, months: list[MonthData]) -> None:
        """
        Replace the cached month set.

        Other keys already in the file are left alone.

        Raises:
            OSError: If the file cannot be written
        """
        snapshot = CachedLedger(family_id=family_id, months=months)
        data = self._read_all()
        # NaN amounts are written as the string "NaN"
        data[CACHE_KEY] = json.loads(snapshot.model_dump_json())

        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)

    def clear(self) -> None:
        """Forget the cached month set."""
        data = self._read_all()
        if data.pop(CACHE_KEY, None) is None:
            return
        with self._path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
