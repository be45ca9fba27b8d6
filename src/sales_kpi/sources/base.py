"""Abstract base class for record sources (schema adapters)."""

import csv
import json
import logging
from abc import ABC, abstractmethod
from io import StringIO
from pathlib import Path
from typing import Optional

import httpx

from sales_kpi.errors import SourceError
from sales_kpi.models.deal import DealRecord, SourceSchema
from sales_kpi.models.raw import RawRecord

logger = logging.getLogger(__name__)


class BaseSource(ABC):
    """
    Standard interface for source schemas.
    Each source turns its own loose rows into canonical DealRecords; nothing
    downstream ever sees a source-specific field name.
    """

    source_id: str = ""
    schema: SourceSchema = SourceSchema.ATTENDANCE

    DEFAULT_HEADERS = {
        "User-Agent": "sales-kpi/0.1",
        "Accept": "application/json, text/csv, text/plain, */*",
    }

    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client

    @abstractmethod
    def normalize(self, raw: RawRecord) -> DealRecord:
        """
        Convert a raw row to DealRecord. Raises SourceError when the row lacks
        an id or a usable date.
        """
        pass

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=60.0,
                follow_redirects=True,
                headers=self.DEFAULT_HEADERS,
            )
        return self._client

    def _fetch_text(self, location: str | Path) -> str:
        """Read an export from a local path or an http(s) URL."""
        loc = str(location)
        if loc.startswith(("http://", "https://")):
            try:
                response = self._http().get(loc)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise SourceError(f"Failed to fetch {loc}: {e}") from e
            return response.text
        try:
            return Path(loc).read_text(encoding="utf-8")
        except OSError as e:
            raise SourceError(f"Failed to read {loc}: {e}") from e

    def parse_rows(self, content: str, location: str | Path = "") -> list[RawRecord]:
        """Parse CSV (by .csv suffix) or JSON (array, or object with 'data'/'records')."""
        name = Path(str(location).split("?")[0]).name if location else ""
        if str(location).lower().split("?")[0].endswith(".csv"):
            return RawRecord.from_rows(csv.DictReader(StringIO(content)), name)
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as e:
            raise SourceError(f"Invalid JSON in {location or 'input'}: {e}") from e
        if isinstance(payload, dict):
            payload = payload.get("data", payload.get("records"))
        if not isinstance(payload, list):
            raise SourceError(f"Expected a list of records in {location or 'input'}")
        return RawRecord.from_rows(payload, name)

    def normalize_many(self, raws: list[RawRecord]) -> list[DealRecord]:
        """Normalize rows, skipping (and logging) rows that cannot be adapted."""
        records: list[DealRecord] = []
        for raw in raws:
            try:
                records.append(self.normalize(raw))
            except SourceError as e:
                logger.warning("Skipping %s %s: %s", self.source_id, raw.label, e)
        return records

    def fetch_rows(self, location: str | Path) -> list[RawRecord]:
        """Fetch and parse an export without normalizing it."""
        return self.parse_rows(self._fetch_text(location), location)

    def load(self, location: str | Path) -> list[DealRecord]:
        """Fetch, parse and normalize a full snapshot."""
        records = self.normalize_many(self.fetch_rows(location))
        logger.info("Loaded %d %s records from %s", len(records), self.source_id, location)
        return records
