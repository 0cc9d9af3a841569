"""
Read-only domain whitelist lookup.

Records are keyed by domain and matched against a host exactly or as a
parent domain; the most specific domain wins. The whitelist is loaded once
(from a dict, a JSON file or a TOML file) and only queried afterwards.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import tomli

from embedscout.utils import extract_host, host_matches_domain

logger = logging.getLogger(__name__)


class Whitelist:
    """Domain -> record lookup. Lookups never fail."""

    def __init__(self, records: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._records: Dict[str, Dict[str, Any]] = {
            domain.lower().strip("."): dict(record)
            for domain, record in (records or {}).items()
        }
        # Longest domain first so the most specific record matches
        self._order = sorted(self._records, key=len, reverse=True)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Whitelist":
        """
        Load records from a JSON or TOML file.

        JSON files hold either {"domain": {...}} or {"domains": {"domain": {...}}};
        TOML files use a [domains."example.com"] table per record.
        """
        path = Path(path).expanduser()
        if path.suffix.lower() == ".toml":
            with open(path, "rb") as f:
                data = tomli.load(f)
        else:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)

        records = data.get("domains", data) if isinstance(data, dict) else {}
        logger.info(f"Loaded {len(records)} whitelist records from {path}")
        return cls(records)

    def lookup(self, host: str) -> Dict[str, Any]:
        """
        Find the record for a host.

        Returns:
            A copy of the matching record, or an empty dict
        """
        host = (host or "").lower()
        for domain in self._order:
            if host_matches_domain(host, domain):
                record = dict(self._records[domain])
                record.setdefault("domain", domain)
                return record
        return {}

    def find_record_for(self, uri: str) -> Dict[str, Any]:
        """Lookup by URI instead of host."""
        return self.lookup(extract_host(uri))

    def __len__(self) -> int:
        return len(self._records)
