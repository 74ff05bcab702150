"""Broker store backed by a single JSON document on disk.

Layout::

    {
      "brokers": {
        "<slug>": {<NormalizedBrokerRecord as JSON>},
        ...
      }
    }
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from broker_import.models.broker import NormalizedBrokerRecord, slugify
from broker_import.store.base import BrokerStore, ImportResult, count_entities, record_key
from broker_import.store.exceptions import BrokerNotFoundError, StoreError

logger = logging.getLogger(__name__)


class JsonFileBrokerStore(BrokerStore):
    """Upserting broker store persisted to one JSON file.

    The file is read on first access and rewritten after every import.
    A missing file is treated as an empty store.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._records: Optional[Dict[str, dict]] = None

    def _load(self) -> Dict[str, dict]:
        if self._records is not None:
            return self._records

        if not self.path.exists():
            self._records = {}
            return self._records

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreError(f"Failed to read broker store {self.path}: {e}") from e

        brokers = data.get("brokers") if isinstance(data, dict) else None
        if not isinstance(brokers, dict):
            raise StoreError(f"Invalid broker store format in {self.path}")

        self._records = brokers
        logger.debug(f"Loaded {len(brokers)} brokers from {self.path}")
        return self._records

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp_path.write_text(
                json.dumps({"brokers": self._records}, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(f"Failed to write broker store {self.path}: {e}") from e

    def exists(self, name: str) -> bool:
        target = slugify(name)
        records = self._load()
        if target in records:
            return True
        for payload in records.values():
            stored_name = (payload.get("broker") or {}).get("name")
            if stored_name and slugify(stored_name) == target:
                return True
        return False

    def import_record(self, record: NormalizedBrokerRecord) -> ImportResult:
        key = record_key(record)
        if not key:
            return ImportResult(success=False, errors=["Broker name is required"])

        records = self._load()
        replaced = key in records

        payload = record.model_dump(mode="json")
        payload["broker"]["slug"] = key
        records[key] = payload
        self._save()

        logger.debug(f"{'Updated' if replaced else 'Inserted'} broker {key} in {self.path}")
        return ImportResult(success=True, stats=count_entities(record), broker_id=key)

    def get(self, slug: str) -> NormalizedBrokerRecord:
        records = self._load()
        if slug not in records:
            raise BrokerNotFoundError(slug)
        try:
            return NormalizedBrokerRecord.model_validate(records[slug])
        except ValidationError as e:
            raise StoreError(f"Stored broker '{slug}' is malformed: {e}") from e

    def list_slugs(self) -> List[str]:
        return sorted(self._load())
