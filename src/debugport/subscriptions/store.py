"""File-backed rule subscription store.

Each subscription document is kept as ``<id>.json`` in the store
directory; the per-subscription bookkeeping rows live together in
``items.json``. All access goes through one lock so request handlers on
different threads can share a store.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

from pydantic import TypeAdapter

from debugport.domain.models import RawSubscription, SubsItem

logger = logging.getLogger(__name__)

_items_adapter = TypeAdapter(list[SubsItem])


class SubscriptionStore:
    """Persistent subscriptions plus their ``SubsItem`` rows."""

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)
        self._lock = threading.Lock()

    @property
    def _items_file(self) -> Path:
        return self._dir / "items.json"

    def _document_file(self, subs_id: int) -> Path:
        return self._dir / f"{subs_id}.json"

    def upsert_subscription(self, subscription: RawSubscription) -> None:
        """Write ``subscription``, replacing any document with the same id."""
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            self._document_file(subscription.id).write_text(
                subscription.model_dump_json(by_alias=True), encoding="utf-8"
            )
        logger.info("Stored subscription %d (%s)", subscription.id, subscription.name)

    def get_subscription(self, subs_id: int) -> RawSubscription | None:
        with self._lock:
            path = self._document_file(subs_id)
            if not path.exists():
                return None
            return RawSubscription.model_validate_json(path.read_bytes())

    def items(self) -> list[SubsItem]:
        with self._lock:
            return self._read_items()

    def find_item(self, subs_id: int) -> SubsItem | None:
        for item in self.items():
            if item.id == subs_id:
                return item
        return None

    def insert_item(self, item: SubsItem) -> None:
        """Insert ``item``, replacing the row with the same id."""
        with self._lock:
            items = [i for i in self._read_items() if i.id != item.id]
            items.append(item)
            self._write_items(items)

    def delete_subscription(self, subs_id: int) -> bool:
        """Remove the document and its row. Returns whether anything existed."""
        with self._lock:
            existed = False
            path = self._document_file(subs_id)
            if path.exists():
                path.unlink()
                existed = True
            items = self._read_items()
            remaining = [i for i in items if i.id != subs_id]
            if len(remaining) != len(items):
                self._write_items(remaining)
                existed = True
        if existed:
            logger.info("Deleted subscription %d", subs_id)
        return existed

    def _read_items(self) -> list[SubsItem]:
        if not self._items_file.exists():
            return []
        return _items_adapter.validate_json(self._items_file.read_bytes())

    def _write_items(self, items: list[SubsItem]) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        self._items_file.write_text(
            json.dumps(_items_adapter.dump_python(items, mode="json", by_alias=True)),
            encoding="utf-8",
        )
