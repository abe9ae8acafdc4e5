"""
Record Store

Owns the single persisted ledger document.

Contract:
- load() returns the stored document, seeding (and persisting) the
  first-run default when nothing is stored yet
- save() replaces the whole document and stamps last_updated
- clear() removes the document and any legacy keys, nothing else

IMPORTANT: save() never merges. Callers read, modify and write back the
entire document (see LedgerModel, which serializes those cycles).

Older app versions kept expenses, categories, assets and the net worth
history under four separate keys. The first load folds those into the
single document and removes them once the new document is safely saved.
"""

from typing import Optional

from pydantic import TypeAdapter, ValidationError

from kubera.activity import ActivityLogger
from kubera.config import get_settings
from kubera.models.activity import ActivityEventBuilder
from kubera.models.ledger import (
    Asset,
    Expense,
    LedgerDocument,
    NetWorthSnapshot,
    utc_now,
)
from kubera.services.storage.interface import (
    CorruptDocumentError,
    KeyValueStorageInterface,
    PersistenceError,
)


# Keys written by the multi-key app layout, in migration order
LEGACY_KEYS = {
    "expenses": "kubera_expenses",
    "categories": "kubera_categories",
    "assets": "kubera_assets",
    "net_worth_history": "kubera_net_worth_history",
}

_LEGACY_ADAPTERS = {
    "expenses": TypeAdapter(list[Expense]),
    "categories": TypeAdapter(list[str]),
    "assets": TypeAdapter(list[Asset]),
    "net_worth_history": TypeAdapter(list[NetWorthSnapshot]),
}


class RecordStore:
    """Reads and writes the ledger document through a key-value backend."""

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        key: Optional[str] = None,
        default_categories: Optional[list[str]] = None,
        default_currency: Optional[str] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._storage = storage
        self._key = key or get_settings().storage.document_key
        self._default_categories = default_categories
        self._default_currency = default_currency
        self._activity = activity_logger or ActivityLogger()

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> LedgerDocument:
        """
        Load the ledger document.

        Raises:
            PersistenceError: If the backend cannot be read
            CorruptDocumentError: If the stored JSON is not a valid document
        """
        try:
            raw = await self._storage.get_item(self._key)
        except PersistenceError as e:
            self._activity.log_persistence_failed("load", str(e))
            raise

        if raw is None:
            return await self._seed()

        return self._decode(raw)

    async def save(self, document: LedgerDocument) -> LedgerDocument:
        """
        Replace the stored document.

        Returns:
            The document exactly as persisted (with the new last_updated)

        Raises:
            PersistenceError: If serialization or the write fails.
                The previously stored document is left intact.
        """
        stamped = document.model_copy(update={"last_updated": utc_now()})

        try:
            payload = stamped.to_json()
        except ValueError as e:
            self._activity.log_persistence_failed("save", str(e))
            raise PersistenceError(f"Failed to serialize ledger document: {e}") from e

        try:
            await self._storage.set_item(self._key, payload)
        except PersistenceError as e:
            self._activity.log_persistence_failed("save", str(e))
            raise

        return self._decode(payload)

    async def clear(self) -> None:
        """
        Remove the document and any legacy keys.

        Other keys in the backend are left alone.
        """
        try:
            for key in (self._key, *LEGACY_KEYS.values()):
                await self._storage.remove_item(key)
        except PersistenceError as e:
            self._activity.log_persistence_failed("clear", str(e))
            raise
        self._activity.log(ActivityEventBuilder.document_cleared(self._key))

    def _decode(self, raw: str) -> LedgerDocument:
        try:
            return LedgerDocument.model_validate_json(raw)
        except ValidationError as e:
            self._activity.log_persistence_failed("decode", str(e))
            raise CorruptDocumentError(
                f"Stored document under {self._key} is invalid: {e}"
            ) from e

    async def _seed(self) -> LedgerDocument:
        """Create, persist and return the first-run document."""
        document = LedgerDocument.seeded(self._default_categories, self._default_currency)

        legacy = await self._read_legacy()
        if legacy:
            document = self._merge_legacy(document, legacy)

        saved = await self.save(document)

        if legacy:
            for field in legacy:
                await self._storage.remove_item(LEGACY_KEYS[field])
            self._activity.log(ActivityEventBuilder.legacy_migrated(
                self._key,
                {field: len(values) for field, values in legacy.items()},
            ))

        self._activity.log(ActivityEventBuilder.document_seeded(self._key, bool(legacy)))
        return saved

    async def _read_legacy(self) -> dict[str, list]:
        """Read whatever legacy keys exist. Undecodable keys are left in place."""
        found = {}
        for field, legacy_key in LEGACY_KEYS.items():
            try:
                raw = await self._storage.get_item(legacy_key)
                if raw is None:
                    continue
                found[field] = _LEGACY_ADAPTERS[field].validate_json(raw)
            except (CorruptDocumentError, ValidationError) as e:
                self._activity.log_persistence_failed(f"migrate {legacy_key}", str(e))
        return found

    @staticmethod
    def _merge_legacy(document: LedgerDocument, legacy: dict[str, list]) -> LedgerDocument:
        update = {}

        # Legacy categories replaced the defaults in the old app
        categories = list(legacy.get("categories") or document.categories)
        for expense in legacy.get("expenses", []):
            if expense.category not in categories:
                categories.append(expense.category)
        update["categories"] = categories

        for field in ("expenses", "assets", "net_worth_history"):
            if field in legacy:
                update[field] = legacy[field]

        return document.model_copy(update=update)
