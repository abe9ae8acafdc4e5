"""
Ledger Model

The session's handle on the ledger document. Every mutation:
1. Validates the user input (nothing is read or written if it is bad)
2. Reads the whole document from the RecordStore
3. Changes a copy in memory
4. Writes the whole document back

CRITICAL: Steps 2-4 run under one asyncio.Lock. Two quick taps on
"Add" therefore produce two expenses instead of one overwriting the
other. Anything else that rewrites the document (snapshots) must go
through mutate() so it shares the same lock.

Missing ids on update/delete are not errors; they return None/False
and nothing is written.
"""

import asyncio
from typing import Any, Callable, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from kubera.activity import ActivityLogger
from kubera.models.activity import ActivityEventBuilder
from kubera.models.ledger import (
    DEFAULT_PORTFOLIO_NAME,
    Asset,
    AssetType,
    Expense,
    Holding,
    LedgerDocument,
    LedgerEntry,
    LedgerSide,
    ValidationIssue,
)
from kubera.services.storage import RecordStore
from kubera.validation import LedgerValidator, ValidationError


T = TypeVar("T")

# Fields update_asset() may change
UPDATABLE_ASSET_FIELDS = frozenset({"name", "type", "balance", "holdings"})


class LedgerModel:
    """
    Expenses, categories, assets and signed ledgers of one session.

    Usage:
        ledger = LedgerModel(RecordStore(JsonFileStorage()))
        await ledger.refresh()
        await ledger.add_expense("40", "Groceries", "Weekly shop")
    """

    def __init__(
        self,
        store: RecordStore,
        validator: Optional[LedgerValidator] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._store = store
        self._validator = validator or LedgerValidator()
        self._activity = activity_logger or ActivityLogger()
        self._lock = asyncio.Lock()
        self._document: Optional[LedgerDocument] = None

    # =========================================================================
    # Document access
    # =========================================================================

    @property
    def document(self) -> LedgerDocument:
        """
        The last document read or written by this session.

        Raises:
            RuntimeError: If refresh() has not been awaited yet
        """
        if self._document is None:
            raise RuntimeError("Ledger not loaded yet; await refresh() first")
        return self._document

    @property
    def loaded(self) -> bool:
        return self._document is not None

    async def refresh(self) -> LedgerDocument:
        """Re-read the document from the store."""
        async with self._lock:
            self._document = await self._store.load()
            return self._document

    async def mutate(self, change: Callable[[LedgerDocument], T]) -> T:
        """
        Apply a change to the stored document under the write lock.

        `change` receives a private copy of the current document and edits
        it in place. If it returns None or False, nothing changed and no
        write happens. If it raises, nothing is written.

        Returns:
            Whatever `change` returned
        """
        async with self._lock:
            current = await self._store.load()
            working = current.model_copy(deep=True)

            result = change(working)
            if result is None or result is False:
                self._document = current
                return result

            self._document = await self._store.save(working)
            return result

    async def clear(self) -> LedgerDocument:
        """
        Wipe the stored data and reload the freshly seeded document.

        Runs under the write lock, so a mutation in flight either lands
        before the wipe or starts from the seeded document.
        """
        async with self._lock:
            await self._store.clear()
            self._document = await self._store.load()
            return self._document

    def _validated(self, operation: str, check: Callable[..., T], *args: Any) -> T:
        try:
            return check(*args)
        except ValidationError as e:
            self._activity.log_validation_failed(
                operation, [issue.model_dump() for issue in e.issues]
            )
            raise

    def _build(self, operation: str, model: Callable[..., T], **fields: Any) -> T:
        """Construct a record, reporting model-level rejections as ValidationError."""
        try:
            return model(**fields)
        except PydanticValidationError as e:
            error = _from_pydantic(e)
            self._activity.log_validation_failed(
                operation, [issue.model_dump() for issue in error.issues]
            )
            raise error from e

    # =========================================================================
    # Expenses and categories
    # =========================================================================

    async def add_expense(
        self,
        amount: Any,
        category: Any,
        description: Any = None,
    ) -> Expense:
        """
        Record a new expense stamped with the current time.

        A category not yet in the category set is added with it.

        Raises:
            ValidationError: Amount missing, not a number, or not above zero;
                category blank; text longer than its limit
        """
        parsed_amount, parsed_category, note = self._validated(
            "add_expense", self._validator.validate_expense, amount, category, description
        )
        expense = self._build(
            "add_expense", Expense,
            amount=parsed_amount, category=parsed_category, description=note,
        )

        def change(doc: LedgerDocument) -> Expense:
            doc.expenses.append(expense)
            if expense.category not in doc.categories:
                doc.categories.append(expense.category)
            return expense

        await self.mutate(change)
        self._activity.log(ActivityEventBuilder.expense_added(
            expense.id, str(expense.amount), expense.category
        ))
        return expense

    async def delete_expense(self, expense_id: str) -> bool:
        """Remove an expense. Returns False if it did not exist."""

        def change(doc: LedgerDocument) -> bool:
            kept = [e for e in doc.expenses if e.id != expense_id]
            if len(kept) == len(doc.expenses):
                return False
            doc.expenses = kept
            return True

        deleted = await self.mutate(change)
        if deleted:
            self._activity.log(ActivityEventBuilder.expense_deleted(expense_id))
        return deleted

    async def add_category(self, name: Any) -> bool:
        """
        Add an expense category.

        Returns:
            False if the exact (case-sensitive) name already exists
        """
        category = self._validated("add_category", self._validator.validate_name, name, "category")

        def change(doc: LedgerDocument) -> bool:
            if category in doc.categories:
                return False
            doc.categories.append(category)
            return True

        added = await self.mutate(change)
        if added:
            self._activity.log(ActivityEventBuilder.category_added(category))
        return added

    # =========================================================================
    # Assets
    # =========================================================================

    async def add_asset(
        self,
        name: Any,
        asset_type: Any,
        balance: Any = None,
    ) -> Asset:
        """
        Add an asset or debt.

        Portfolio assets always start with balance 0 and no holdings,
        whatever balance was supplied.
        """
        is_portfolio = asset_type == AssetType.PORTFOLIO.value
        parsed_name, parsed_type, parsed_balance = self._validated(
            "add_asset", self._validator.validate_asset, name, asset_type, balance, is_portfolio
        )
        asset = self._build(
            "add_asset", Asset,
            name=parsed_name,
            type=parsed_type,
            balance=parsed_balance,
            holdings=[] if is_portfolio else None,
        )

        def change(doc: LedgerDocument) -> Asset:
            doc.assets.append(asset)
            return asset

        await self.mutate(change)
        self._activity.log(ActivityEventBuilder.asset_added(asset.id, asset.name, asset.type))
        return asset

    async def update_asset(self, asset_id: str, **fields: Any) -> Optional[Asset]:
        """
        Shallow-merge fields into an asset. Unspecified fields are kept.

        Returns:
            The updated asset, or None if no asset has this id

        Raises:
            ValidationError: Unknown field, or the merged asset is invalid
        """
        unknown = sorted(set(fields) - UPDATABLE_ASSET_FIELDS)
        if unknown:
            issues = [
                ValidationIssue(
                    field=name,
                    issue_type="not_updatable",
                    message=f"Asset field '{name}' cannot be updated",
                )
                for name in unknown
            ]
            self._activity.log_validation_failed("update_asset", [i.model_dump() for i in issues])
            raise ValidationError(issues)

        if "balance" in fields:
            fields["balance"] = self._validated(
                "update_asset", self._validator.validate_balance, fields["balance"]
            )

        def change(doc: LedgerDocument) -> Optional[Asset]:
            for index, asset in enumerate(doc.assets):
                if asset.id != asset_id:
                    continue
                merged = {**asset.model_dump(), **fields}
                try:
                    updated = Asset.model_validate(merged)
                except PydanticValidationError as e:
                    raise _from_pydantic(e) from e
                doc.assets[index] = updated
                return updated
            return None

        try:
            updated = await self.mutate(change)
        except ValidationError as e:
            self._activity.log_validation_failed(
                "update_asset", [issue.model_dump() for issue in e.issues]
            )
            raise

        if updated is not None:
            self._activity.log(ActivityEventBuilder.asset_updated(asset_id, sorted(fields)))
        return updated

    async def delete_asset(self, asset_id: str) -> bool:
        """Remove an asset. Returns False if it did not exist."""

        def change(doc: LedgerDocument) -> bool:
            kept = [a for a in doc.assets if a.id != asset_id]
            if len(kept) == len(doc.assets):
                return False
            doc.assets = kept
            return True

        deleted = await self.mutate(change)
        if deleted:
            self._activity.log(ActivityEventBuilder.asset_deleted(asset_id))
        return deleted

    async def add_holding(
        self,
        ticker: Any,
        shares: Any,
        purchase_price: Any,
        asset_id: Optional[str] = None,
    ) -> Holding:
        """
        Append a purchase lot to a Portfolio asset.

        Without asset_id the first Portfolio asset is used; if there is
        none, a Portfolio named "Stocks" is created in the same write.
        Lots of the same ticker are never merged.

        Raises:
            ValidationError: Bad ticker/shares/price, or asset_id does not
                name a Portfolio asset
        """
        parsed_ticker, parsed_shares, parsed_price = self._validated(
            "add_holding", self._validator.validate_holding, ticker, shares, purchase_price
        )
        holding = self._build(
            "add_holding", Holding,
            ticker=parsed_ticker,
            shares=parsed_shares,
            purchase_price=parsed_price,
        )

        def change(doc: LedgerDocument) -> tuple[str, bool]:
            created = False
            if asset_id is not None:
                target = doc.find_asset(asset_id)
                if target is None or not target.is_portfolio:
                    raise ValidationError([ValidationIssue(
                        field="asset_id",
                        issue_type="not_a_portfolio",
                        message=f"No Portfolio asset with id {asset_id}",
                    )])
            else:
                portfolios = doc.portfolio_assets()
                if portfolios:
                    target = portfolios[0]
                else:
                    target = Asset(
                        name=DEFAULT_PORTFOLIO_NAME,
                        type=AssetType.PORTFOLIO,
                        holdings=[],
                    )
                    doc.assets.append(target)
                    created = True

            target.holdings.append(holding)
            return target.id, created

        try:
            target_id, created = await self.mutate(change)
        except ValidationError as e:
            self._activity.log_validation_failed(
                "add_holding", [issue.model_dump() for issue in e.issues]
            )
            raise

        self._activity.log(ActivityEventBuilder.holding_added(
            target_id, holding.ticker, str(holding.shares), created
        ))
        return holding

    # =========================================================================
    # Signed ledgers
    # =========================================================================

    async def add_ledger_entry(
        self,
        side: Any,
        label: Any,
        value_change: Any,
        category: Optional[str] = None,
    ) -> LedgerEntry:
        """Append a signed value change to the asset or debt ledger."""
        ledger_side = self._validated("add_ledger_entry", _parse_side, side)
        parsed_label, parsed_change, parsed_category = self._validated(
            "add_ledger_entry", self._validator.validate_ledger_entry,
            label, value_change, category,
        )
        entry = self._build(
            "add_ledger_entry", LedgerEntry,
            label=parsed_label,
            value_change=parsed_change,
            category=parsed_category,
        )

        def change(doc: LedgerDocument) -> LedgerEntry:
            doc.ledger(ledger_side).append(entry)
            return entry

        await self.mutate(change)
        self._activity.log(ActivityEventBuilder.ledger_entry_added(
            entry.id, ledger_side.value, str(entry.value_change)
        ))
        return entry

    async def delete_ledger_entry(self, side: Any, entry_id: str) -> bool:
        """Remove a ledger entry. Returns False if it did not exist."""
        ledger_side = self._validated("delete_ledger_entry", _parse_side, side)

        def change(doc: LedgerDocument) -> bool:
            entries = doc.ledger(ledger_side)
            kept = [e for e in entries if e.id != entry_id]
            if len(kept) == len(entries):
                return False
            entries[:] = kept
            return True

        deleted = await self.mutate(change)
        if deleted:
            self._activity.log(ActivityEventBuilder.ledger_entry_deleted(
                entry_id, ledger_side.value
            ))
        return deleted


def _parse_side(side: Any) -> LedgerSide:
    try:
        return LedgerSide(side)
    except ValueError:
        raise ValidationError([ValidationIssue(
            field="side",
            issue_type="invalid_value",
            message=f"Ledger side must be 'asset' or 'debt', got {side!r}",
        )]) from None


def _from_pydantic(error: PydanticValidationError) -> ValidationError:
    """Translate a model validation failure into user-facing issues."""
    return ValidationError([
        ValidationIssue(
            field=".".join(str(part) for part in detail["loc"]) or "asset",
            issue_type=detail["type"],
            message=detail["msg"],
        )
        for detail in error.errors()
    ])
