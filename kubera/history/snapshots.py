"""
Net Worth Snapshot History

Append-only list of point-in-time net worth values, stored in the ledger
document next to (but independent of) the live balances. Changing an
asset later never rewrites an old snapshot.

Snapshots are written through LedgerModel.mutate(), so they share the
ledger's write lock.
"""

from typing import Any, Optional

from kubera.activity import ActivityLogger
from kubera.aggregation import Prices, net_worth
from kubera.ledger import LedgerModel
from kubera.models.activity import ActivityEventBuilder
from kubera.models.ledger import LedgerDocument, NetWorthSnapshot, ValidationIssue
from kubera.validation import ValidationError, parse_decimal


def list_snapshots(doc: LedgerDocument) -> list[NetWorthSnapshot]:
    """Snapshots newest first."""
    return sorted(doc.net_worth_history, key=lambda s: s.timestamp, reverse=True)


class SnapshotHistory:
    """Records and lists net worth snapshots for one session."""

    def __init__(
        self,
        ledger: LedgerModel,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._ledger = ledger
        self._activity = activity_logger or ActivityLogger()

    async def append_snapshot(self, current_net_worth: Any) -> NetWorthSnapshot:
        """
        Store a snapshot of the given value, timestamped now.

        Raises:
            ValidationError: If the value is not a finite number
        """
        value = parse_decimal(current_net_worth)
        if value is None:
            issues = [ValidationIssue(
                field="value",
                issue_type="not_a_number",
                message="Net worth must be a number",
            )]
            self._activity.log_validation_failed(
                "append_snapshot", [issue.model_dump() for issue in issues]
            )
            raise ValidationError(issues)

        snapshot = NetWorthSnapshot(value=value)

        def change(doc: LedgerDocument) -> NetWorthSnapshot:
            doc.net_worth_history.append(snapshot)
            return snapshot

        await self._ledger.mutate(change)
        self._activity.log(ActivityEventBuilder.snapshot_appended(snapshot.id, str(value)))
        return snapshot

    async def record_net_worth(self, prices: Prices = None) -> NetWorthSnapshot:
        """
        Compute net worth from the stored document and snapshot it.

        The value is computed inside the write lock, so it always matches
        the document the snapshot is appended to.
        """

        def change(doc: LedgerDocument) -> NetWorthSnapshot:
            snapshot = NetWorthSnapshot(value=net_worth(doc, prices))
            doc.net_worth_history.append(snapshot)
            return snapshot

        snapshot = await self._ledger.mutate(change)
        self._activity.log(ActivityEventBuilder.snapshot_appended(snapshot.id, str(snapshot.value)))
        return snapshot

    def list_snapshots(self) -> list[NetWorthSnapshot]:
        """Snapshots of the session's current document, newest first."""
        return list_snapshots(self._ledger.document)
