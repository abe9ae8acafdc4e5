"""Ledger model package."""

from kubera.ledger.model import UPDATABLE_ASSET_FIELDS, LedgerModel

__all__ = ["UPDATABLE_ASSET_FIELDS", "LedgerModel"]
