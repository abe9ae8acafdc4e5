"""Input validation package."""

from kubera.validation.validator import LedgerValidator, ValidationError, parse_decimal

__all__ = ["LedgerValidator", "ValidationError", "parse_decimal"]
