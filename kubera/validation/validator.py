"""
Input Validation

Everything a user types (amounts, names, tickers) passes through here
before it can reach the ledger document.

IMPORTANT: Validation NEVER silently fixes issues. Whitespace is trimmed
and tickers are upper-cased; anything else that is wrong is reported back
as a ValidationError carrying every problem found, and no mutation happens.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from kubera.models.ledger import (
    CATEGORY_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    TICKER_MAX_LENGTH,
    ValidationIssue,
)


# Longest text accepted per input field
MAX_LENGTHS = {
    "name": NAME_MAX_LENGTH,
    "label": NAME_MAX_LENGTH,
    "type": CATEGORY_MAX_LENGTH,
    "category": CATEGORY_MAX_LENGTH,
    "description": DESCRIPTION_MAX_LENGTH,
    "ticker": TICKER_MAX_LENGTH,
}


class ValidationError(Exception):
    """
    User input was rejected.

    Carries every issue found so the caller can show all of them at once.
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]


def parse_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse user input into a finite Decimal.

    Returns None for anything that is not a finite number: empty strings,
    free text, NaN, infinities and booleans.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        # str() first so 0.1 stays 0.1 instead of its binary expansion
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not number.is_finite():
        return None
    return number


class LedgerValidator:
    """
    Validates user input for ledger mutations.

    Each validate_* method returns the cleaned values or raises
    ValidationError listing every issue found.
    """

    def _number(
        self,
        value: Any,
        field: str,
        issues: list[ValidationIssue],
        positive: bool = False,
    ) -> Optional[Decimal]:
        if value is None or (isinstance(value, str) and not value.strip()):
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field.replace('_', ' ').capitalize()} is required",
            ))
            return None

        number = parse_decimal(value)
        if number is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_a_number",
                message=f"Please enter a valid {field.replace('_', ' ')}",
            ))
            return None

        if positive and number <= 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_positive",
                message=f"{field.replace('_', ' ').capitalize()} must be greater than zero",
            ))
            return None

        return number

    def _text(
        self,
        value: Any,
        field: str,
        issues: list[ValidationIssue],
    ) -> Optional[str]:
        text = value.strip() if isinstance(value, str) else ""
        if not text:
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field.replace('_', ' ').capitalize()} is required",
            ))
            return None
        return self._within_limit(text, field, issues)

    @staticmethod
    def _within_limit(
        text: str,
        field: str,
        issues: list[ValidationIssue],
    ) -> Optional[str]:
        limit = MAX_LENGTHS.get(field)
        if limit is not None and len(text) > limit:
            issues.append(ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"{field.capitalize()} must be at most {limit} characters",
            ))
            return None
        return text

    def _optional_text(
        self,
        value: Any,
        field: str,
        issues: list[ValidationIssue],
    ) -> Optional[str]:
        """Blank or missing is fine; anything else must be text within the limit."""
        if value is None:
            return None
        if not isinstance(value, str):
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field.capitalize()} must be text",
            ))
            return None
        text = value.strip()
        if not text:
            return None
        return self._within_limit(text, field, issues)

    @staticmethod
    def _raise_if_any(issues: list[ValidationIssue]) -> None:
        if issues:
            raise ValidationError(issues)

    def validate_expense(
        self,
        amount: Any,
        category: Any,
        description: Any = None,
    ) -> tuple[Decimal, str, Optional[str]]:
        """
        Validate a new expense.

        Zero and negative amounts are rejected.
        """
        issues: list[ValidationIssue] = []
        parsed_amount = self._number(amount, "amount", issues, positive=True)
        parsed_category = self._text(category, "category", issues)

        note = self._optional_text(description, "description", issues)

        self._raise_if_any(issues)
        return parsed_amount, parsed_category, note

    def validate_name(self, value: Any, field: str = "name") -> str:
        """Validate a required, non-blank name."""
        issues: list[ValidationIssue] = []
        name = self._text(value, field, issues)
        self._raise_if_any(issues)
        return name

    def validate_asset(
        self,
        name: Any,
        asset_type: Any,
        balance: Any,
        is_portfolio: bool,
    ) -> tuple[str, str, Decimal]:
        """
        Validate a new asset.

        Portfolio assets ignore the supplied balance entirely.
        """
        issues: list[ValidationIssue] = []
        parsed_name = self._text(name, "name", issues)
        parsed_type = self._text(asset_type, "type", issues)

        parsed_balance = Decimal("0")
        if not is_portfolio:
            parsed_balance = self._number(balance, "balance", issues)

        self._raise_if_any(issues)
        return parsed_name, parsed_type, parsed_balance

    def validate_balance(self, balance: Any) -> Decimal:
        issues: list[ValidationIssue] = []
        parsed = self._number(balance, "balance", issues)
        self._raise_if_any(issues)
        return parsed

    def validate_holding(
        self,
        ticker: Any,
        shares: Any,
        purchase_price: Any,
    ) -> tuple[str, Decimal, Decimal]:
        """Validate a stock purchase lot. The ticker is upper-cased."""
        issues: list[ValidationIssue] = []
        parsed_ticker = self._text(ticker, "ticker", issues)
        parsed_shares = self._number(shares, "shares", issues, positive=True)
        parsed_price = self._number(purchase_price, "purchase_price", issues, positive=True)

        self._raise_if_any(issues)
        return parsed_ticker.upper(), parsed_shares, parsed_price

    def validate_ledger_entry(
        self,
        label: Any,
        value_change: Any,
        category: Any = None,
    ) -> tuple[str, Decimal, Optional[str]]:
        """Validate a signed ledger entry. Negative changes are allowed."""
        issues: list[ValidationIssue] = []
        parsed_label = self._text(label, "label", issues)
        parsed_change = self._number(value_change, "value_change", issues)
        parsed_category = self._optional_text(category, "category", issues)

        self._raise_if_any(issues)
        return parsed_label, parsed_change, parsed_category
