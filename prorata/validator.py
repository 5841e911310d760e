"""
ProRata INR - Data Validation Module.

This module provides the duration pre-check used before billing and
the CSV/row validation that turns campaign asset rows into
CampaignAsset records. All monetary values are converted to Decimal
type with comprehensive error reporting including row numbers.

Indian Market Context:
    - Handles INR currency formatting variations (₹, Rs., INR)
    - Accepts both lakh (1,18,000) and western (118,000) grouping
    - Dates are ISO formatted (YYYY-MM-DD) as stored by the platform

Classes:
    DurationValidation: Outcome of the duration pre-check.
    ValidationError: A single row validation failure.
    ValidationResult: Container for validation outcomes.
    AssetValidator: Main validation class for asset CSV processing.
"""

import csv
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from pathlib import Path
from typing import List, Optional, Tuple, Union

from prorata.schema import Amount, CampaignAsset, DurationMode, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DurationValidation:
    """Outcome of validate_duration. message is set when invalid."""

    is_valid: bool
    message: Optional[str] = None


def validate_duration(
    duration_days: Optional[int] = None,
    duration_mode: Optional[DurationMode] = None,
    months_count: Optional[Amount] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> DurationValidation:
    """
    Checks line item duration inputs before they reach the engine.

    Only the inputs supplied are checked. Never raises: callers decide
    whether an invalid result blocks a save.

    Args:
        duration_days: Billable days.
        duration_mode: DAYS or MONTH.
        months_count: Month count for MONTH mode.
        start_date: First booked day.
        end_date: Last booked day.

    Returns:
        DurationValidation with is_valid and a client-facing message.
    """
    if duration_days is not None and duration_days < 1:
        return DurationValidation(False, "Duration must be at least 1 day")

    if duration_mode == DurationMode.MONTH and months_count is not None:
        if to_decimal(months_count) < Decimal("0.5"):
            return DurationValidation(False, "Months must be at least 0.5")

    if start_date is not None and end_date is not None:
        if end_date < start_date:
            return DurationValidation(False, "End date must be after start date")

    return DurationValidation(True)


@dataclass
class ValidationError:
    """
    Represents a single validation error with context.

    Attributes:
        row_number: The row number in the CSV (header is row 1).
        field_name: The name of the field that failed validation.
        value: The invalid value that was provided.
        message: A client-facing error message.
    """

    row_number: int
    field_name: str
    value: str
    message: str

    def __str__(self) -> str:
        """Returns a formatted error message for client display."""
        return f"Error: Row {self.row_number} '{self.field_name}' - {self.message}"


@dataclass
class ValidationResult:
    """
    Container for asset validation results.

    Attributes:
        assets: List of successfully validated CampaignAsset objects.
        errors: List of ValidationError objects for failed rows.
        total_rows: Total number of data rows processed.
    """

    assets: List[CampaignAsset] = field(default_factory=list)
    errors: List[ValidationError] = field(default_factory=list)
    total_rows: int = 0

    @property
    def is_valid(self) -> bool:
        """Returns True if validation produced no errors."""
        return len(self.errors) == 0

    @property
    def valid_count(self) -> int:
        """Returns the number of successfully validated assets."""
        return len(self.assets)

    @property
    def error_count(self) -> int:
        """Returns the number of validation errors."""
        return len(self.errors)


class AssetValidator:
    """
    Validates campaign asset rows and converts them to CampaignAsset.

    Ensures all monetary values are converted to Decimal type and
    validates required columns, dates and data formats.

    Attributes:
        REQUIRED_COLUMNS: List of mandatory CSV column names.
        OPTIONAL_COLUMNS: List of optional CSV column names.

    Example:
        >>> validator = AssetValidator()
        >>> result = validator.validate_csv("campaign_assets.csv")
        >>> if result.is_valid:
        ...     for asset in result.assets:
        ...         print(asset.asset_id)
    """

    REQUIRED_COLUMNS = ["Asset_ID", "Negotiated_Rate"]
    OPTIONAL_COLUMNS = [
        "Card_Rate",
        "Printing_Charges",
        "Mounting_Charges",
        "Start_Date",
        "End_Date",
        "Booking_Start_Date",
        "Booking_End_Date",
        "Total_Sqft",
    ]
    MONEY_COLUMNS = {
        "Card_Rate": "card_rate",
        "Printing_Charges": "printing_charges",
        "Mounting_Charges": "mounting_charges",
    }
    DATE_PAIRS = [
        ("Start_Date", "End_Date"),
        ("Booking_Start_Date", "Booking_End_Date"),
    ]

    # Pattern to clean currency strings (removes ₹, Rs., INR, spaces, commas)
    CURRENCY_CLEAN_PATTERN = re.compile(r"₹|Rs\.?|INR|[\s,]")

    def validate_csv(self, file_path: Union[str, Path]) -> ValidationResult:
        """
        Validates a CSV file of campaign asset rows.

        Args:
            file_path: Path to the CSV file.

        Returns:
            ValidationResult with assets list and any errors.

        Raises:
            FileNotFoundError: If the CSV file does not exist.
            ValueError: If required columns are missing.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"CSV file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8-sig") as csvfile:
            reader = csv.DictReader(csvfile)

            missing = self._check_required_columns(reader.fieldnames or [])
            if missing:
                raise ValueError(f"Missing required columns: {', '.join(missing)}")

            result = self.validate_rows(list(reader), start_row=2)

        logger.info(
            "Validated %s: %d of %d rows usable",
            file_path, result.valid_count, result.total_rows
        )
        return result

    def validate_rows(self, rows: List[dict], start_row: int = 2) -> ValidationResult:
        """
        Validates a list of row dictionaries.

        Useful for rows fetched from storage rather than a CSV file.

        Args:
            rows: List of dictionaries with asset data.
            start_row: Starting row number for error reporting.

        Returns:
            ValidationResult with assets list and any errors.
        """
        result = ValidationResult()
        result.total_rows = len(rows)

        for idx, row in enumerate(rows):
            asset, errors = self._validate_row(row, start_row + idx)
            if asset:
                result.assets.append(asset)
            result.errors.extend(errors)

        return result

    def _check_required_columns(self, columns: List[str]) -> List[str]:
        """
        Checks if all required columns are present.

        Returns:
            List of missing column names (empty if all present).
        """
        columns_lower = [c.lower().strip() for c in columns]
        return [
            required for required in self.REQUIRED_COLUMNS
            if required.lower() not in columns_lower
        ]

    def _validate_row(
        self,
        row: dict,
        row_number: int
    ) -> Tuple[Optional[CampaignAsset], List[ValidationError]]:
        """
        Validates a single row and converts to CampaignAsset.

        Returns:
            Tuple of (CampaignAsset or None, list of errors).
        """
        errors: List[ValidationError] = []

        asset_id = (row.get("Asset_ID") or "").strip()
        if not asset_id:
            errors.append(ValidationError(
                row_number=row_number,
                field_name="Asset_ID",
                value=row.get("Asset_ID") or "",
                message="Asset_ID cannot be empty"
            ))

        values = {}
        for column, attribute in self.MONEY_COLUMNS.items():
            raw = (row.get(column) or "").strip()
            if not raw:
                continue
            amount, error = self._parse_decimal(raw, column, row_number)
            if error:
                errors.append(error)
            else:
                values[attribute] = amount

        # Negotiated_Rate may be blank when a Card_Rate is supplied
        negotiated_str = (row.get("Negotiated_Rate") or "").strip()
        if negotiated_str:
            negotiated, error = self._parse_decimal(
                negotiated_str, "Negotiated_Rate", row_number
            )
            if error:
                errors.append(error)
            else:
                values["negotiated_rate"] = negotiated
        elif "card_rate" not in values:
            errors.append(ValidationError(
                row_number=row_number,
                field_name="Negotiated_Rate",
                value=negotiated_str,
                message="Negotiated_Rate cannot be empty (or provide Card_Rate)"
            ))

        sqft_str = (row.get("Total_Sqft") or "").strip()
        if sqft_str:
            sqft, error = self._parse_decimal(sqft_str, "Total_Sqft", row_number)
            if error:
                errors.append(error)
            else:
                values["total_sqft"] = sqft

        for start_column, end_column in self.DATE_PAIRS:
            start, start_error = self._parse_date(row, start_column, row_number)
            end, end_error = self._parse_date(row, end_column, row_number)
            errors.extend(e for e in (start_error, end_error) if e)

            if start and end and end < start:
                errors.append(ValidationError(
                    row_number=row_number,
                    field_name=end_column,
                    value=end.isoformat(),
                    message=f"{end_column} must not be before {start_column}"
                ))
            values[start_column.lower()] = start
            values[end_column.lower()] = end

        if errors:
            return None, errors

        return CampaignAsset(asset_id=asset_id, **values), errors

    def _parse_date(
        self,
        row: dict,
        field_name: str,
        row_number: int
    ) -> Tuple[Optional[date], Optional[ValidationError]]:
        """
        Parses an optional ISO date cell.

        Returns:
            Tuple of (date or None, ValidationError or None).
        """
        value = (row.get(field_name) or "").strip()
        if not value:
            return None, None

        try:
            return date.fromisoformat(value), None
        except ValueError:
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=value,
                message=f"{field_name} must be a date in YYYY-MM-DD format "
                        f"(received: '{value}')"
            )

    def _parse_decimal(
        self,
        value: str,
        field_name: str,
        row_number: int
    ) -> Tuple[Optional[Decimal], Optional[ValidationError]]:
        """
        Parses a non-negative INR amount to Decimal.

        Handles various INR currency formats:
        - "118000" (plain number)
        - "1,18,000" (lakh grouping)
        - "₹ 1,18,000" (with currency symbol)
        - "Rs. 118000.00" / "INR 118000"

        Returns:
            Tuple of (Decimal value or None, ValidationError or None).
        """
        original_value = value
        value = value.strip()

        # Comma as decimal separator (e.g. "100,50") is rejected outright
        if re.match(r"^(₹|Rs\.?|INR)?\s*\d+,\d{2}$", value):
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=original_value,
                message=f"{field_name} appears to use a comma as decimal separator. "
                        f"Please use period as decimal separator (e.g., '100.50')"
            )

        cleaned = self.CURRENCY_CLEAN_PATTERN.sub("", value)

        if not re.match(r"^-?\d+\.?\d*$", cleaned):
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=original_value,
                message=f"{field_name} must be a valid number "
                        f"(received: '{original_value}')"
            )

        try:
            decimal_value = Decimal(cleaned)
        except InvalidOperation:
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=original_value,
                message=f"{field_name} must be a valid number "
                        f"(received: '{original_value}')"
            )

        decimal_value = decimal_value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

        if decimal_value < Decimal("0"):
            return None, ValidationError(
                row_number=row_number,
                field_name=field_name,
                value=original_value,
                message=f"{field_name} must be a non-negative number "
                        f"(received: '{original_value}')"
            )

        return decimal_value, None

    def format_inr(self, amount: Decimal) -> str:
        """
        Formats a Decimal amount as an INR currency string.

        Returns:
            Formatted string like "₹ 1,18,000.00" (lakh grouping).
        """
        sign = "-" if amount < 0 else ""
        whole, fraction = f"{abs(amount):.2f}".split(".")
        if len(whole) > 3:
            head, tail = whole[:-3], whole[-3:]
            groups = []
            while len(head) > 2:
                groups.insert(0, head[-2:])
                head = head[:-2]
            if head:
                groups.insert(0, head)
            whole = ",".join(groups + [tail])
        return f"{sign}₹ {whole}.{fraction}"
