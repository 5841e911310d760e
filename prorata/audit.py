"""
ProRata INR - Audit and Serialisation Module.

This module provides JSON serialisation of campaign totals for billing
audit trails. All Decimal values are converted to string representation
to preserve precision during serialisation and deserialisation.

Indian Market Context:
    - Every record carries timestamp and version for GST audits
    - Decimal precision is preserved so invoices can be re-derived
    - Clamped discounts and truncated schedules stay visible

Classes:
    DecimalEncoder: JSON encoder for Decimal, date and datetime values.
    AuditLogger: Manages JSON serialisation for audit and persistence.
"""

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional, Union

from prorata import __version__
from prorata.schema import BillingPeriod, CampaignTotals

logger = logging.getLogger(__name__)

MONEY_FIELDS = [
    "display_cost",
    "printing_cost",
    "mounting_cost",
    "gross_amount",
    "manual_discount_amount",
    "requested_discount_amount",
    "taxable_amount",
    "gst_rate",
    "gst_amount",
    "grand_total",
    "one_time_charges",
    "monthly_display_rent",
]


class DecimalEncoder(json.JSONEncoder):
    """
    Custom JSON encoder that converts Decimal to string.

    Preserves full precision of Decimal values by encoding them
    as strings rather than floats.
    """

    def default(self, obj: Any) -> Any:
        """
        Encode Decimal, date and datetime objects.

        Args:
            obj: Object to encode.

        Returns:
            JSON-serialisable representation.
        """
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        return super().default(obj)


class AuditLogger:
    """
    Manages JSON serialisation for billing audit and persistence.

    Example:
        >>> audit = AuditLogger()
        >>> json_str = audit.serialise_totals(totals, campaign_name="Diwali")
        >>> restored = audit.deserialise_totals(json_str)
        >>> assert totals.grand_total == restored.grand_total
    """

    def __init__(self, version: Optional[str] = None):
        """
        Initialises the AuditLogger.

        Args:
            version: Version identifier for records.
                     Defaults to package version.
        """
        self._version = version or __version__

    def serialise_totals(
        self,
        totals: CampaignTotals,
        campaign_name: str = "",
        timestamp: Optional[datetime] = None
    ) -> str:
        """
        Serialises CampaignTotals to a JSON string.

        Args:
            totals: Campaign totals to serialise.
            campaign_name: Campaign name stored in the metadata.
            timestamp: Record time. Defaults to now.

        Returns:
            JSON string representation.
        """
        data = self._totals_to_dict(totals, campaign_name, timestamp or datetime.now())
        return json.dumps(data, cls=DecimalEncoder, indent=2)

    def deserialise_totals(self, json_str: str) -> CampaignTotals:
        """
        Deserialises a JSON string to CampaignTotals.

        Raises:
            json.JSONDecodeError: If JSON is malformed.
            KeyError: If required fields are missing.
            ValueError: If data types are invalid.
        """
        data = json.loads(json_str)
        return self._dict_to_totals(data)

    def save_to_file(
        self,
        totals: CampaignTotals,
        file_path: Union[str, Path],
        campaign_name: str = ""
    ) -> None:
        """
        Saves CampaignTotals to a JSON file.

        Raises:
            PermissionError: If file cannot be written.
        """
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_path.write_text(
            self.serialise_totals(totals, campaign_name), encoding="utf-8"
        )
        logger.info("Billing audit written to %s", file_path)

    def load_from_file(self, file_path: Union[str, Path]) -> CampaignTotals:
        """
        Loads CampaignTotals from a JSON file.

        Raises:
            FileNotFoundError: If file does not exist.
            json.JSONDecodeError: If JSON is malformed.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Audit file not found: {file_path}")

        return self.deserialise_totals(file_path.read_text(encoding="utf-8"))

    def _totals_to_dict(
        self,
        totals: CampaignTotals,
        campaign_name: str,
        timestamp: datetime
    ) -> Dict[str, Any]:
        """Converts CampaignTotals to a dictionary for JSON serialisation."""
        summary = {name: str(getattr(totals, name)) for name in MONEY_FIELDS}
        summary.update({
            "campaign_period_start": totals.campaign_period_start.isoformat(),
            "campaign_period_end": totals.campaign_period_end.isoformat(),
            "duration_days": totals.duration_days,
            "total_months": totals.total_months,
            "total_assets": totals.total_assets,
            "discount_clamped": totals.discount_clamped,
            "periods_truncated": totals.periods_truncated,
        })

        return {
            "metadata": {
                "timestamp": timestamp.isoformat(),
                "version": self._version,
                "campaign": campaign_name,
                "generated_by": "ProRata INR",
            },
            "totals": summary,
            "billing_periods": [
                self._period_to_dict(period) for period in totals.billing_periods
            ],
        }

    def _period_to_dict(self, period: BillingPeriod) -> Dict[str, Any]:
        """Converts a BillingPeriod to a dictionary."""
        return {
            "month_key": period.month_key,
            "label": period.label,
            "period_start": period.period_start.isoformat(),
            "period_end": period.period_end.isoformat(),
            "days_in_period": period.days_in_period,
            "pro_rata_factor": str(period.pro_rata_factor),
            "is_first_month": period.is_first_month,
            "is_last_month": period.is_last_month,
            "is_current_month": period.is_current_month,
        }

    def _dict_to_period(self, data: Dict[str, Any]) -> BillingPeriod:
        """Converts a dictionary to BillingPeriod."""
        return BillingPeriod(
            month_key=data["month_key"],
            label=data["label"],
            period_start=date.fromisoformat(data["period_start"]),
            period_end=date.fromisoformat(data["period_end"]),
            days_in_period=data["days_in_period"],
            pro_rata_factor=Decimal(data["pro_rata_factor"]),
            is_first_month=data["is_first_month"],
            is_last_month=data["is_last_month"],
            is_current_month=data["is_current_month"],
        )

    def _dict_to_totals(self, data: Dict[str, Any]) -> CampaignTotals:
        """Converts a dictionary to CampaignTotals."""
        summary = data["totals"]
        money = {name: Decimal(summary[name]) for name in MONEY_FIELDS}

        return CampaignTotals(
            campaign_period_start=date.fromisoformat(summary["campaign_period_start"]),
            campaign_period_end=date.fromisoformat(summary["campaign_period_end"]),
            duration_days=summary["duration_days"],
            total_months=summary["total_months"],
            billing_periods=[self._dict_to_period(p) for p in data["billing_periods"]],
            total_assets=summary["total_assets"],
            periods_truncated=summary["periods_truncated"],
            **money,
        )

    def generate_filename(self, prefix: str = "billing_audit") -> str:
        """
        Generates a timestamped filename for audit files.

        Returns:
            Filename like "billing_audit_2024-12-18_143052.json".
        """
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        return f"{prefix}_{timestamp}.json"
