"""
ProRata INR - Data Schema Module.

This module defines the core data models for the billing engine.
All monetary fields use Decimal type to ensure financial precision.

Indian OOH Market Context:
    - Media is sold on a monthly rate, billed on a fixed 30-day cycle
    - Default GST rate: 18%
    - Printing and mounting are one-time charges, not monthly rates
    - Negotiated rate is what the client pays; card and base rates
      exist only for discount and profit reporting

Classes:
    BillingConfig: Billing cycle and cap settings threaded through the engine.
    InvalidRangeError: Raised when an end date precedes its start date.
    DurationMode: How a line item's duration factor is derived.
    BillingMode: Per-asset rent calculation policy.
    BookingInterval: Inclusive calendar date range.
    LineItemDuration: Duration inputs of a plan line item.
    LineItemPricing: Monthly rate record of a plan line item.
    RateAdjustment: Discount or profit figure with its percentage.
    LineItemTotals: Derived totals of a plan line item.
    AssetRent: Rent result for a single asset.
    CampaignAsset: Asset row of a campaign as fetched from storage.
    CampaignData: Campaign row as fetched from storage.
    BillingPeriod: One calendar-month slice of a campaign span.
    BillingPeriodSplit: Billing periods plus truncation outcome.
    DiscountOutcome: Requested versus applied manual discount.
    CampaignTotals: Complete financial totals of a campaign.
    PeriodAmount: Amounts billed for one billing period.
    ScheduleLine: One row of a month-wise billing schedule.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_CEILING
from enum import Enum
from typing import List, Optional, Union


# Indian GST rate on outdoor advertising services (18%)
INR_GST_PERCENT = Decimal("18")

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

DateLike = Union[date, datetime, str]
Amount = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class BillingConfig:
    """
    Billing settings threaded through every engine component.

    Attributes:
        billing_cycle_days: Days in one billing month. A monthly rate
            divided by this value gives the daily rate.
        max_billing_periods: Upper bound on generated billing periods.
        invoice_due_days: Days after a period start that its invoice falls due.
        default_gst_percent: GST rate used by callers that have none on record.
    """

    billing_cycle_days: int = 30
    max_billing_periods: int = 120
    invoice_due_days: int = 30
    default_gst_percent: Decimal = INR_GST_PERCENT

    def __post_init__(self) -> None:
        if self.billing_cycle_days < 1:
            raise ValueError(
                f"billing_cycle_days must be at least 1, got {self.billing_cycle_days}"
            )
        if self.max_billing_periods < 1:
            raise ValueError(
                f"max_billing_periods must be at least 1, got {self.max_billing_periods}"
            )


DEFAULT_CONFIG = BillingConfig()


class InvalidRangeError(ValueError):
    """Raised when a date range ends before it starts."""

    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(
            f"End date {end.isoformat()} is before start date {start.isoformat()}"
        )


class DurationMode(Enum):
    """
    How the duration factor of a line item is derived.

    Attributes:
        DAYS: Factor is billable days divided by the billing cycle.
        MONTH: Factor is an explicit (half-)month count.
    """

    DAYS = "DAYS"
    MONTH = "MONTH"


class BillingMode(Enum):
    """
    Per-asset rent calculation policy.

    Attributes:
        FULL_MONTH: Every started billing month is charged in full.
        PRORATA_30: Monthly rate divided by 30, times booked days.
        DAILY: Negotiated daily rate times booked days.
    """

    FULL_MONTH = "FULL_MONTH"
    PRORATA_30 = "PRORATA_30"
    DAILY = "DAILY"


def to_decimal(value: Optional[Amount]) -> Decimal:
    """
    Converts a stored numeric value to Decimal.

    Floats go through their string form so that 0.1 stays 0.1.
    None becomes zero.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Decimal) -> Decimal:
    """
    Rounds a monetary value to 2 decimal places, halves toward +infinity.

    Example:
        >>> round_money(Decimal("2333.335"))
        Decimal('2333.34')
        >>> round_money(Decimal("-0.015"))
        Decimal('-0.01')
    """
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_CEILING)


@dataclass(frozen=True)
class BookingInterval:
    """
    Inclusive calendar date range of a booking.

    A one-day booking has start_date == end_date.

    Raises:
        InvalidRangeError: If end_date is before start_date.
    """

    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise InvalidRangeError(self.start_date, self.end_date)


@dataclass
class LineItemDuration:
    """
    Duration inputs of a plan line item.

    Attributes:
        start_date: First billed day.
        end_date: Last billed day (inclusive).
        duration_days: Billable days, usually from the Duration Calculator.
        duration_mode: DAYS or MONTH.
        months_count: Explicit month count used in MONTH mode.
    """

    start_date: date
    end_date: date
    duration_days: int
    duration_mode: DurationMode = DurationMode.DAYS
    months_count: Optional[Decimal] = None


@dataclass
class LineItemPricing:
    """
    Monthly rate record of a plan line item.

    Attributes:
        base_rate_month: Internal cost of the asset per month.
        card_rate_month: List price per month.
        negotiated_rate_month: Agreed monthly rate, the rate actually billed.
        duration: Duration inputs for the line.
        printing_rate_month: Optional printing charge per month.
        mounting_rate_month: Optional mounting charge per month.
    """

    base_rate_month: Decimal
    card_rate_month: Decimal
    negotiated_rate_month: Decimal
    duration: LineItemDuration
    printing_rate_month: Optional[Decimal] = None
    mounting_rate_month: Optional[Decimal] = None


@dataclass(frozen=True)
class RateAdjustment:
    """A discount or profit amount together with its percentage."""

    value: Decimal
    percent: Decimal


@dataclass(frozen=True)
class LineItemTotals:
    """
    Derived totals of a plan line item.

    line_subtotal sums only the billed fields (negotiated, printing,
    mounting). Base and card totals are informational.
    """

    line_base_rate: Decimal
    line_card_rate: Decimal
    line_negotiation_rate: Decimal
    line_printing_charge: Decimal
    line_mounting_charge: Decimal
    line_subtotal: Decimal
    duration_factor: Decimal
    discount: RateAdjustment
    profit: RateAdjustment


@dataclass(frozen=True)
class AssetRent:
    """Rent result for a single asset booking."""

    booked_days: int
    daily_rate: Decimal
    rent_amount: Decimal
    billing_mode: BillingMode


@dataclass
class CampaignAsset:
    """
    Asset row of a campaign as fetched from storage.

    Booking dates override start/end dates, which override the
    campaign's own dates. Dates may be ISO strings, dates or datetimes.
    """

    asset_id: str = ""
    negotiated_rate: Optional[Decimal] = None
    card_rate: Optional[Decimal] = None
    printing_charges: Optional[Decimal] = None
    mounting_charges: Optional[Decimal] = None
    booking_start_date: Optional[DateLike] = None
    booking_end_date: Optional[DateLike] = None
    start_date: Optional[DateLike] = None
    end_date: Optional[DateLike] = None
    total_sqft: Optional[Decimal] = None


@dataclass
class CampaignData:
    """Campaign row as fetched from storage."""

    start_date: DateLike
    end_date: DateLike
    name: str = ""
    gst_percent: Optional[Decimal] = None
    billing_cycle: Optional[str] = None
    manual_discount_amount: Optional[Decimal] = None
    manual_discount_reason: Optional[str] = None


@dataclass(frozen=True)
class BillingPeriod:
    """
    One calendar-month slice of a campaign span.

    Attributes:
        month_key: "YYYY-MM" of the period start.
        label: Display label such as "July 2024".
        period_start: First day of the slice (inclusive).
        period_end: Last day of the slice (inclusive).
        days_in_period: Billable days. A full calendar month counts as
            one billing cycle regardless of its length.
        pro_rata_factor: Share of a billing month, rounded to 2 places.
        is_first_month: True for the first period only.
        is_last_month: True for the last period only.
        is_current_month: True when the period falls in the reference month.
    """

    month_key: str
    label: str
    period_start: date
    period_end: date
    days_in_period: int
    pro_rata_factor: Decimal
    is_first_month: bool
    is_last_month: bool
    is_current_month: bool


@dataclass(frozen=True)
class BillingPeriodSplit:
    """Billing periods of a span, and whether the period cap cut it short."""

    periods: List[BillingPeriod]
    truncated: bool = False


@dataclass(frozen=True)
class DiscountOutcome:
    """Requested manual discount versus the amount actually applied."""

    requested: Decimal
    applied: Decimal

    @property
    def clamped(self) -> bool:
        """Returns True if the applied discount differs from the request."""
        return self.applied != self.requested


@dataclass
class CampaignTotals:
    """
    Complete financial totals of a campaign.

    Invariants:
        gross_amount == display_cost + printing_cost + mounting_cost
        0 <= manual_discount_amount <= gross_amount
        taxable_amount == gross_amount - manual_discount_amount
        grand_total == taxable_amount + gst_amount
    """

    display_cost: Decimal
    printing_cost: Decimal
    mounting_cost: Decimal
    gross_amount: Decimal
    manual_discount_amount: Decimal
    taxable_amount: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    grand_total: Decimal
    one_time_charges: Decimal
    campaign_period_start: date
    campaign_period_end: date
    duration_days: int
    total_months: int
    monthly_display_rent: Decimal
    billing_periods: List[BillingPeriod] = field(default_factory=list)
    total_assets: int = 0
    requested_discount_amount: Decimal = ZERO
    periods_truncated: bool = False

    @property
    def discount_clamped(self) -> bool:
        """Returns True if the requested discount had to be clamped."""
        return self.manual_discount_amount != self.requested_discount_amount


@dataclass(frozen=True)
class PeriodAmount:
    """Amounts billed for one billing period."""

    base_rent: Decimal
    printing: Decimal
    mounting: Decimal
    discount: Decimal
    subtotal: Decimal
    gst_amount: Decimal
    total: Decimal


@dataclass(frozen=True)
class ScheduleLine:
    """One row of a month-wise billing schedule."""

    period: BillingPeriod
    amount: PeriodAmount
    invoice_due_date: date
