"""
ProRata INR - Pricing Engine Module.

This module provides the pro-rata pricing function, the line item
aggregator and the per-asset rent helpers. All calculations use Decimal
arithmetic and round each monetary result to 2 decimal places at the
point it is computed.

Classes:
    PricingEngine: Core calculation engine for rates, rent and line totals.
"""

import logging
import math
from decimal import Decimal
from typing import Optional

from prorata.date_logic import DateManager, to_date
from prorata.schema import (
    ZERO,
    Amount,
    AssetRent,
    BillingMode,
    DateLike,
    LineItemPricing,
    LineItemTotals,
    RateAdjustment,
    round_money,
    to_decimal,
)

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Core calculation engine for monthly-rate pricing.

    Converts monthly rates into billed amounts using the fixed billing
    cycle of the DateManager's configuration.

    Attributes:
        date_manager: DateManager instance for day counting.

    Example:
        >>> engine = PricingEngine(DateManager())
        >>> engine.pro_rata(Decimal("30000"), 15)
        Decimal('15000.00')
    """

    def __init__(self, date_manager: DateManager):
        """
        Initialises the PricingEngine with a DateManager.

        Args:
            date_manager: DateManager instance for date calculations.
        """
        self._date_manager = date_manager

    @property
    def cycle_days(self) -> Decimal:
        """Days in one billing month, as Decimal."""
        return Decimal(self._date_manager.cycle_days)

    def pro_rata(self, monthly_rate: Amount, days: int) -> Decimal:
        """
        Calculates the pro-rata amount of a monthly rate.

        Formula: (Monthly_Rate / Billing_Cycle) * Days

        Zero or negative inputs mean "no charge" and return
        Decimal('0.00') rather than raising.

        Args:
            monthly_rate: Monthly rate in INR.
            days: Billable days.

        Returns:
            Amount rounded to 2 decimal places.
        """
        rate = to_decimal(monthly_rate)
        if rate <= 0 or days <= 0:
            return ZERO
        return round_money(rate * Decimal(days) / self.cycle_days)

    def calculate_discount(
        self,
        card_rate_month: Amount,
        negotiated_rate_month: Amount,
        factor: Decimal
    ) -> RateAdjustment:
        """
        Calculates the discount given against the card rate.

        Discount is never negative: a negotiated rate above card
        rate yields zero discount.

        Returns:
            RateAdjustment with value and percent of card total.
        """
        card_total = to_decimal(card_rate_month) * factor
        negotiated_total = to_decimal(negotiated_rate_month) * factor
        value = max(Decimal("0"), card_total - negotiated_total)
        percent = (value / card_total) * Decimal("100") if card_total > 0 else Decimal("0")
        return RateAdjustment(value=round_money(value), percent=round_money(percent))

    def calculate_profit(
        self,
        base_rate_month: Amount,
        negotiated_rate_month: Amount,
        factor: Decimal
    ) -> RateAdjustment:
        """
        Calculates profit of the negotiated rate over the base (cost) rate.

        A negative value is a loss and is reported as such.

        Returns:
            RateAdjustment with value and percent of base total.
        """
        base_total = to_decimal(base_rate_month) * factor
        negotiated_total = to_decimal(negotiated_rate_month) * factor
        value = negotiated_total - base_total
        percent = (value / base_total) * Decimal("100") if base_total > 0 else Decimal("0")
        return RateAdjustment(value=round_money(value), percent=round_money(percent))

    def calculate_line_item_totals(self, pricing: LineItemPricing) -> LineItemTotals:
        """
        Calculates line item totals with factor-based pricing.

        Every monthly rate is multiplied by the duration factor and
        rounded on its own; the subtotal adds the rounded negotiated,
        printing and mounting amounts.

        Args:
            pricing: Rate record with duration inputs.

        Returns:
            LineItemTotals with per-field amounts, discount and profit.
        """
        duration = pricing.duration
        factor = self._date_manager.calculate_duration_factor(
            duration.duration_days,
            duration.duration_mode,
            duration.months_count
        )

        line_base_rate = round_money(to_decimal(pricing.base_rate_month) * factor)
        line_card_rate = round_money(to_decimal(pricing.card_rate_month) * factor)
        line_negotiation_rate = round_money(to_decimal(pricing.negotiated_rate_month) * factor)
        line_printing_charge = round_money(to_decimal(pricing.printing_rate_month) * factor)
        line_mounting_charge = round_money(to_decimal(pricing.mounting_rate_month) * factor)

        line_subtotal = line_negotiation_rate + line_printing_charge + line_mounting_charge
        logger.debug(
            "Line item factor %s: subtotal %s", factor, line_subtotal
        )

        return LineItemTotals(
            line_base_rate=line_base_rate,
            line_card_rate=line_card_rate,
            line_negotiation_rate=line_negotiation_rate,
            line_printing_charge=line_printing_charge,
            line_mounting_charge=line_mounting_charge,
            line_subtotal=line_subtotal,
            duration_factor=factor,
            discount=self.calculate_discount(
                pricing.card_rate_month, pricing.negotiated_rate_month, factor
            ),
            profit=self.calculate_profit(
                pricing.base_rate_month, pricing.negotiated_rate_month, factor
            ),
        )

    def compute_daily_rate(
        self,
        monthly_rate: Amount,
        billing_mode: BillingMode = BillingMode.PRORATA_30,
        daily_rate: Optional[Amount] = None,
        for_display: bool = True
    ) -> Decimal:
        """
        Calculates the daily rate of an asset.

        DAILY mode uses a positive provided daily rate; every other case
        divides the monthly rate by the billing cycle.

        Args:
            monthly_rate: Monthly rate in INR.
            billing_mode: Asset billing mode.
            daily_rate: Negotiated daily rate for DAILY mode.
            for_display: Round to 2 decimal places if True.
        """
        if billing_mode == BillingMode.DAILY and daily_rate is not None:
            provided = to_decimal(daily_rate)
            if provided > 0:
                return round_money(provided) if for_display else provided

        rate = to_decimal(monthly_rate) / self.cycle_days
        return round_money(rate) if for_display else rate

    def compute_rent_amount(
        self,
        monthly_rate: Amount,
        start: DateLike,
        end: DateLike,
        billing_mode: BillingMode = BillingMode.PRORATA_30,
        daily_rate: Optional[Amount] = None
    ) -> AssetRent:
        """
        Calculates the rent of one asset booking.

        FULL_MONTH charges every started billing month in full.
        PRORATA_30 and DAILY charge the unrounded daily rate times
        booked days, rounded once.

        Raises:
            InvalidRangeError: If end is before start.
        """
        booked_days = self._date_manager.calculate_duration_days(start, end)
        raw_daily_rate = self.compute_daily_rate(
            monthly_rate, billing_mode, daily_rate, for_display=False
        )

        if billing_mode == BillingMode.FULL_MONTH:
            full_months = math.ceil(Decimal(booked_days) / self.cycle_days)
            rent_amount = to_decimal(monthly_rate) * full_months
        else:
            rent_amount = raw_daily_rate * booked_days

        return AssetRent(
            booked_days=booked_days,
            daily_rate=round_money(raw_daily_rate),
            rent_amount=round_money(rent_amount),
            billing_mode=billing_mode,
        )

    def compute_pro_rata_factor(self, booked_days: int) -> Decimal:
        """Returns booked days as a share of a billing month, 2 places."""
        return round_money(Decimal(booked_days) / self.cycle_days)

    def compute_overlap_days(
        self,
        asset_start: DateLike,
        asset_end: DateLike,
        period_start: DateLike,
        period_end: DateLike
    ) -> int:
        """
        Counts inclusive days shared by an asset booking and a period.

        Returns:
            Overlapping days, 0 if the ranges are disjoint.
        """
        overlap_start = max(to_date(asset_start), to_date(period_start))
        overlap_end = min(to_date(asset_end), to_date(period_end))

        if overlap_end < overlap_start:
            return 0
        return (overlap_end - overlap_start).days + 1

    def compute_period_rent_amount(
        self,
        monthly_rate: Amount,
        asset_start: DateLike,
        asset_end: DateLike,
        period_start: DateLike,
        period_end: DateLike,
        billing_mode: BillingMode = BillingMode.PRORATA_30
    ) -> Decimal:
        """
        Calculates the rent an asset accrues inside one billing period.

        Returns:
            Display daily rate times overlap days, 0 with no overlap.
        """
        overlap_days = self.compute_overlap_days(
            asset_start, asset_end, period_start, period_end
        )
        if overlap_days == 0:
            return ZERO

        daily_rate = self.compute_daily_rate(monthly_rate, billing_mode)
        return round_money(daily_rate * overlap_days)
