"""
ProRata INR - Campaign Totals Module.

This module computes the financial totals of a campaign from its asset
rows: pro-rata display cost, one-time charges, clamped manual discount,
GST and the month-wise billing periods of the campaign span.

Day Counting:
    Per-asset days use the simple inclusive policy
    (DateManager.calculate_simple_inclusive_days): ceil of elapsed days
    plus one, with no full-month normalization.
    A full July is therefore 31 days here.

Classes:
    CampaignTotalsCalculator: Aggregates asset rows into CampaignTotals.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from prorata.billing_periods import BillingPeriodSplitter
from prorata.date_logic import DateManager, parse_date, to_date
from prorata.schema import (
    Amount,
    CampaignAsset,
    CampaignData,
    CampaignTotals,
    DateLike,
    DiscountOutcome,
    round_money,
    to_decimal,
)

logger = logging.getLogger(__name__)


class CampaignTotalsCalculator:
    """
    Aggregates campaign asset rows into campaign financial totals.

    Asset-level dates are trusted over campaign metadata: each asset
    may be rescheduled inside the campaign, and the campaign period is
    the span of all asset bookings.

    Attributes:
        date_manager: DateManager instance for day counting.
        splitter: BillingPeriodSplitter for the campaign span.

    Example:
        >>> dm = DateManager()
        >>> calculator = CampaignTotalsCalculator(dm, BillingPeriodSplitter(dm))
        >>> totals = calculator.compute_campaign_totals(campaign, assets)
    """

    def __init__(
        self,
        date_manager: DateManager,
        splitter: Optional[BillingPeriodSplitter] = None
    ):
        """
        Initialises the CampaignTotalsCalculator.

        Args:
            date_manager: DateManager instance for date calculations.
            splitter: Period splitter. Defaults to one sharing date_manager.
        """
        self._date_manager = date_manager
        self._splitter = splitter or BillingPeriodSplitter(date_manager)

    def resolve_booking_interval(
        self,
        asset: CampaignAsset,
        campaign: CampaignData
    ) -> Tuple[DateLike, DateLike]:
        """
        Resolves the effective booking interval of an asset.

        Each end falls back independently: booking date, then asset
        start/end date, then the campaign's own date.

        Returns:
            Tuple of (start, end) as parsed date or datetime values.
        """
        start = asset.booking_start_date or asset.start_date or campaign.start_date
        end = asset.booking_end_date or asset.end_date or campaign.end_date
        return parse_date(start), parse_date(end)

    def resolve_monthly_rate(self, asset: CampaignAsset) -> Decimal:
        """Returns the negotiated rate, else the card rate, else zero."""
        if asset.negotiated_rate is not None:
            return to_decimal(asset.negotiated_rate)
        if asset.card_rate is not None:
            return to_decimal(asset.card_rate)
        return Decimal("0")

    def resolve_discount(
        self,
        campaign: CampaignData,
        gross_amount: Decimal,
        override: Optional[Amount] = None
    ) -> DiscountOutcome:
        """
        Resolves and clamps the manual discount of a campaign.

        The override wins over the campaign's stored discount. The
        applied amount is clamped to [0, gross_amount]; an over-large
        request is capped, never rejected.

        Returns:
            DiscountOutcome with requested and applied amounts.
        """
        if override is not None:
            requested = to_decimal(override)
        else:
            requested = to_decimal(campaign.manual_discount_amount)
        requested = round_money(requested)

        applied = min(max(requested, Decimal("0.00")), gross_amount)
        outcome = DiscountOutcome(requested=requested, applied=applied)

        if outcome.clamped:
            logger.warning(
                "Manual discount %s clamped to %s (gross amount %s)",
                requested, applied, gross_amount
            )
        return outcome

    def compute_campaign_totals(
        self,
        campaign: CampaignData,
        assets: Sequence[CampaignAsset],
        manual_discount_override: Optional[Amount] = None,
        reference_date: Optional[date] = None
    ) -> CampaignTotals:
        """
        Computes all financial totals of a campaign from its asset rows.

        Formula per asset: (Monthly_Rate / 30) * Asset_Days, summed
        unrounded and rounded once as the display cost.

        Args:
            campaign: Campaign row (fallback dates, GST rate, stored discount).
            assets: Asset rows of the campaign.
            manual_discount_override: Discount to use instead of the stored one.
            reference_date: Date used for is_current_month. Defaults to today.

        Returns:
            CampaignTotals with billing periods of the campaign span.

        Raises:
            InvalidRangeError: If an asset or the campaign ends before it starts.
        """
        cycle_days = Decimal(self._date_manager.cycle_days)

        display_cost_raw = Decimal("0")
        period_start = None
        period_end = None

        for asset in assets:
            asset_start, asset_end = self.resolve_booking_interval(asset, campaign)
            asset_days = self._date_manager.calculate_simple_inclusive_days(
                asset_start, asset_end
            )
            monthly_rate = self.resolve_monthly_rate(asset)
            display_cost_raw += monthly_rate * Decimal(asset_days) / cycle_days

            start_day = to_date(asset_start)
            end_day = to_date(asset_end)
            if period_start is None or start_day < period_start:
                period_start = start_day
            if period_end is None or end_day > period_end:
                period_end = end_day

        if period_start is None:
            period_start = to_date(campaign.start_date)
            period_end = to_date(campaign.end_date)

        display_cost = round_money(display_cost_raw)
        duration_days = self._date_manager.calculate_simple_inclusive_days(
            period_start, period_end
        )

        printing_cost = round_money(sum(
            (to_decimal(a.printing_charges) for a in assets), Decimal("0")
        ))
        mounting_cost = round_money(sum(
            (to_decimal(a.mounting_charges) for a in assets), Decimal("0")
        ))

        gross_amount = round_money(display_cost + printing_cost + mounting_cost)

        discount = self.resolve_discount(campaign, gross_amount, manual_discount_override)
        taxable_amount = round_money(gross_amount - discount.applied)

        gst_rate = to_decimal(campaign.gst_percent)
        gst_amount = round_money(taxable_amount * gst_rate / Decimal("100"))
        grand_total = round_money(taxable_amount + gst_amount)

        split = self._splitter.split(period_start, period_end, reference_date)
        total_months = len(split.periods)
        if total_months > 0:
            monthly_display_rent = round_money(display_cost / Decimal(total_months))
        else:
            monthly_display_rent = display_cost

        logger.debug(
            "Campaign %r: %d assets, display %s, taxable %s, grand total %s",
            campaign.name, len(assets), display_cost, taxable_amount, grand_total
        )

        return CampaignTotals(
            display_cost=display_cost,
            printing_cost=printing_cost,
            mounting_cost=mounting_cost,
            gross_amount=gross_amount,
            manual_discount_amount=discount.applied,
            taxable_amount=taxable_amount,
            gst_rate=gst_rate,
            gst_amount=gst_amount,
            grand_total=grand_total,
            one_time_charges=printing_cost + mounting_cost,
            campaign_period_start=period_start,
            campaign_period_end=period_end,
            duration_days=duration_days,
            total_months=total_months,
            monthly_display_rent=monthly_display_rent,
            billing_periods=split.periods,
            total_assets=len(assets),
            requested_discount_amount=discount.requested,
            periods_truncated=split.truncated,
        )
