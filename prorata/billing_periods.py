"""
ProRata INR - Billing Period Module.

This module partitions a campaign span into calendar-month billing
periods and allocates campaign totals across them for month-wise
invoicing.

Allocation Rules:
    - Single-period campaigns bill the whole display cost and discount.
    - Multi-period campaigns share display cost and discount in
      proportion to each period's pro-rata factor.
    - Printing and mounting are one-time charges, billed on the
      periods the caller chooses.

Classes:
    BillingPeriodSplitter: Splits spans into periods and allocates amounts.
"""

import calendar
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from prorata.date_logic import DateManager, to_interval
from prorata.schema import (
    ZERO,
    BillingPeriod,
    BillingPeriodSplit,
    CampaignTotals,
    DateLike,
    PeriodAmount,
    ScheduleLine,
    round_money,
)

logger = logging.getLogger(__name__)


def _month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def _month_label(value: date) -> str:
    return f"{calendar.month_name[value.month]} {value.year}"


def _next_month_start(value: date) -> date:
    if value.month == 12:
        return date(value.year + 1, 1, 1)
    return date(value.year, value.month + 1, 1)


class BillingPeriodSplitter:
    """
    Splits campaign spans into calendar-month billing periods.

    Attributes:
        date_manager: DateManager instance for day counting and config.

    Example:
        >>> splitter = BillingPeriodSplitter(DateManager())
        >>> periods = splitter.calculate_billing_periods(
        ...     date(2024, 7, 15), date(2024, 9, 10)
        ... )
        >>> [p.month_key for p in periods]
        ['2024-07', '2024-08', '2024-09']
    """

    def __init__(self, date_manager: DateManager):
        """
        Initialises the BillingPeriodSplitter with a DateManager.

        Args:
            date_manager: DateManager instance for date calculations.
        """
        self._date_manager = date_manager

    def split(
        self,
        start: DateLike,
        end: DateLike,
        reference_date: Optional[date] = None
    ) -> BillingPeriodSplit:
        """
        Partitions [start, end] into ordered, non-overlapping periods.

        Spans of at most one billing cycle form a single period. Longer
        spans are cut at calendar month boundaries; a period covering a
        whole calendar month counts as one full cycle.

        Args:
            start: First day of the span.
            end: Last day of the span (inclusive).
            reference_date: Date used for is_current_month. Defaults to today.

        Returns:
            BillingPeriodSplit. truncated is True when the span needed
            more than max_billing_periods periods.

        Raises:
            InvalidRangeError: If end is before start.
        """
        interval = to_interval(start, end)
        start_day = interval.start_date
        end_day = interval.end_date
        if reference_date is None:
            reference_date = date.today()

        cycle_days = self._date_manager.cycle_days
        max_periods = self._date_manager.config.max_billing_periods

        total_days = (end_day - start_day).days + 1
        if total_days <= cycle_days:
            factor = round_money(Decimal(total_days) / Decimal(cycle_days))
            period = BillingPeriod(
                month_key=_month_key(start_day),
                label=_month_label(start_day),
                period_start=start_day,
                period_end=end_day,
                days_in_period=total_days,
                pro_rata_factor=factor,
                is_first_month=True,
                is_last_month=True,
                is_current_month=_month_key(start_day) == _month_key(reference_date),
            )
            return BillingPeriodSplit(periods=[period])

        bounds = []
        month_start = start_day.replace(day=1)
        while month_start <= end_day and len(bounds) < max_periods:
            month_end = self._date_manager.last_day_of_month(month_start)
            bounds.append((max(start_day, month_start), min(end_day, month_end)))
            month_start = _next_month_start(month_start)

        truncated = month_start <= end_day
        if truncated:
            logger.warning(
                "Billing span %s to %s exceeds %d periods; truncated at %s",
                start_day, end_day, max_periods, bounds[-1][1]
            )

        periods: List[BillingPeriod] = []
        for index, (period_start, period_end) in enumerate(bounds):
            if self._date_manager.is_full_calendar_month(period_start, period_end):
                days_in_period = cycle_days
                factor = Decimal("1.00")
            else:
                days_in_period = (period_end - period_start).days + 1
                factor = round_money(Decimal(days_in_period) / Decimal(cycle_days))

            periods.append(BillingPeriod(
                month_key=_month_key(period_start),
                label=_month_label(period_start),
                period_start=period_start,
                period_end=period_end,
                days_in_period=days_in_period,
                pro_rata_factor=factor,
                is_first_month=index == 0,
                is_last_month=index == len(bounds) - 1,
                is_current_month=_month_key(period_start) == _month_key(reference_date),
            ))

        return BillingPeriodSplit(periods=periods, truncated=truncated)

    def calculate_billing_periods(
        self,
        start: DateLike,
        end: DateLike,
        reference_date: Optional[date] = None
    ) -> List[BillingPeriod]:
        """
        Returns the billing periods of [start, end].

        See split() for the rules; this drops the truncation flag.
        """
        return self.split(start, end, reference_date).periods

    def calculate_period_amount_from_totals(
        self,
        period: BillingPeriod,
        totals: CampaignTotals,
        include_printing: bool = False,
        include_mounting: bool = False
    ) -> PeriodAmount:
        """
        Calculates the amount billed for one period of a campaign.

        Each period's rent and discount share is rounded on its own, so
        the shares of a campaign add up to its display cost only within
        half a paisa per period: the gap grows with the period count.

        Args:
            period: Period of totals.billing_periods to bill.
            totals: Campaign totals the period belongs to.
            include_printing: Add the campaign's printing cost.
            include_mounting: Add the campaign's mounting cost.

        Returns:
            PeriodAmount with base rent, discount share, GST and total.
        """
        if totals.total_months <= 1:
            base_rent = totals.display_cost
            discount = totals.manual_discount_amount
        else:
            total_factor = sum(
                (p.pro_rata_factor for p in totals.billing_periods), Decimal("0")
            )
            if total_factor > 0:
                share = period.pro_rata_factor / total_factor
            else:
                share = Decimal("0")
            base_rent = round_money(totals.display_cost * share)
            discount = round_money(totals.manual_discount_amount * share)

        printing = totals.printing_cost if include_printing else ZERO
        mounting = totals.mounting_cost if include_mounting else ZERO

        subtotal = round_money(base_rent + printing + mounting - discount)
        gst_amount = round_money(subtotal * totals.gst_rate / Decimal("100"))

        return PeriodAmount(
            base_rent=base_rent,
            printing=printing,
            mounting=mounting,
            discount=discount,
            subtotal=subtotal,
            gst_amount=gst_amount,
            total=subtotal + gst_amount,
        )

    def build_billing_schedule(
        self,
        totals: CampaignTotals,
        one_time_charges_on_first: bool = True
    ) -> List[ScheduleLine]:
        """
        Builds the month-wise invoice schedule of a campaign.

        Printing and mounting are billed once, on the first period
        when one_time_charges_on_first is True, otherwise not at all.
        Each invoice falls due invoice_due_days after its period start.

        Args:
            totals: Campaign totals with billing periods.
            one_time_charges_on_first: Bill one-time charges on period one.

        Returns:
            One ScheduleLine per billing period, in period order.
        """
        due_days = timedelta(days=self._date_manager.config.invoice_due_days)
        schedule = []

        for period in totals.billing_periods:
            with_charges = one_time_charges_on_first and period.is_first_month
            amount = self.calculate_period_amount_from_totals(
                period,
                totals,
                include_printing=with_charges,
                include_mounting=with_charges,
            )
            schedule.append(ScheduleLine(
                period=period,
                amount=amount,
                invoice_due_date=period.period_start + due_days,
            ))

        return schedule
