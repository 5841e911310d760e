"""
ProRata INR - Date Logic Module.

This module provides the day-counting rules used for billing, including
the full-calendar-month normalization, end-date reconstruction and the
month/day conversions used when a line item switches duration mode.

Two day-counting policies exist:

    calculate_duration_days:
        Calendar-normalized. Dates only; a booking from the 1st to the
        last day of one month counts as one billing cycle (30 days).
    calculate_simple_inclusive_days:
        Simple inclusive count used for campaign totals. Partial days
        (time components) round up; no month normalization.

Classes:
    DurationSync: Fields recomputed when one duration input changes.
    DateManager: Manages all date-related calculations for billing.
"""

import calendar
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from prorata.schema import (
    DEFAULT_CONFIG,
    BillingConfig,
    BookingInterval,
    DateLike,
    DurationMode,
    InvalidRangeError,
    to_decimal,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class DurationSync:
    """
    Fields recomputed when one duration input of a line item changes.

    Only the fields affected by the change are set.
    """

    end_date: Optional[date] = None
    duration_days: Optional[int] = None
    months_count: Optional[int] = None


def parse_date(value: DateLike) -> Union[date, datetime]:
    """
    Parses a stored date value without timezone shifts.

    Accepts date and datetime objects unchanged, "YYYY-MM-DD" strings
    as dates and longer ISO strings as datetimes.

    Raises:
        ValueError: If a string is not ISO formatted.
    """
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(text)


def to_date(value: DateLike) -> date:
    """Reduces any date value to a calendar date, dropping time of day."""
    parsed = parse_date(value)
    if isinstance(parsed, datetime):
        return parsed.date()
    return parsed


def to_interval(start: DateLike, end: DateLike) -> BookingInterval:
    """
    Builds the inclusive calendar interval of two date values.

    Raises:
        InvalidRangeError: If end falls on a day before start.
    """
    return BookingInterval(to_date(start), to_date(end))


def _to_datetime(value: DateLike) -> datetime:
    parsed = parse_date(value)
    if isinstance(parsed, datetime):
        return parsed
    return datetime.combine(parsed, time.min)


class DateManager:
    """
    Manages date calculations for billing.

    Handles month-end detection, leap year logic and the billing
    day-count rules. The billing cycle length comes from the
    BillingConfig so alternate cycles can be exercised in tests.

    Example:
        >>> dm = DateManager()
        >>> dm.calculate_duration_days(date(2024, 7, 1), date(2024, 7, 31))
        30
        >>> dm.calculate_duration_days(date(2024, 11, 10), date(2024, 11, 19))
        10
    """

    def __init__(self, config: BillingConfig = DEFAULT_CONFIG):
        """
        Initialises the DateManager.

        Args:
            config: Billing settings. Defaults to the 30-day cycle.
        """
        self._config = config

    @property
    def config(self) -> BillingConfig:
        """Billing settings used by this manager."""
        return self._config

    @property
    def cycle_days(self) -> int:
        """Days in one billing month."""
        return self._config.billing_cycle_days

    def is_leap_year(self, year: int) -> bool:
        """
        Determines if the specified year is a leap year.

        Args:
            year: Four-digit year to check.

        Returns:
            True if the year is a leap year, False otherwise.
        """
        return calendar.isleap(year)

    def get_days_in_month(self, year: int, month: int) -> int:
        """
        Returns the total number of days in the specified month.

        Args:
            year: Four-digit year.
            month: Month number (1-12).

        Returns:
            Number of days in the specified month.

        Raises:
            ValueError: If month is not in range 1-12.
        """
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")
        return calendar.monthrange(year, month)[1]

    def last_day_of_month(self, value: date) -> date:
        """Returns the last calendar day of the month containing value."""
        return value.replace(day=self.get_days_in_month(value.year, value.month))

    def is_full_calendar_month(self, start: DateLike, end: DateLike) -> bool:
        """
        Checks whether a range covers exactly one whole calendar month.

        True when start is the 1st, end is the last day of its month and
        both fall in the same month of the same year.
        """
        start_day = to_date(start)
        end_day = to_date(end)
        return (
            start_day.day == 1
            and end_day == self.last_day_of_month(end_day)
            and (start_day.year, start_day.month) == (end_day.year, end_day.month)
        )

    def calculate_duration_days(self, start: DateLike, end: DateLike) -> int:
        """
        Calculates calendar-normalized billable days, inclusive of both ends.

        A booking covering a complete calendar month is billed as one
        billing cycle regardless of the month's true length, so
        February 1-28 bills the same as July 1-31.

        Args:
            start: First booked day. Any time component is dropped.
            end: Last booked day. Any time component is dropped.

        Returns:
            Billable days, minimum 1.

        Raises:
            InvalidRangeError: If end is before start.
        """
        interval = to_interval(start, end)

        if self.is_full_calendar_month(interval.start_date, interval.end_date):
            return self.cycle_days

        days = (interval.end_date - interval.start_date).days + 1
        return max(days, 1)

    def calculate_simple_inclusive_days(self, start: DateLike, end: DateLike) -> int:
        """
        Calculates simple inclusive days: ceil(elapsed days) + 1.

        Unlike calculate_duration_days, time components are kept (a
        partial day counts as a whole one) and full calendar months are
        not normalized. Campaign totals are computed with this policy.
        When only one side carries a timezone, the other is read in
        that timezone.

        Raises:
            InvalidRangeError: If end is before start.
        """
        start_at = _to_datetime(start)
        end_at = _to_datetime(end)

        # A plain date read against a zoned timestamp takes that zone
        if start_at.tzinfo is None and end_at.tzinfo is not None:
            start_at = start_at.replace(tzinfo=end_at.tzinfo)
        elif end_at.tzinfo is None and start_at.tzinfo is not None:
            end_at = end_at.replace(tzinfo=start_at.tzinfo)

        if end_at < start_at:
            raise InvalidRangeError(start_at.date(), end_at.date())

        elapsed = (end_at - start_at).total_seconds() / SECONDS_PER_DAY
        return math.ceil(elapsed) + 1

    def calculate_end_date(self, start: DateLike, duration_days: int) -> date:
        """
        Reconstructs the inclusive end date of a booking.

        Args:
            start: First booked day.
            duration_days: Inclusive day count.

        Returns:
            start + (duration_days - 1) days.
        """
        return to_date(start) + timedelta(days=duration_days - 1)

    def calculate_months_from_days(self, duration_days: int) -> int:
        """
        Converts days to the nearest whole billing month.

        Halves round up: 44 days is 1 month, 45 days is 2 months.
        """
        months = Decimal(duration_days) / Decimal(self.cycle_days)
        return int(months.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def calculate_days_from_months(self, months_count) -> int:
        """Converts a (half-)month count to billing days."""
        days = to_decimal(months_count) * Decimal(self.cycle_days)
        return int(days.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def calculate_duration_factor(
        self,
        duration_days: int,
        duration_mode: DurationMode,
        months_count=None
    ) -> Decimal:
        """
        Calculates the multiplier applied to monthly rates.

        Args:
            duration_days: Billable days.
            duration_mode: DAYS or MONTH.
            months_count: Explicit month count, used in MONTH mode.

        Returns:
            months_count in MONTH mode, otherwise days / billing cycle.
        """
        if duration_mode == DurationMode.MONTH and months_count is not None:
            return to_decimal(months_count)
        return Decimal(duration_days) / Decimal(self.cycle_days)

    def sync_from_start_date(self, start: DateLike, duration_days: int) -> DurationSync:
        """Keeps the day count and moves the end date with a new start date."""
        return DurationSync(end_date=self.calculate_end_date(start, duration_days))

    def sync_from_end_date(self, start: DateLike, end: DateLike) -> DurationSync:
        """Recomputes day and month counts after the end date changes."""
        duration_days = self.calculate_duration_days(start, end)
        return DurationSync(
            duration_days=duration_days,
            months_count=self.calculate_months_from_days(duration_days),
        )

    def sync_from_days(self, start: DateLike, duration_days: int) -> DurationSync:
        """Recomputes end date and month count after the day count changes."""
        return DurationSync(
            end_date=self.calculate_end_date(start, duration_days),
            months_count=self.calculate_months_from_days(duration_days),
        )

    def sync_from_months(self, start: DateLike, months_count) -> DurationSync:
        """Recomputes day count and end date after the month count changes."""
        duration_days = self.calculate_days_from_months(months_count)
        logger.debug(
            "Month count %s converted to %d billing days", months_count, duration_days
        )
        return DurationSync(
            duration_days=duration_days,
            end_date=self.calculate_end_date(start, duration_days),
        )
