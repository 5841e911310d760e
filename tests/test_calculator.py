"""
ProRata INR - Pricing Engine Tests.

Property-based and unit tests for PricingEngine class.
Tests ensure correct pro-rata amounts, per-field rounding of line
items, discount and profit figures, and per-asset rent modes.
"""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis.strategies import decimals, integers

from prorata.calculator import PricingEngine
from prorata.date_logic import DateManager
from prorata.schema import (
    BillingConfig,
    BillingMode,
    DurationMode,
    InvalidRangeError,
    LineItemDuration,
    LineItemPricing,
)


def make_pricing(
    base: str,
    card: str,
    negotiated: str,
    days: int = 30,
    mode: DurationMode = DurationMode.DAYS,
    months=None,
    printing=None,
    mounting=None
) -> LineItemPricing:
    """Builds a LineItemPricing starting 1 July 2024."""
    start = date(2024, 7, 1)
    return LineItemPricing(
        base_rate_month=Decimal(base),
        card_rate_month=Decimal(card),
        negotiated_rate_month=Decimal(negotiated),
        printing_rate_month=Decimal(printing) if printing else None,
        mounting_rate_month=Decimal(mounting) if mounting else None,
        duration=LineItemDuration(
            start_date=start,
            end_date=DateManager().calculate_end_date(start, days),
            duration_days=days,
            duration_mode=mode,
            months_count=months,
        ),
    )


class TestProRataUnit:
    """Unit tests for the pro-rata pricing function."""

    def setup_method(self) -> None:
        """Initialise PricingEngine for each test."""
        self.dm = DateManager()
        self.engine = PricingEngine(self.dm)

    def test_full_cycle(self) -> None:
        """Verify 30 days of a monthly rate is the monthly rate."""
        assert self.engine.pro_rata(Decimal("30000"), 30) == Decimal("30000.00")

    def test_half_month(self) -> None:
        """Verify 15 days is half the monthly rate."""
        assert self.engine.pro_rata(Decimal("30000"), 15) == Decimal("15000.00")

    def test_rounds_to_two_places(self) -> None:
        """Verify 10000 / 30 * 7 = 2333.33."""
        assert self.engine.pro_rata(Decimal("10000"), 7) == Decimal("2333.33")

    def test_rounds_half_up(self) -> None:
        """Verify an exact half paisa rounds up (0.05 / 30 * 3 = 0.005)."""
        assert self.engine.pro_rata(Decimal("0.05"), 3) == Decimal("0.01")

    def test_zero_rate_is_no_charge(self) -> None:
        """Verify a zero rate yields zero, not an error."""
        assert self.engine.pro_rata(Decimal("0"), 30) == Decimal("0.00")

    def test_negative_rate_is_no_charge(self) -> None:
        """Verify a negative rate yields zero."""
        assert self.engine.pro_rata(Decimal("-100"), 30) == Decimal("0.00")

    def test_zero_days_is_no_charge(self) -> None:
        """Verify zero days yields zero."""
        assert self.engine.pro_rata(Decimal("30000"), 0) == Decimal("0.00")

    def test_accepts_int_and_float_rates(self) -> None:
        """Verify stored int and float rates are accepted."""
        assert self.engine.pro_rata(30000, 10) == Decimal("10000.00")
        assert self.engine.pro_rata(300.3, 10) == Decimal("100.10")

    def test_returns_decimal_type(self) -> None:
        """Verify pro_rata returns Decimal type."""
        assert isinstance(self.engine.pro_rata(Decimal("1000"), 3), Decimal)

    def test_alternate_cycle(self) -> None:
        """Verify a 31-day cycle divides by 31."""
        engine = PricingEngine(DateManager(BillingConfig(billing_cycle_days=31)))
        assert engine.pro_rata(Decimal("31000"), 31) == Decimal("31000.00")
        assert engine.pro_rata(Decimal("31000"), 10) == Decimal("10000.00")

    def test_july_scenarios(self) -> None:
        """Verify the duration calculator feeds pro_rata as expected."""
        rate = Decimal("30000")
        full = self.dm.calculate_duration_days(date(2024, 7, 1), date(2024, 7, 31))
        half = self.dm.calculate_duration_days(date(2024, 7, 1), date(2024, 7, 15))
        mid = self.dm.calculate_duration_days(date(2024, 11, 10), date(2024, 11, 19))

        assert (full, self.engine.pro_rata(rate, full)) == (30, Decimal("30000.00"))
        assert (half, self.engine.pro_rata(rate, half)) == (15, Decimal("15000.00"))
        assert (mid, self.engine.pro_rata(rate, mid)) == (10, Decimal("10000.00"))


class TestLineItemTotalsUnit:
    """Unit tests for the line item aggregator."""

    def setup_method(self) -> None:
        """Initialise PricingEngine for each test."""
        self.engine = PricingEngine(DateManager())

    def test_each_field_rounded_before_subtotal(self) -> None:
        """
        Verify rounding happens per field, not once at the end.

        100 / 30 = 3.333... rounds to 3.33 for each of the three billed
        fields, so the subtotal is 9.99 rather than 10.00.
        """
        pricing = make_pricing("100", "100", "100", days=1, printing="100", mounting="100")
        totals = self.engine.calculate_line_item_totals(pricing)

        assert totals.line_negotiation_rate == Decimal("3.33")
        assert totals.line_printing_charge == Decimal("3.33")
        assert totals.line_mounting_charge == Decimal("3.33")
        assert totals.line_subtotal == Decimal("9.99")

    def test_subtotal_excludes_base_and_card(self) -> None:
        """Verify base and card totals are informational only."""
        pricing = make_pricing("20000", "50000", "40000", days=30, printing="5000")
        totals = self.engine.calculate_line_item_totals(pricing)

        assert totals.line_base_rate == Decimal("20000.00")
        assert totals.line_card_rate == Decimal("50000.00")
        assert totals.line_subtotal == Decimal("45000.00")

    def test_missing_printing_and_mounting_are_zero(self) -> None:
        """Verify absent optional rates contribute zero."""
        totals = self.engine.calculate_line_item_totals(make_pricing("1", "1", "30000", days=15))
        assert totals.line_printing_charge == Decimal("0.00")
        assert totals.line_mounting_charge == Decimal("0.00")
        assert totals.line_subtotal == Decimal("15000.00")

    def test_month_mode_uses_month_count(self) -> None:
        """Verify MONTH mode bypasses day counting."""
        pricing = make_pricing(
            "15000", "25000", "20000", days=44,
            mode=DurationMode.MONTH, months=Decimal("1.5")
        )
        totals = self.engine.calculate_line_item_totals(pricing)

        assert totals.duration_factor == Decimal("1.5")
        assert totals.line_base_rate == Decimal("22500.00")
        assert totals.line_card_rate == Decimal("37500.00")
        assert totals.line_negotiation_rate == Decimal("30000.00")

    def test_discount_and_profit(self) -> None:
        """Verify discount against card and profit over base."""
        pricing = make_pricing(
            "15000", "25000", "20000",
            mode=DurationMode.MONTH, months=Decimal("1.5")
        )
        totals = self.engine.calculate_line_item_totals(pricing)

        assert totals.discount.value == Decimal("7500.00")
        assert totals.discount.percent == Decimal("20.00")
        assert totals.profit.value == Decimal("7500.00")
        assert totals.profit.percent == Decimal("33.33")

    def test_loss_is_not_clamped(self) -> None:
        """Verify a negotiated rate below cost reports a negative profit."""
        profit = self.engine.calculate_profit(Decimal("30000"), Decimal("25000"), Decimal("1"))
        assert profit.value == Decimal("-5000.00")
        assert profit.percent == Decimal("-16.67")

    def test_negative_half_paisa_rounds_toward_positive(self) -> None:
        """Verify a loss of exactly half a paisa rounds up to -0.01."""
        profit = self.engine.calculate_profit(Decimal("0.015"), Decimal("0"), Decimal("1"))
        assert profit.value == Decimal("-0.01")
        assert profit.percent == Decimal("-100.00")

    def test_discount_never_negative(self) -> None:
        """Verify negotiating above card rate gives zero discount."""
        discount = self.engine.calculate_discount(Decimal("20000"), Decimal("25000"), Decimal("1"))
        assert discount.value == Decimal("0.00")
        assert discount.percent == Decimal("0.00")

    def test_zero_card_rate_percent_is_zero(self) -> None:
        """Verify a zero card rate gives a zero discount percent."""
        discount = self.engine.calculate_discount(Decimal("0"), Decimal("25000"), Decimal("1"))
        assert discount.percent == Decimal("0")

    def test_zero_base_rate_percent_is_zero(self) -> None:
        """Verify a zero base rate gives a zero profit percent."""
        profit = self.engine.calculate_profit(Decimal("0"), Decimal("25000"), Decimal("1"))
        assert profit.value == Decimal("25000.00")
        assert profit.percent == Decimal("0")

    def test_totals_are_immutable(self) -> None:
        """Verify LineItemTotals cannot be modified once computed."""
        totals = self.engine.calculate_line_item_totals(make_pricing("1", "1", "1"))
        with pytest.raises(AttributeError):
            totals.line_subtotal = Decimal("0")


class TestAssetRentUnit:
    """Unit tests for per-asset rent helpers."""

    def setup_method(self) -> None:
        """Initialise PricingEngine for each test."""
        self.engine = PricingEngine(DateManager())

    def test_prorata_rent_uses_unrounded_daily_rate(self) -> None:
        """Verify 50000 / 30 over 180 days is exactly 300000.00."""
        start = date(2024, 1, 1)
        end = date(2024, 6, 28)
        rent = self.engine.compute_rent_amount(Decimal("50000"), start, end)

        assert rent.booked_days == 180
        assert rent.daily_rate == Decimal("1666.67")
        assert rent.rent_amount == Decimal("300000.00")
        assert rent.billing_mode == BillingMode.PRORATA_30

    def test_full_month_mode_charges_started_months(self) -> None:
        """Verify FULL_MONTH charges every started 30-day month."""
        rent = self.engine.compute_rent_amount(
            Decimal("10000"), date(2024, 7, 1), date(2024, 8, 15), BillingMode.FULL_MONTH
        )
        assert rent.booked_days == 46
        assert rent.rent_amount == Decimal("20000.00")

    def test_full_month_mode_full_calendar_month(self) -> None:
        """Verify a full calendar month is exactly one FULL_MONTH charge."""
        rent = self.engine.compute_rent_amount(
            Decimal("10000"), date(2024, 7, 1), date(2024, 7, 31), BillingMode.FULL_MONTH
        )
        assert rent.rent_amount == Decimal("10000.00")

    def test_daily_mode_uses_provided_daily_rate(self) -> None:
        """Verify DAILY mode charges the negotiated daily rate."""
        rent = self.engine.compute_rent_amount(
            Decimal("30000"), date(2024, 7, 1), date(2024, 7, 10),
            BillingMode.DAILY, daily_rate=Decimal("500")
        )
        assert rent.daily_rate == Decimal("500.00")
        assert rent.rent_amount == Decimal("5000.00")

    def test_daily_mode_without_daily_rate_falls_back(self) -> None:
        """Verify DAILY mode without a daily rate uses monthly / 30."""
        rent = self.engine.compute_rent_amount(
            Decimal("30000"), date(2024, 7, 1), date(2024, 7, 10), BillingMode.DAILY
        )
        assert rent.rent_amount == Decimal("10000.00")

    def test_rent_rejects_reversed_range(self) -> None:
        """Verify a reversed booking raises InvalidRangeError."""
        with pytest.raises(InvalidRangeError):
            self.engine.compute_rent_amount(Decimal("1000"), date(2024, 7, 2), date(2024, 7, 1))

    def test_pro_rata_factor(self) -> None:
        """Verify factors are rounded to 2 places."""
        assert self.engine.compute_pro_rata_factor(15) == Decimal("0.50")
        assert self.engine.compute_pro_rata_factor(7) == Decimal("0.23")

    def test_overlap_days(self) -> None:
        """Verify overlap of a booking with a billing month."""
        days = self.engine.compute_overlap_days(
            date(2024, 7, 10), date(2024, 8, 20), date(2024, 8, 1), date(2024, 8, 31)
        )
        assert days == 20

    def test_overlap_days_disjoint(self) -> None:
        """Verify disjoint ranges overlap by 0 days."""
        days = self.engine.compute_overlap_days(
            date(2024, 7, 10), date(2024, 7, 20), date(2024, 8, 1), date(2024, 8, 31)
        )
        assert days == 0

    def test_period_rent_amount(self) -> None:
        """Verify rent accrued by a booking inside one month."""
        amount = self.engine.compute_period_rent_amount(
            Decimal("30000"), date(2024, 7, 10), date(2024, 8, 20),
            date(2024, 7, 1), date(2024, 7, 31)
        )
        assert amount == Decimal("22000.00")

    def test_period_rent_amount_without_overlap(self) -> None:
        """Verify no overlap means no rent."""
        amount = self.engine.compute_period_rent_amount(
            Decimal("30000"), date(2024, 9, 1), date(2024, 9, 30),
            date(2024, 7, 1), date(2024, 7, 31)
        )
        assert amount == Decimal("0.00")


class TestPricingEngineProperty:
    """Property-based tests for PricingEngine."""

    def setup_method(self) -> None:
        """Initialise PricingEngine for each test."""
        self.engine = PricingEngine(DateManager())

    @given(
        decimals(min_value=Decimal("1"), max_value=Decimal("10000000"), places=2,
                 allow_nan=False, allow_infinity=False),
        integers(min_value=1, max_value=365),
        integers(min_value=1, max_value=365)
    )
    @settings(max_examples=300)
    def test_pro_rata_is_linear_within_rounding(self, rate: Decimal, d1: int, d2: int) -> None:
        """
        Property: pro_rata(r, d1) + pro_rata(r, d2) ~ pro_rata(r, d1 + d2).

        Each of the three amounts is off by at most half a paisa.
        """
        split = self.engine.pro_rata(rate, d1) + self.engine.pro_rata(rate, d2)
        whole = self.engine.pro_rata(rate, d1 + d2)
        assert abs(split - whole) <= Decimal("0.02")

    @given(
        decimals(min_value=Decimal("0"), max_value=Decimal("10000000"), places=2,
                 allow_nan=False, allow_infinity=False),
        integers(min_value=0, max_value=730)
    )
    @settings(max_examples=200)
    def test_pro_rata_has_two_decimal_places(self, rate: Decimal, days: int) -> None:
        """Property: Every pro-rata amount is quantized to paise."""
        amount = self.engine.pro_rata(rate, days)
        assert amount == amount.quantize(Decimal("0.01"))
        assert amount >= 0

    @given(
        decimals(min_value=Decimal("0"), max_value=Decimal("1000000"), places=2,
                 allow_nan=False, allow_infinity=False),
        decimals(min_value=Decimal("0"), max_value=Decimal("1000000"), places=2,
                 allow_nan=False, allow_infinity=False),
        integers(min_value=1, max_value=365)
    )
    @settings(max_examples=200)
    def test_subtotal_is_sum_of_rounded_fields(
        self, negotiated: Decimal, printing: Decimal, days: int
    ) -> None:
        """Property: line_subtotal equals the sum of its rounded fields."""
        pricing = make_pricing("0", "0", str(negotiated), days=days, printing=str(printing))
        totals = self.engine.calculate_line_item_totals(pricing)
        assert totals.line_subtotal == (
            totals.line_negotiation_rate
            + totals.line_printing_charge
            + totals.line_mounting_charge
        )
